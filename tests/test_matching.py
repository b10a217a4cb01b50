"""Tests for ordered-pass matching."""

from clinical_prefill.services.matching import first_match


class TestFirstMatch:
    def test_first_pass_wins(self):
        assert first_match([None, "code"], ["text"]) == "code"

    def test_falls_through_to_later_pass(self):
        assert first_match([None, None], [None, "text"]) == "text"

    def test_no_match(self):
        assert first_match([None], []) is None
        assert first_match() is None

    def test_later_pass_not_consumed(self):
        consumed = []

        def later():
            consumed.append(True)
            yield "text"

        assert first_match(["code"], later()) == "code"
        assert consumed == []

    def test_falsy_candidate_counts(self):
        assert first_match([0], [1]) == 0

