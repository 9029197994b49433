"""Tests for token-budget truncation helpers."""

import pytest

from ops_briefing.core.context.token_counter import estimate_tokens
from ops_briefing.core.enrichment.models import ADOComment
from ops_briefing.core.enrichment.truncation import (
    HARD_CUT_MARKER,
    comment_tokens,
    truncate_comments,
    truncate_to_token_budget,
)


def make_comment(i: int, text_length: int) -> ADOComment:
    # 3 chars author + 10 chars date
    return ADOComment(id=i, text="x" * text_length, created_date="2024-01-15", created_by="dev")


class TestTruncateToTokenBudget:
    """Tests for truncate_to_token_budget."""

    def test_fitting_text_unchanged(self):
        assert truncate_to_token_budget("short", 10) == "short"

    def test_empty_and_none(self):
        assert truncate_to_token_budget("", 10) == ""
        assert truncate_to_token_budget(None, 10) == ""

    def test_cuts_at_sentence_boundary(self):
        text = "First sentence. Second sentence is much longer than the rest."
        assert truncate_to_token_budget(text, 5) == "First sentence."

    def test_question_and_exclamation_boundaries(self):
        text = "Is it ready? Not yet, still waiting on review."
        assert truncate_to_token_budget(text, 5) == "Is it ready?"
        text = "Shipped! Follow-up work is tracked in the next sprint."
        assert truncate_to_token_budget(text, 4) == "Shipped!"

    def test_hard_cut_appends_marker(self):
        result = truncate_to_token_budget("a" * 100, 10)
        assert result == "a" * 38 + HARD_CUT_MARKER
        assert estimate_tokens(result) == 10

    def test_zero_budget(self):
        assert truncate_to_token_budget("anything at all", 0) == ""

    def test_tiny_budget(self):
        assert truncate_to_token_budget("abcdefgh", 1) == "ab.."

    @pytest.mark.parametrize("max_tokens", [1, 3, 10, 25, 100])
    def test_result_within_budget(self, max_tokens):
        text = "Lorem ipsum dolor sit amet. Consectetur adipiscing elit, " * 30
        assert estimate_tokens(truncate_to_token_budget(text, max_tokens)) <= max_tokens


    def test_custom_estimator(self):
        """Test the budget is in the estimator's units."""
        result = truncate_to_token_budget("word " * 2000, 100, estimator=len)
        assert result == ("word " * 20)[:98] + HARD_CUT_MARKER
        assert len(result) == 100

    def test_custom_estimator_sentence_boundary(self):
        text = "Done. " + "x" * 200
        assert truncate_to_token_budget(text, 20, estimator=len) == "Done."


class TestTruncateComments:
    """Tests for comment truncation."""

    def test_comment_tokens_include_overhead(self):
        # 67 + 3 + 10 = 80 chars -> 20 tokens, plus 5 overhead
        assert comment_tokens(make_comment(1, 67)) == 25

    def test_keeps_most_recent_within_budget(self):
        comments = [make_comment(i, 67) for i in range(6)]
        kept = truncate_comments(comments, 100)
        assert [c.id for c in kept] == [0, 1, 2, 3]

    def test_stops_at_first_comment_that_does_not_fit(self):
        comments = [make_comment(0, 67), make_comment(1, 207), make_comment(2, 7)]
        kept = truncate_comments(comments, 50)
        assert [c.id for c in kept] == [0]

    def test_custom_estimator(self):
        comments = [make_comment(i, 67) for i in range(3)]
        # 80 chars + 5 overhead under len
        assert comment_tokens(comments[0], estimator=len) == 85
        assert [c.id for c in truncate_comments(comments, 100, estimator=len)] == [0]

    def test_zero_budget_drops_all(self):
        assert truncate_comments([make_comment(0, 1)], 0) == []

    def test_empty(self):
        assert truncate_comments([], 100) == []
