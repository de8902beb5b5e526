"""
Tests for name normalization and the Levenshtein-based helpers.

Covers:
- Accent stripping, case folding and token sorting
- Hangul preservation
- Similarity edge cases (empty, identical, reordered)
- Word containment
- Log sanitising of customer input
"""

import pytest

from normalization import (
    calculate_similarity,
    contains_all_words,
    normalize_name,
    normalize_nationality,
)
from log_utils import sanitize_for_logging


class TestNormalizeName:
    """Tests for normalize_name."""

    def test_none_and_empty_become_empty_string(self):
        assert normalize_name(None) == ""
        assert normalize_name("") == ""
        assert normalize_name("   ") == ""

    def test_accents_are_removed_and_tokens_sorted(self):
        assert normalize_name("  José  García ") == "GARCIA JOSE"

    def test_punctuation_is_deleted(self):
        # The hyphen is removed, joining the two parts
        assert normalize_name("Kim Jong-Un") == "JONGUN KIM"
        assert normalize_name("O'Brien, Patrick") == "OBRIEN PATRICK"

    def test_token_order_does_not_matter(self):
        assert normalize_name("Vladimir Putin") == normalize_name("PUTIN vladimir")

    def test_hangul_is_preserved(self):
        assert normalize_name("김 철수") == "김 철수"

    def test_other_scripts_are_dropped(self):
        assert normalize_name("Иван") == ""

    def test_hyphens_and_apostrophes_join_parts(self):
        assert normalize_name("O'Neill-Brown") == "ONEILLBROWN"

    @pytest.mark.parametrize("name", ["José García", "Kim Jong-Un", "  smith   JOHN ", "김 철수", ""])
    def test_idempotent(self, name):
        assert normalize_name(normalize_name(name)) == normalize_name(name)


class TestNormalizeNationality:
    """Tests for normalize_nationality."""

    def test_trims_and_uppercases(self):
        assert normalize_nationality(" kp ") == "KP"

    def test_none_is_empty(self):
        assert normalize_nationality(None) == ""


class TestCalculateSimilarity:
    """Tests for calculate_similarity."""

    def test_identical_after_normalization(self):
        assert calculate_similarity("John Smith", "smith JOHN") == 1.0

    def test_single_edit(self):
        # JOHN vs JON: one deletion over four characters
        assert calculate_similarity("John", "Jon") == pytest.approx(0.75)

    def test_empty_side_scores_zero(self):
        assert calculate_similarity("", "John") == 0.0
        assert calculate_similarity("John", None) == 0.0
        assert calculate_similarity("!!!", "???") == 0.0

    def test_result_is_bounded(self):
        score = calculate_similarity("Alexander", "Bo")
        assert 0.0 <= score <= 1.0


class TestContainsAllWords:
    """Tests for contains_all_words."""

    def test_subset_is_contained(self):
        assert contains_all_words("John Michael Smith", "Smith John")

    def test_missing_word_is_not_contained(self):
        assert not contains_all_words("John Smith", "John Michael")

    def test_empty_search_never_matches(self):
        assert not contains_all_words("John Smith", "")
        assert not contains_all_words("John Smith", None)
        assert not contains_all_words(None, "John")


class TestSanitizeForLogging:
    """Tests for log sanitising."""

    def test_newlines_are_flattened(self):
        assert sanitize_for_logging("John\nFAKE LOG ENTRY\r\n") == "John FAKE LOG ENTRY"

    def test_none_is_empty(self):
        assert sanitize_for_logging(None) == ""

    def test_long_input_is_truncated(self):
        assert len(sanitize_for_logging("A" * 2000)) == 500
