"""
Tests for query normalization and fuzzy key matching.
"""

import pytest

from regulation_rag.services import KeyMatcher, normalize
from regulation_rag.services.key_matcher import extract_terms, overlap_ratio


@pytest.mark.parametrize(
    "text",
    ["管理費について教えて？", "  What is   the FEE?  ", "修繕積立金、とは。", ""],
)
def test_normalize_is_idempotent(text):
    assert normalize(normalize(text)) == normalize(text)


def test_normalize_ignores_punctuation_case_and_whitespace():
    assert normalize("管理費について教えて") == normalize("管理費について教えて？")
    assert normalize("What is  RAG?") == normalize("what is rag")


def test_extract_terms_strips_stop_phrases():
    assert extract_terms("修繕積立金とは") == ["修繕積立金"]
    assert extract_terms("修繕積立金について教えて") == ["修繕積立金"]


def test_extract_terms_drops_single_characters():
    assert extract_terms("a 管理費 b") == ["管理費"]


def test_overlap_ratio():
    assert overlap_ratio({"a", "b"}, {"a", "b"}) == 1.0
    assert overlap_ratio({"a", "b"}, {"a"}) == 0.5
    assert overlap_ratio(set(), set()) == 0.0


def test_paraphrase_matches():
    matcher = KeyMatcher(threshold=0.6)
    assert matcher.find_similar("修繕積立金について教えて", ["修繕積立金とは"]) == "修繕積立金とは"


def test_unrelated_question_does_not_match():
    matcher = KeyMatcher(threshold=0.6)
    assert matcher.find_similar("駐車場の使用料", ["修繕積立金とは"]) is None


def test_exact_normalized_match_always_qualifies():
    matcher = KeyMatcher(threshold=1.0)
    # No terms survive stop-phrase removal, but the keys are identical
    assert matcher.find_similar("とは？", ["とは"]) == "とは"


def test_first_sufficient_match_wins():
    matcher = KeyMatcher(threshold=0.5)
    candidates = ["管理費 滞納", "管理費 滞納 督促"]
    assert matcher.find_similar("管理費 滞納 督促", candidates) == "管理費 滞納"


def test_threshold_override():
    matcher = KeyMatcher(threshold=0.6)
    assert matcher.find_similar("管理費 駐車場", ["管理費 理事会"]) is None
    assert matcher.find_similar("管理費 駐車場", ["管理費 理事会"], threshold=0.5) == "管理費 理事会"


@pytest.mark.parametrize("threshold", [0, -0.1, 1.5])
def test_invalid_threshold_rejected(threshold):
    with pytest.raises(ValueError):
        KeyMatcher(threshold=threshold)
