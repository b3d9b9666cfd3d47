"""Query normalization and keyword-overlap fuzzy key matching."""

import re
from collections.abc import Iterable

import structlog

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[？?。、！!，,．.]")

# Interrogative particles and filler, longest first so that
# "について教えてください" is removed before "について".
DEFAULT_STOP_PHRASES: tuple[str, ...] = (
    "について教えてください",
    "について教えて",
    "とは何ですか",
    "とはなんですか",
    "教えてください",
    "を教えて",
    "教えて",
    "について",
    "何ですか",
    "なんですか",
    "ですか",
    "ください",
    "って何",
    "とは",
    "what is",
    "what are",
    "tell me about",
    "please",
)


def normalize(text: str) -> str:
    """Canonicalize free text for use as a cache key.

    Lowercases, collapses whitespace runs, strips question marks and
    punctuation, trims. Idempotent.
    """
    text = _PUNCTUATION.sub("", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def strip_stop_phrases(text: str, stop_phrases: Iterable[str] = DEFAULT_STOP_PHRASES) -> str:
    """Replace each stop phrase with a space."""
    for phrase in stop_phrases:
        text = text.replace(phrase, " ")
    return text


def extract_terms(text: str, stop_phrases: Iterable[str] = DEFAULT_STOP_PHRASES) -> list[str]:
    """Normalized whitespace tokens of length > 1, with stop phrases removed."""
    stripped = strip_stop_phrases(normalize(text), stop_phrases)
    return [token for token in stripped.split() if len(token) > 1]


def overlap_ratio(a: set[str], b: set[str]) -> float:
    """|A ∩ B| / max(|A|, |B|), 0.0 when both are empty."""
    denominator = max(len(a), len(b))
    if denominator == 0:
        return 0.0
    return len(a & b) / denominator


class KeyMatcher:
    """Finds a previously seen key that paraphrases a new query.

    Policy is "first sufficiently similar": keys are scanned in the given
    order and the first one whose term overlap reaches the threshold wins,
    even if a later key would score higher.

    Example:
        ```python
        matcher = KeyMatcher(threshold=0.6)
        matcher.find_similar("修繕積立金について教えて", ["修繕積立金とは"])
        # -> "修繕積立金とは"
        ```
    """

    def __init__(
        self,
        threshold: float = 0.6,
        stop_phrases: Iterable[str] = DEFAULT_STOP_PHRASES,
    ) -> None:
        if not 0 < threshold <= 1:
            raise ValueError("threshold must be in (0, 1]")
        self._threshold = threshold
        self._stop_phrases = tuple(stop_phrases)

    @property
    def threshold(self) -> float:
        return self._threshold

    def normalize(self, text: str) -> str:
        return normalize(text)

    def terms(self, text: str) -> set[str]:
        return set(extract_terms(text, self._stop_phrases))

    def similarity(self, a: str, b: str) -> float:
        if normalize(a) == normalize(b):
            return 1.0
        return overlap_ratio(self.terms(a), self.terms(b))

    def find_similar(
        self,
        key: str,
        existing_keys: Iterable[str],
        threshold: float | None = None,
    ) -> str | None:
        """Return the first existing key similar enough to ``key``.

        Args:
            key: The query (raw or normalized)
            existing_keys: Candidate keys, scanned in order
            threshold: Override the matcher's threshold

        Returns:
            The matching key as given in ``existing_keys``, or None
        """
        threshold = self._threshold if threshold is None else threshold
        normalized = normalize(key)
        query_terms = self.terms(key)

        # TODO: replace the linear scan with an inverted term index if the
        # response cache is ever sized beyond a few hundred entries.
        for candidate in existing_keys:
            if normalize(candidate) == normalized:
                return candidate
            if overlap_ratio(query_terms, self.terms(candidate)) >= threshold:
                logger.debug("similar key found", query=key, matched=candidate)
                return candidate
        return None
