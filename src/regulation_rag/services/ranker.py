"""Heuristic re-ranking of vector search hits.

Embedding similarity alone is unreliable for short regulatory text, so
hits are re-scored with lexical and structural evidence:

    combined = similarity * 0.3 + max(0, lexical) * 0.7

where ``lexical`` sums keyword weights, a multi-keyword bonus, and bonuses
or penalties from the chunk's structural classification (definition
clause, numbered article, housing/unit list).
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import structlog

from regulation_rag.config import Settings, settings
from regulation_rag.entities import ChunkClassification, ChunkPreview, RankedChunk, RetrievedChunk

from .key_matcher import DEFAULT_STOP_PHRASES, strip_stop_phrases

logger = structlog.get_logger(__name__)

KANJI_NUMERALS = "一二三四五六七八九十"

# Pattern table for classify(); tune here without touching the scoring.
DEFINITION_PATTERNS = (
    re.compile(rf"[{KANJI_NUMERALS}]\s+[^。]+\s+[^。]*をいう"),
    re.compile(rf"^\s*[{KANJI_NUMERALS}]\s+"),
)
ARTICLE_PATTERNS = (re.compile(r"第\d+条"),)
HOUSING_LIST_PATTERNS = (re.compile(r"別表第[3-4３-４]|\d{3}号室|住戸番号"),)

WHAT_IS_MARKERS = ("とは", "って何", "what is", "what are")

_SENTENCE_SPLIT = re.compile(r"[。！？]")


@dataclass(frozen=True)
class RankingWeights:
    """Tunable constants of the ranking heuristic.

    The defaults were chosen empirically and are not known to be optimal.
    """

    similarity_weight: float = 0.3
    lexical_weight: float = 0.7
    definition_bonus: float = 8.0
    article_bonus: float = 4.0
    housing_list_penalty: float = 2.0
    multi_match_bonus: float = 0.5
    what_is_scale: float = 0.7
    min_length: int = 10
    min_similarity: float = 0.1
    keyword_free_similarity: float = 0.5
    max_candidates: int = 10
    max_keywords: int = 5

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "RankingWeights":
        config = config or settings
        return cls(
            similarity_weight=config.similarity_weight,
            lexical_weight=config.lexical_weight,
            definition_bonus=config.definition_bonus,
            article_bonus=config.article_bonus,
            housing_list_penalty=config.housing_list_penalty,
        )


def classify(text: str) -> ChunkClassification:
    """Tag a chunk with its structural markers."""
    return ChunkClassification(
        is_definition=any(p.search(text) for p in DEFINITION_PATTERNS),
        has_article=any(p.search(text) for p in ARTICLE_PATTERNS),
        is_housing_list=any(p.search(text) for p in HOUSING_LIST_PATTERNS),
    )


def extract_keywords(
    question: str,
    limit: int = 5,
    stop_phrases: Iterable[str] = DEFAULT_STOP_PHRASES,
) -> list[str]:
    stripped = strip_stop_phrases(question.lower(), stop_phrases)
    stripped = re.sub(r"[？?。、！!]", " ", stripped)
    return [k for k in stripped.split() if len(k) > 1][:limit]


def keyword_weight(keyword: str) -> float:
    # Longer terms are more specific
    if len(keyword) >= 4:
        return 1.5
    if len(keyword) >= 3:
        return 1.2
    return 1.0


def is_what_is_question(question: str) -> bool:
    lowered = question.lower()
    return any(marker in lowered for marker in WHAT_IS_MARKERS)


class ResultRanker:
    """Re-scores retrieved chunks and selects the top-k.

    Example:
        ```python
        ranker = ResultRanker()
        top = ranker.rank(chunks, "管理費とは", k=3)
        context = ranker.format_context(top)
        ```
    """

    def __init__(self, weights: RankingWeights | None = None) -> None:
        self._weights = weights or RankingWeights.from_settings()

    @property
    def weights(self) -> RankingWeights:
        return self._weights

    def rank(
        self,
        chunks: Sequence[RetrievedChunk],
        question: str,
        k: int = 3,
    ) -> list[RankedChunk]:
        """Score chunks against the question and return the best ``k``.

        Args:
            chunks: Raw hits from the vector store
            question: The user's question (keywords are extracted from it)
            k: Number of chunks to keep

        Returns:
            Chunks with positive combined score, highest first
        """
        keywords = extract_keywords(question, self._weights.max_keywords)
        candidates = self._prefilter(chunks, keywords)
        what_is = is_what_is_question(question)

        scored = [self._score(chunk, keywords, what_is) for chunk in candidates]
        ranked = sorted(
            (r for r in scored if r.combined_score > 0),
            key=lambda r: r.combined_score,
            reverse=True,
        )[:k]

        logger.debug(
            "ranked chunks",
            keywords=keywords,
            received=len(chunks),
            candidates=len(candidates),
            kept=len(ranked),
        )
        return ranked

    def _prefilter(self, chunks: Sequence[RetrievedChunk], keywords: list[str]) -> list[RetrievedChunk]:
        w = self._weights
        kept = []
        for chunk in chunks:
            if len(chunk.text) < w.min_length or chunk.similarity < w.min_similarity:
                continue
            lowered = chunk.text.lower()
            if any(k in lowered for k in keywords) or chunk.similarity > w.keyword_free_similarity:
                kept.append(chunk)
            if len(kept) >= w.max_candidates:
                break
        return kept

    def _score(self, chunk: RetrievedChunk, keywords: list[str], what_is: bool) -> RankedChunk:
        w = self._weights
        lowered = chunk.text.lower()
        classification = classify(chunk.text)

        matched = [k for k in keywords if k in lowered]
        lexical = sum(keyword_weight(k) for k in matched)
        if len(matched) > 1:
            lexical += len(matched) * w.multi_match_bonus

        if classification.is_definition:
            lexical += w.definition_bonus
        if classification.has_article and not classification.is_definition:
            lexical += w.article_bonus
        if classification.is_housing_list and not classification.has_article:
            lexical -= w.housing_list_penalty

        if what_is and not classification.is_definition:
            lexical *= w.what_is_scale

        combined = chunk.similarity * w.similarity_weight + max(0.0, lexical) * w.lexical_weight
        return RankedChunk(
            chunk=chunk,
            lexical_score=lexical,
            classification=classification,
            combined_score=combined,
        )

    # Presentation

    def preview(self, ranked: RankedChunk, question: str, max_chars: int = 350) -> ChunkPreview:
        """Build a short excerpt of the parts of a chunk that match the question."""
        keywords = extract_keywords(question, self._weights.max_keywords)
        parts = relevant_parts(ranked.text, keywords)
        if parts:
            text = "\n".join(parts[:2])
        elif len(ranked.text) > max_chars:
            text = ranked.text[:max_chars] + "..."
        else:
            text = ranked.text
        return ChunkPreview(
            ranked=ranked,
            relevant_parts=parts,
            preview=text,
            labels=labels_for(ranked.classification),
        )

    @staticmethod
    def format_context(ranked: Sequence[RankedChunk]) -> str:
        """Render ranked chunks as the context block of an LLM prompt."""
        blocks = []
        for index, item in enumerate(ranked, start=1):
            tags = "".join(f"・{label}" for label in labels_for(item.classification, housing=False))
            blocks.append(f"【文書{index}】（類似度: {item.similarity * 100:.1f}%{tags}）\n{item.text}")
        return "\n\n---\n\n".join(blocks)


def labels_for(classification: ChunkClassification, housing: bool = True) -> list[str]:
    labels = []
    if classification.is_definition:
        labels.append("定義文")
    if classification.has_article:
        labels.append("条文")
    if housing and classification.is_housing_list:
        labels.append("住戸リスト")
    return labels


def relevant_parts(text: str, keywords: list[str], limit: int = 4) -> list[str]:
    """Numbered items, article clauses and sentences that mention a keyword."""
    parts: list[str] = []
    lowered = text.lower()
    sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]

    for keyword in keywords:
        if keyword not in lowered:
            continue
        escaped = re.escape(keyword)

        numbered = re.findall(rf"[{KANJI_NUMERALS}]{{1,2}}\s+[^。]*{escaped}[^。]*", text, re.IGNORECASE)
        parts.extend(numbered[:2])

        articles = re.findall(rf"第\d+条[^。]*{escaped}[^。]*", text, re.IGNORECASE)
        parts.extend(articles[:1])

        matching = [s.strip() + "。" for s in sentences if keyword in s.lower()]
        parts.extend(matching[:2])

        if len(parts) >= 6:
            break

    return list(dict.fromkeys(parts))[:limit]
