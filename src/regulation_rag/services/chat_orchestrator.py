"""Chat request orchestration.

A request moves through these states, recorded in ``diagnostics["states"]``:

    cache_check -> cache_hit
    cache_check -> dispatch -> merge -> [enhance] -> finalize
    cache_check -> dispatch -> merge -> fail

``dispatch`` starts the draft completion and the retrieval branch together;
``merge`` waits for both to settle. Only a failed draft is fatal.
"""

import asyncio
import re
import time
from collections.abc import Sequence
from typing import Any

import structlog

from regulation_rag.config import Settings, settings
from regulation_rag.entities import OrchestrationResult, RankedChunk
from regulation_rag.errors import DraftGenerationError
from regulation_rag.protocols import ChatMessageDict, CompletionProvider

from .answer_enhancer import AnswerEnhancer
from .cache_service import CacheService
from .prompts import draft_messages
from .retrieval_service import RetrievalService

logger = structlog.get_logger(__name__)

SUMMARY_MARKERS = ("要約", "まとめ", "全体", "summarize", "overall")
PRONOUN_MARKERS = ("それ", "これ", "あれ", "その", "この", "あの", "そこ", "ここ", "あそこ")
ENGLISH_PRONOUNS = re.compile(r"\b(?:it|that|this)\b")

DRAFT_MAX_TOKENS = 1200
DRAFT_TEMPERATURE = 0.8


def latest_question(messages: Sequence[ChatMessageDict]) -> str:
    for message in reversed(messages):
        if message["role"] == "user":
            return message["content"]
    return messages[-1]["content"] if messages else ""


def build_search_query(messages: Sequence[ChatMessageDict]) -> str:
    """Derive the retrieval query from the conversation.

    Summary requests search over the last five user turns, follow-ups that
    refer back with a pronoun search over the last two, anything else uses
    the latest question alone.
    """
    user_turns = [m["content"] for m in messages if m["role"] == "user"]
    if not user_turns:
        return ""

    question = user_turns[-1]
    lowered = question.lower()
    if any(marker in lowered for marker in SUMMARY_MARKERS):
        return " ".join(user_turns[-5:])
    if any(marker in question for marker in PRONOUN_MARKERS) or ENGLISH_PRONOUNS.search(lowered):
        return " ".join(user_turns[-2:])
    return question


def _ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class ChatOrchestrator:
    """Produces the final answer for a chat request.

    Example:
        ```python
        orchestrator = ChatOrchestrator(completion, caches, retrieval, enhancer)
        result = await orchestrator.answer(
            [{"role": "user", "content": "管理費とは"}], rag_enabled=True
        )
        ```
    """

    def __init__(
        self,
        completion: CompletionProvider,
        cache_service: CacheService,
        retrieval: RetrievalService | None = None,
        enhancer: AnswerEnhancer | None = None,
        config: Settings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            completion: Provider for the draft completion
            cache_service: Response and embedding caches
            retrieval: Retrieval service. None disables the RAG branch.
            enhancer: Refines the draft with ranked context. None skips refinement.
            config: Timeouts, TTLs and top-k. Defaults to the global settings.
        """
        self._completion = completion
        self._caches = cache_service
        self._retrieval = retrieval
        self._enhancer = enhancer
        self._settings = config or settings

    @property
    def rag_available(self) -> bool:
        return self._retrieval is not None

    async def answer(
        self,
        messages: Sequence[ChatMessageDict],
        rag_enabled: bool = True,
    ) -> OrchestrationResult:
        """Answer the latest user question in ``messages``.

        Raises:
            DraftGenerationError: If the draft completion fails or times out
        """
        start = time.perf_counter()
        states = ["cache_check"]
        question = latest_question(messages)

        cached = self._caches.lookup_response(question, rag_enabled)
        if cached is not None:
            states.append("cache_hit")
            logger.info("chat answered from cache", question=question, rag_enabled=rag_enabled)
            return OrchestrationResult(
                content=cached,
                cached=True,
                diagnostics={"states": states, "total_ms": _ms(start)},
            )

        states.append("dispatch")
        search_query = build_search_query(messages)
        draft, ranked = await asyncio.gather(
            self._draft(list(messages), rag_enabled),
            self._ranked_context(search_query, rag_enabled),
            return_exceptions=True,
        )

        states.append("merge")
        if isinstance(draft, BaseException):
            states.append("fail")
            logger.error("draft generation failed", question=question, error=repr(draft), states=states)
            if isinstance(draft, asyncio.TimeoutError):
                raise DraftGenerationError(
                    "Draft generation timed out",
                    details=f"timed out after {self._settings.draft_timeout}s",
                ) from draft
            raise DraftGenerationError("Draft generation failed", details=str(draft)) from draft

        if isinstance(ranked, BaseException):
            logger.warning("retrieval branch failed", query=search_query, error=repr(ranked))
            ranked = []

        content = draft
        enhanced = False
        if ranked and rag_enabled and self._enhancer is not None:
            states.append("enhance")
            context = self._retrieval.ranker.format_context(ranked)
            content = await self._enhancer.enhance(draft, context, question)
            enhanced = content != draft

        states.append("finalize")
        ttl = self._settings.response_ttl_rag if rag_enabled else self._settings.response_ttl_plain
        self._caches.store_response(question, rag_enabled, content, ttl=ttl)

        diagnostics: dict[str, Any] = {
            "states": states,
            "search_query": search_query,
            "context_chunks": len(ranked),
            "definition_chunks": sum(1 for r in ranked if r.is_definition),
            "enhanced": enhanced,
            "total_ms": _ms(start),
        }
        logger.info("chat answered", question=question, rag_enabled=rag_enabled, **diagnostics)
        return OrchestrationResult(content=content, cached=False, diagnostics=diagnostics)

    async def _draft(self, messages: list[ChatMessageDict], rag_enabled: bool) -> str:
        return await asyncio.wait_for(
            self._completion.complete(
                draft_messages(messages, rag_enabled),
                max_tokens=DRAFT_MAX_TOKENS,
                temperature=DRAFT_TEMPERATURE,
            ),
            timeout=self._settings.draft_timeout,
        )

    async def _ranked_context(self, query: str, rag_enabled: bool) -> list[RankedChunk]:
        if not rag_enabled or self._retrieval is None or not query:
            return []

        result = await asyncio.wait_for(
            self._retrieval.retrieve(query),
            timeout=self._settings.retrieval_timeout,
        )
        return self._retrieval.ranker.rank(result.chunks, query, k=self._settings.rank_top_k)
