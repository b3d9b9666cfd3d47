"""Second-pass refinement of a draft answer against retrieved context."""

import asyncio

import structlog

from regulation_rag.protocols import CompletionProvider

from .prompts import enhance_messages

logger = structlog.get_logger(__name__)


class AnswerEnhancer:
    """Rewrites a draft answer using ranked context.

    ``enhance`` never raises: an empty context, a provider error, a timeout or
    an empty reply all return the draft unchanged.
    """

    def __init__(
        self,
        completion: CompletionProvider,
        timeout: float = 8.0,
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ) -> None:
        self._completion = completion
        self._timeout = timeout
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def timeout(self) -> float:
        return self._timeout

    async def enhance(self, draft: str, context: str, question: str | None = None) -> str:
        """Refine ``draft`` with ``context``.

        Args:
            draft: The answer produced without retrieval
            context: Formatted ranked chunks
            question: The user's latest question, included in the prompt when given

        Returns:
            The refined answer, or ``draft`` if refinement was not possible
        """
        if not context.strip():
            return draft

        try:
            refined = await asyncio.wait_for(
                self._completion.complete(
                    enhance_messages(draft, context, question),
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("enhancement timed out", timeout=self._timeout)
            return draft
        except Exception as e:
            logger.warning("enhancement failed", error=str(e))
            return draft

        if not refined or not refined.strip():
            logger.warning("enhancement returned empty output")
            return draft
        return refined.strip()
