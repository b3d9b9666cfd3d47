"""
Tests for AnswerEnhancer fallbacks.
"""

import asyncio

from conftest import FakeCompletionProvider

from regulation_rag.services import AnswerEnhancer

DRAFT = "下書きの回答"
CONTEXT = "【文書1】（類似度: 40.0%・定義文）\n一 管理費 ... をいう。"


async def test_enhance_returns_refined_answer():
    completion = FakeCompletionProvider(enhanced="  修正済みの回答  ")
    enhancer = AnswerEnhancer(completion)

    assert await enhancer.enhance(DRAFT, CONTEXT, "管理費とは") == "修正済みの回答"
    (call,) = completion.calls
    assert call["temperature"] == 0.3
    assert "関連文書" in call["messages"][0]["content"]
    assert "管理費とは" in call["messages"][1]["content"]


async def test_empty_context_skips_completion():
    completion = FakeCompletionProvider()
    enhancer = AnswerEnhancer(completion)

    assert await enhancer.enhance(DRAFT, "  ") == DRAFT
    assert completion.calls == []


async def test_provider_failure_returns_draft():
    enhancer = AnswerEnhancer(FakeCompletionProvider(fail_enhance=True))
    assert await enhancer.enhance(DRAFT, CONTEXT) == DRAFT


async def test_empty_output_returns_draft():
    enhancer = AnswerEnhancer(FakeCompletionProvider(enhanced="   "))
    assert await enhancer.enhance(DRAFT, CONTEXT) == DRAFT


async def test_timeout_returns_draft():
    class SlowCompletion(FakeCompletionProvider):
        async def complete(self, messages, max_tokens, temperature):
            await asyncio.sleep(1)
            return "too late"

    enhancer = AnswerEnhancer(SlowCompletion(), timeout=0.01)
    assert await enhancer.enhance(DRAFT, CONTEXT) == DRAFT
