"""System prompts sent to the completion provider."""

from regulation_rag.protocols import ChatMessageDict

DRAFT_SYSTEM_PROMPT = (
    "あなたはマンション理事会の専門アシスタントです。"
    "管理規約や細則に関する質問に、自然で分かりやすい日本語で回答してください。\n\n"
    "回答時の注意点：\n"
    "- 専門用語は分かりやすく説明する\n"
    "- 具体例を交えて説明する\n"
    "- 簡潔で親しみやすい口調で回答する"
)

PLAIN_SYSTEM_PROMPT = (
    "あなたは親しみやすく丁寧なAIアシスタントです。"
    "マンション理事会に関する質問に対して、一般的な知識に基づいて分かりやすく回答してください。"
)

ENHANCE_SYSTEM_PROMPT = (
    "あなたはマンション理事会の専門アシスタントです。"
    "下書きの回答を、以下の関連文書に基づいて正確に修正・補強してください。\n\n"
    "関連文書：\n{context}\n\n"
    "修正時の注意点：\n"
    "- 関連文書と矛盾する記述は文書に合わせて修正する\n"
    "- 必要に応じて条文番号や根拠を明示する\n"
    "- 定義文がある場合はその定義を優先する\n"
    "- 修正後の回答本文のみを出力する"
)


def draft_messages(history: list[ChatMessageDict], rag_enabled: bool) -> list[ChatMessageDict]:
    system = DRAFT_SYSTEM_PROMPT if rag_enabled else PLAIN_SYSTEM_PROMPT
    return [{"role": "system", "content": system}, *history]


def enhance_messages(draft: str, context: str, question: str | None = None) -> list[ChatMessageDict]:
    user = f"質問：\n{question}\n\n下書き：\n{draft}" if question else f"下書き：\n{draft}"
    return [
        {"role": "system", "content": ENHANCE_SYSTEM_PROMPT.format(context=context)},
        {"role": "user", "content": user},
    ]
