"""Model invocation over a LangChain chat model.

``generate`` is single-shot and raises ``ModelError`` on any failure, with no
retry. ``generate_stream`` is true incremental delivery: fragments arrive in
order, followed by exactly one ``DoneEvent`` or one ``ErrorEvent``.
"""
from __future__ import annotations

import time
from typing import Any, AsyncIterator, Protocol, runtime_checkable

import structlog
from langchain_core.language_models.chat_models import BaseChatModel

from advisor.llm.events import DoneEvent, ErrorEvent, FragmentEvent, StreamEvent
from advisor.pipeline.models import Language
from advisor.prompts.chat.system_prompt import AssembledPrompt
from api.shared.exceptions import ModelError

logger = structlog.get_logger("advisor")


@runtime_checkable
class ModelInvoker(Protocol):
    model_name: str

    async def generate(self, prompt: AssembledPrompt, language: Language) -> str:
        ...

    def generate_stream(
        self, prompt: AssembledPrompt, language: Language
    ) -> AsyncIterator[StreamEvent]:
        ...


def _content_text(content: Any) -> str:
    """Normalize LangChain message content (str or list of parts) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return "" if content is None else str(content)


class ChatModelInvoker:
    """ModelInvoker backed by any LangChain ``BaseChatModel`` (ChatOpenAI in production)."""

    def __init__(self, llm: BaseChatModel, model_name: str):
        self.llm = llm
        self.model_name = model_name

    async def generate(self, prompt: AssembledPrompt, language: Language) -> str:
        start = time.time()
        try:
            reply = await self.llm.ainvoke(prompt.to_messages())
        except Exception as e:
            logger.warning("model.generate_failed", model=self.model_name, error=str(e))
            raise ModelError(self.model_name, str(e) or type(e).__name__) from e

        text = _content_text(reply.content).strip()
        if not text:
            raise ModelError(self.model_name, "empty response")
        logger.info(
            "model.generated",
            model=self.model_name,
            language=language,
            chars=len(text),
            latency_ms=int((time.time() - start) * 1000),
        )
        return text

    async def generate_stream(
        self, prompt: AssembledPrompt, language: Language
    ) -> AsyncIterator[StreamEvent]:
        parts: list[str] = []
        try:
            async for chunk in self.llm.astream(prompt.to_messages()):
                text = _content_text(chunk.content)
                if text:
                    parts.append(text)
                    yield FragmentEvent(text)
        except Exception as e:
            logger.warning(
                "model.stream_failed",
                model=self.model_name,
                fragments=len(parts),
                error=str(e),
            )
            yield ErrorEvent(ModelError(self.model_name, str(e) or type(e).__name__))
            return

        full_text = "".join(parts)
        if not full_text.strip():
            yield ErrorEvent(ModelError(self.model_name, "empty response"))
            return
        yield DoneEvent(full_text=full_text, fragment_count=len(parts))
