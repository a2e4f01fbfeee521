"""Simulated streaming over a single-shot model call.

The wrapped invoker produces the whole reply at once; the adapter then replays
its display text word by word with a small delay so clients can render
progressively. The structured block is never replayed, but ``DoneEvent``
still carries the raw reply for extraction. It exposes the same event
contract as native streaming, so the orchestrator does not know which one it
is consuming.
"""
from __future__ import annotations

import asyncio
from typing import AsyncIterator, List

from advisor.extractors.structured_reply import parse_structured_reply
from advisor.llm.events import DoneEvent, ErrorEvent, FragmentEvent, StreamEvent
from advisor.llm.invoker import ModelInvoker
from advisor.pipeline.models import Language
from advisor.prompts.chat.system_prompt import AssembledPrompt
from api.shared.exceptions import ModelError


def split_fragments(text: str, separator: str = " ") -> List[str]:
    """Split into word fragments that concatenate back to ``text`` exactly."""
    words = text.split(separator)
    fragments = [word + separator for word in words[:-1]]
    fragments.append(words[-1])
    return [fragment for fragment in fragments if fragment]


class SimulatedStreamInvoker:
    def __init__(self, inner: ModelInvoker, chunk_delay: float = 0.05):
        self.inner = inner
        self.chunk_delay = chunk_delay

    @property
    def model_name(self) -> str:
        return self.inner.model_name

    async def generate(self, prompt: AssembledPrompt, language: Language) -> str:
        return await self.inner.generate(prompt, language)

    async def generate_stream(
        self, prompt: AssembledPrompt, language: Language
    ) -> AsyncIterator[StreamEvent]:
        try:
            text = await self.inner.generate(prompt, language)
        except ModelError as e:
            yield ErrorEvent(e)
            return

        # Split once: the prose is replayed, the structured block is not.
        fragments = split_fragments(parse_structured_reply(text).display_text)
        for index, fragment in enumerate(fragments):
            if index and self.chunk_delay:
                await asyncio.sleep(self.chunk_delay)
            yield FragmentEvent(fragment)
        yield DoneEvent(full_text=text, fragment_count=len(fragments))
