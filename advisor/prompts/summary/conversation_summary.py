"""Conversation summary prompt builder."""
from __future__ import annotations

from typing import Sequence

from advisor.pipeline.models import Language, MessageRecord

_LANGUAGE_NAMES = {"en": "English", "zh": "Chinese"}


def format_transcript(messages: Sequence[MessageRecord]) -> str:
    return "\n".join(f"{message.role}: {message.content}" for message in messages)


def build_summary_prompt(*, transcript: str, language: Language) -> str:
    prompt = (
        "Summarize the following car buying conversation in one or two sentences. "
        "Mention the user's needs, budget and any cars discussed. "
        f"The conversation is held in {_LANGUAGE_NAMES.get(language, 'Chinese')}.\n\n"
        f"Conversation:\n{transcript}\n\n"
        'Respond with JSON only: {"summary": {"en": "English summary", "zh": "中文摘要"}}'
    )
    return prompt
