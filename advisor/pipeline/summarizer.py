"""Bilingual conversation summaries."""
from __future__ import annotations

import json
import re
from typing import Sequence

import structlog

from advisor.llm.invoker import ModelInvoker
from advisor.pipeline.models import BilingualText, Language, MessageRecord
from advisor.prompts.chat.system_prompt import AssembledPrompt
from advisor.prompts.summary.conversation_summary import build_summary_prompt, format_transcript
from api.shared.exceptions import ModelError

logger = structlog.get_logger("advisor")

FALLBACK_SUMMARY = BilingualText(en="Conversation summary", zh="对话摘要")

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ConversationSummarizer:
    def __init__(self, invoker: ModelInvoker):
        self.invoker = invoker

    async def summarize(
        self, messages: Sequence[MessageRecord], language: Language = "zh"
    ) -> BilingualText:
        if not messages:
            return FALLBACK_SUMMARY
        system = build_summary_prompt(transcript=format_transcript(messages), language=language)
        prompt = AssembledPrompt(system=system, language=language)
        try:
            raw = await self.invoker.generate(prompt, language)
        except ModelError as e:
            logger.warning("summary.model_failed", reason=e.reason)
            return FALLBACK_SUMMARY
        return parse_summary(raw)


def parse_summary(raw: str) -> BilingualText:
    match = _JSON_OBJECT.search(raw or "")
    if not match:
        return FALLBACK_SUMMARY
    try:
        payload = json.loads(match.group(0))
    except ValueError:
        return FALLBACK_SUMMARY
    summary = payload.get("summary") if isinstance(payload, dict) else None
    if not isinstance(summary, dict):
        return FALLBACK_SUMMARY
    en = str(summary.get("en") or "").strip()
    zh = str(summary.get("zh") or "").strip()
    if not (en or zh):
        return FALLBACK_SUMMARY
    return BilingualText(en=en or FALLBACK_SUMMARY.en, zh=zh or FALLBACK_SUMMARY.zh)
