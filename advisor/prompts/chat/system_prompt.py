"""Advisor system prompt and transcript assembly.

The system block carries the persona, the caller's stated preferences, the car
currently being viewed, the optional structured-output contract and, last, a
fixed language directive so replies default to the conversation language.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from advisor.pipeline.models import CurrentCar, Language, MessageRecord, UserPreferences

_PERSONA = {
    "en": (
        "You are ReHui, a professional Canadian car buying advisor. You help users "
        "find the right car for their needs and budget in the Canadian market. "
        "Be friendly, concise and practical. Quote prices in CAD and mention "
        "reliability, running costs and winter suitability where relevant."
    ),
    "zh": (
        "你是睿慧（ReHui），一位专业的加拿大购车顾问。你帮助用户在加拿大市场中"
        "找到符合需求和预算的汽车。请保持友好、简洁、务实。价格使用加元（CAD），"
        "并在相关时说明可靠性、使用成本以及冬季适用性。"
    ),
}

_STRUCTURED_CONTRACT = {
    "en": (
        "When you recommend specific cars or concrete next steps, append one fenced "
        "```json block at the very end of your reply with this shape:\n"
        '{"summary": {"en": "...", "zh": "..."}, '
        '"recommendations": [{"car_make": "...", "car_model": "...", "match_score": 0.0-1.0, '
        '"reasoning": {"en": "...", "zh": "..."}}], '
        '"next_steps": [{"title": {"en": "...", "zh": "..."}, "description": {"en": "...", "zh": "..."}, '
        '"priority": "high|medium|low", "action_type": "research|visit|contact|prepare"}]}\n'
        "Omit the block when there is nothing structured to add."
    ),
    "zh": (
        "当你推荐具体车型或具体的下一步行动时，请在回复末尾附上一个 ```json 代码块，格式如下：\n"
        '{"summary": {"en": "...", "zh": "..."}, '
        '"recommendations": [{"car_make": "...", "car_model": "...", "match_score": 0.0-1.0, '
        '"reasoning": {"en": "...", "zh": "..."}}], '
        '"next_steps": [{"title": {"en": "...", "zh": "..."}, "description": {"en": "...", "zh": "..."}, '
        '"priority": "high|medium|low", "action_type": "research|visit|contact|prepare"}]}\n'
        "如果没有结构化内容，请省略该代码块。"
    ),
}

_LANGUAGE_DIRECTIVE = {
    "en": "Always reply in English unless the user explicitly asks for another language.",
    "zh": "请始终使用简体中文回复，除非用户明确要求使用其他语言。",
}

_PREFERENCES_LABEL = {"en": "User preferences", "zh": "用户偏好"}
_CURRENT_CAR_LABEL = {"en": "Car the user is currently viewing", "zh": "用户当前查看的车型"}


@dataclass(frozen=True)
class AssembledPrompt:
    """System instruction block plus the flattened turn sequence."""

    system: str
    turns: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    language: Language = "zh"

    def to_transcript(self) -> str:
        """Single text block for models that take one prompt string."""
        parts = [self.system] + [content for _, content in self.turns]
        return "\n\n".join(parts)

    def to_messages(self) -> List[BaseMessage]:
        messages: List[BaseMessage] = [SystemMessage(content=self.system)]
        for role, content in self.turns:
            if role == "assistant":
                messages.append(AIMessage(content=content))
            else:
                messages.append(HumanMessage(content=content))
        return messages


def build_system_prompt(
    *,
    language: Language,
    preferences: Optional[UserPreferences] = None,
    current_car: Optional[CurrentCar] = None,
) -> str:
    lang = language if language in _PERSONA else "en"
    sections = [_PERSONA[lang]]
    if preferences is not None and not preferences.is_empty():
        payload = json.dumps(
            preferences.model_dump(exclude_none=True), ensure_ascii=False, sort_keys=True
        )
        sections.append(f"{_PREFERENCES_LABEL[lang]}: {payload}")
    if current_car is not None:
        sections.append(f"{_CURRENT_CAR_LABEL[lang]}: {current_car.brand} {current_car.name}")
    sections.append(_STRUCTURED_CONTRACT[lang])
    sections.append(_LANGUAGE_DIRECTIVE[lang])
    return "\n\n".join(sections)


def assemble_prompt(
    *,
    language: Language,
    history: Sequence[MessageRecord],
    preferences: Optional[UserPreferences] = None,
    current_car: Optional[CurrentCar] = None,
) -> AssembledPrompt:
    system = build_system_prompt(
        language=language, preferences=preferences, current_car=current_car
    )
    turns = tuple((message.role, message.content) for message in history)
    return AssembledPrompt(system=system, turns=turns, language=language)
