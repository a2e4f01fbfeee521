"""Structured data embedded at the end of an assistant reply.

The advisor prompt asks the model to append a fenced ```json block carrying a
bilingual summary, car recommendations and next steps. This module pulls that
block out of the reply, validates each field against the allowed values and
returns the remaining prose as the text shown to the user. Anything malformed
is ignored: the reply text is never lost because of a bad block.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from advisor.pipeline.models import BilingualText

PRIORITIES = ("high", "medium", "low")
ACTION_TYPES = ("research", "visit", "contact", "prepare")
STRUCTURED_KEYS = ("summary", "recommendations", "next_steps")

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
_OUTER_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass(frozen=True)
class StructuredRecommendation:
    car_make: str
    car_model: str
    match_score: float
    reasoning: BilingualText

    def matches(self, make: str, model: str) -> bool:
        return (
            self.car_make.casefold() == make.casefold()
            and (not self.car_model or self.car_model.casefold() == model.casefold())
        )


@dataclass(frozen=True)
class StructuredNextStep:
    title: BilingualText
    description: BilingualText
    priority: str = "medium"
    action_type: str = "research"


@dataclass(frozen=True)
class ParsedReply:
    display_text: str
    summary: Optional[BilingualText] = None
    recommendations: List[StructuredRecommendation] = field(default_factory=list)
    next_steps: List[StructuredNextStep] = field(default_factory=list)

    @property
    def has_structure(self) -> bool:
        return bool(self.summary or self.recommendations or self.next_steps)


def clean_model_text(text: str) -> str:
    """Strip a code fence wrapped around the whole reply."""
    return _OUTER_FENCE.sub("", text.strip()).strip()


def _bilingual(value: Any) -> Optional[BilingualText]:
    if isinstance(value, str) and value.strip():
        return BilingualText(en=value.strip(), zh=value.strip())
    if isinstance(value, dict):
        en = str(value.get("en") or "").strip()
        zh = str(value.get("zh") or "").strip()
        if en or zh:
            return BilingualText(en=en or zh, zh=zh or en)
    return None


def _score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.5
    if score != score:  # NaN
        return 0.5
    return min(1.0, max(0.0, score))


def _parse_recommendations(raw: Any) -> List[StructuredRecommendation]:
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        make = str(entry.get("car_make") or "").strip()
        if not make:
            continue
        items.append(
            StructuredRecommendation(
                car_make=make,
                car_model=str(entry.get("car_model") or "").strip(),
                match_score=_score(entry.get("match_score")),
                reasoning=_bilingual(entry.get("reasoning")) or BilingualText(),
            )
        )
    return items


def _parse_next_steps(raw: Any) -> List[StructuredNextStep]:
    if not isinstance(raw, list):
        return []
    steps = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        title = _bilingual(entry.get("title"))
        if title is None:
            continue
        priority = str(entry.get("priority") or "").lower()
        action_type = str(entry.get("action_type") or "").lower()
        steps.append(
            StructuredNextStep(
                title=title,
                description=_bilingual(entry.get("description")) or BilingualText(),
                priority=priority if priority in PRIORITIES else "medium",
                action_type=action_type if action_type in ACTION_TYPES else "research",
            )
        )
    return steps


def _locate_block(text: str) -> Optional[Tuple[int, int, dict]]:
    """Span and payload of the structured block, preferring the last fenced one."""
    for match in reversed(list(_FENCED_BLOCK.finditer(text))):
        payload = _loads(match.group(1))
        if payload is not None:
            return match.start(), match.end(), payload

    # Unfenced fallback: a trailing JSON object that carries one of our keys.
    start = text.find("{")
    while start != -1:
        candidate = text[start:].rstrip()
        if candidate.endswith("}"):
            payload = _loads(candidate)
            if payload is not None and any(key in payload for key in STRUCTURED_KEYS):
                return start, len(text), payload
        start = text.find("{", start + 1)
    return None


def _loads(raw: str) -> Optional[dict]:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return None
    return payload if isinstance(payload, dict) else None


def parse_structured_reply(text: str) -> ParsedReply:
    if not text:
        return ParsedReply(display_text="")
    located = _locate_block(text)
    if located is None:
        return ParsedReply(display_text=clean_model_text(text))

    start, end, payload = located
    display_text = (text[:start] + text[end:]).strip()
    return ParsedReply(
        display_text=display_text,
        summary=_bilingual(payload.get("summary")),
        recommendations=_parse_recommendations(payload.get("recommendations")),
        next_steps=_parse_next_steps(payload.get("next_steps")),
    )


FENCE = "```"


class ProseGate:
    """Incremental filter that forwards the prose of a streamed reply.

    Everything from the first code fence on is withheld. Leading whitespace is
    dropped and trailing whitespace (or a partial fence) is held back until
    more prose follows, so the forwarded text lines up with the stripped
    display text of the finished reply.
    """

    def __init__(self):
        self._pending = ""
        self._started = False
        self.closed = False

    def feed(self, text: str) -> str:
        if self.closed:
            return ""
        buffer = self._pending + text
        if not self._started:
            buffer = buffer.lstrip()

        fence = buffer.find(FENCE)
        if fence != -1:
            self.closed = True
            self._pending = ""
            ready = buffer[:fence].rstrip()
        else:
            cut = len(buffer)
            for size in (2, 1):
                if buffer.endswith(FENCE[:size]):
                    cut -= size
                    break
            cut = len(buffer[:cut].rstrip())
            ready, self._pending = buffer[:cut], buffer[cut:]

        if ready:
            self._started = True
        return ready
