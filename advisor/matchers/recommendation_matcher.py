"""Map extracted keywords to catalog cars and score them.

Matching is best-effort enrichment: a failing catalog query yields no matches
instead of failing the turn.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence

import structlog

from advisor.extractors.structured_reply import StructuredRecommendation
from advisor.pipeline.models import BilingualText, CarRecord

logger = structlog.get_logger("advisor")

MAX_RECOMMENDATIONS = 5

BASE_SCORE = 40
SCORE_PER_HIT = 20


class CarCatalog(Protocol):
    async def search_cars(self, keywords: Sequence[str], limit: int) -> list[CarRecord]:
        ...


def keyword_hits(car: CarRecord, keywords: Sequence[str]) -> list[str]:
    """Keywords that occur in the car's make, model or category."""
    fields = " ".join((car.make, car.model, car.category)).casefold()
    return [keyword for keyword in keywords if keyword.casefold() in fields]


def find_structured(
    car: CarRecord, structured: Sequence[StructuredRecommendation]
) -> Optional[StructuredRecommendation]:
    for item in structured:
        if item.matches(car.make, car.model):
            return item
    return None


class RecommendationMatcher:
    def __init__(self, catalog: CarCatalog, limit: int = MAX_RECOMMENDATIONS):
        self.catalog = catalog
        self.limit = max(0, min(limit, MAX_RECOMMENDATIONS))

    async def match(self, keywords: Sequence[str]) -> list[CarRecord]:
        if not keywords or not self.limit:
            return []
        try:
            cars = await self.catalog.search_cars(list(keywords), self.limit)
        except Exception as e:
            logger.warning("matcher.catalog_failed", keywords=list(keywords), error=str(e))
            return []
        return list(cars)[: self.limit]

    @staticmethod
    def score(
        car: CarRecord,
        keywords: Sequence[str],
        structured: Sequence[StructuredRecommendation] = (),
    ) -> int:
        """Relevance 0..100: the model's own score if it named this car, else keyword overlap."""
        named = find_structured(car, structured)
        if named is not None:
            return int(round(named.match_score * 100))
        hits = len(keyword_hits(car, keywords))
        return max(0, min(100, BASE_SCORE + SCORE_PER_HIT * hits))

    @staticmethod
    def reasoning(
        car: CarRecord,
        keywords: Sequence[str],
        structured: Sequence[StructuredRecommendation] = (),
    ) -> BilingualText:
        named = find_structured(car, structured)
        if named is not None and (named.reasoning.en or named.reasoning.zh):
            return named.reasoning
        if car.description_en or car.description_zh:
            return BilingualText(
                en=car.description_en or car.description_zh or "",
                zh=car.description_zh or car.description_en or "",
            )
        hits = keyword_hits(car, keywords) or list(keywords)
        joined = ", ".join(hits)
        return BilingualText(
            en=f"{car.display_name} matches what was discussed: {joined}.",
            zh=f"{car.display_name} 符合对话中提到的条件：{joined}。",
        )
