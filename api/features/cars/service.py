"""Service layer for the Cars feature."""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from advisor.extractors.keywords import extract_car_keywords
from api.features.cars.dtos import CarDTO
from api.features.cars.exceptions import CarNotFoundError
from api.features.cars.repositories.car_repository import CarRepository
from api.shared.utils import is_valid_uuid

logger = logging.getLogger("advisor.cars.service")


def search_terms(query: str) -> List[str]:
    """Vocabulary hits in the query, or its whitespace-separated words when nothing matches."""
    keywords = extract_car_keywords(query)
    if keywords:
        return keywords
    return [word for word in query.split() if len(word) > 1]


class CarService:
    async def get_car(self, car_id: str, *, db_session: AsyncSession) -> CarDTO:
        if not is_valid_uuid(car_id):
            raise CarNotFoundError(car_id)
        entity = await CarRepository(db_session).get_by_id(car_id)
        if entity is None or not entity.is_active:
            raise CarNotFoundError(car_id)
        return CarDTO.from_entity(entity)

    async def list_cars(
        self,
        *,
        category: Optional[str],
        fuel_type: Optional[str],
        make: Optional[str],
        min_price: Optional[Decimal],
        max_price: Optional[Decimal],
        offset: int,
        limit: int,
        db_session: AsyncSession,
    ) -> Tuple[List[CarDTO], int]:
        entities, total = await CarRepository(db_session).browse(
            category=category,
            fuel_type=fuel_type,
            make=make,
            min_price=min_price,
            max_price=max_price,
            offset=offset,
            limit=limit,
        )
        return [CarDTO.from_entity(entity) for entity in entities], total

    async def search_cars(
        self, query: str, *, limit: int, db_session: AsyncSession
    ) -> Tuple[List[str], List[CarDTO]]:
        keywords = search_terms(query)
        entities = await CarRepository(db_session).search_keywords(keywords, limit=limit)
        logger.info(f"Car search '{query}' -> {keywords}: {len(entities)} hits")
        return keywords, [CarDTO.from_entity(entity) for entity in entities]
