"""Controller for the Cars feature."""
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from api.features.cars.dtos import CarDTO, CarListResponse, CarSearchResponse
from api.features.cars.service import CarService


class CarController:
    def __init__(self, car_service: CarService):
        self.car_service = car_service

    async def get_car(self, car_id: str, *, db_session: AsyncSession) -> CarDTO:
        return await self.car_service.get_car(car_id, db_session=db_session)

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
    ) -> CarListResponse:
        items, total = await self.car_service.list_cars(
            category=category,
            fuel_type=fuel_type,
            make=make,
            min_price=min_price,
            max_price=max_price,
            offset=offset,
            limit=limit,
            db_session=db_session,
        )
        return CarListResponse(items=items, total=total, offset=offset, limit=limit)

    async def search_cars(self, query: str, *, limit: int, db_session: AsyncSession) -> CarSearchResponse:
        keywords, items = await self.car_service.search_cars(query, limit=limit, db_session=db_session)
        return CarSearchResponse(query=query, keywords=keywords, items=items)
