"""Car catalog repository."""
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select

from api.features.cars.entities.car import Car
from api.shared.base import BaseRepository


class CarRepository(BaseRepository[Car]):
    """Read access to the active catalog."""

    model = Car

    async def search_keywords(self, keywords: Sequence[str], *, limit: int = 5) -> List[Car]:
        """Active cars whose make, model or category contains any keyword (case-insensitive)."""
        if not keywords:
            return []
        clauses = []
        for keyword in keywords:
            pattern = f"%{keyword}%"
            clauses.extend(
                [Car.make.ilike(pattern), Car.model.ilike(pattern), Car.category.ilike(pattern)]
            )
        stmt = select(Car).where(Car.is_active.is_(True), or_(*clauses)).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_ids(self, car_ids: Sequence[str]) -> List[Car]:
        if not car_ids:
            return []
        result = await self.session.execute(select(Car).where(Car.id.in_(set(car_ids))))
        return list(result.scalars().all())

    async def browse(
        self,
        *,
        category: Optional[str] = None,
        fuel_type: Optional[str] = None,
        make: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Car], int]:
        stmt = select(Car).where(Car.is_active.is_(True))
        count_stmt = select(func.count(Car.id)).where(Car.is_active.is_(True))
        filters = dict(category=category, fuel_type=fuel_type)
        stmt = self._apply_filters(stmt, filters)
        count_stmt = self._apply_filters(count_stmt, filters)
        if make:
            stmt = stmt.where(Car.make.ilike(make))
            count_stmt = count_stmt.where(Car.make.ilike(make))
        if min_price is not None:
            stmt = stmt.where(Car.price_max >= min_price)
            count_stmt = count_stmt.where(Car.price_max >= min_price)
        if max_price is not None:
            stmt = stmt.where(Car.price_min <= max_price)
            count_stmt = count_stmt.where(Car.price_min <= max_price)
        return await self._paginate(stmt, count_stmt, offset=offset, limit=limit, order_by="make")
