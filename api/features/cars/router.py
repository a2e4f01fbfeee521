"""Router for the Cars feature."""
import logging
from decimal import Decimal
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from di.container import ApplicationContainer as DependencyContainer
from api.features.cars.controller import CarController
from api.features.cars.dtos import CarDTO, CarListResponse, CarSearchResponse
from api.features.cars.exceptions import CarNotFoundError
from api.shared.db import get_db_session
from api.shared.response import ResponseModel

router = APIRouter()

logger = logging.getLogger("advisor.cars")


@router.get("/", response_model=ResponseModel[CarListResponse])
@inject
async def list_cars(
    category: Optional[str] = Query(None),
    fuel_type: Optional[str] = Query(None),
    make: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    controller: CarController = Depends(Provide[DependencyContainer.controllers.car_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.list_cars(
            category=category,
            fuel_type=fuel_type,
            make=make,
            min_price=min_price,
            max_price=max_price,
            offset=offset,
            limit=limit,
            db_session=db_session,
        )
        return ResponseModel.success(data=result, message="Cars listed")
    except Exception as e:
        logger.exception("Failed to list cars")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/search", response_model=ResponseModel[CarSearchResponse])
@inject
async def search_cars(
    q: str = Query(..., min_length=1, max_length=200, description="Free-text query"),
    limit: int = Query(5, ge=1, le=20),
    controller: CarController = Depends(Provide[DependencyContainer.controllers.car_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        result = await controller.search_cars(q, limit=limit, db_session=db_session)
        return ResponseModel.success(data=result, message="Cars searched")
    except Exception as e:
        logger.exception("Failed to search cars")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{car_id}", response_model=ResponseModel[CarDTO])
@inject
async def get_car(
    car_id: str,
    controller: CarController = Depends(Provide[DependencyContainer.controllers.car_controller]),
    db_session: AsyncSession = Depends(get_db_session),
):
    try:
        car = await controller.get_car(car_id, db_session=db_session)
        return ResponseModel.success(data=car, message="Car fetched")
    except CarNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.exception("Failed to fetch car")
        raise HTTPException(status_code=500, detail=str(e))
