"""Router for the Health feature."""
import logging
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from di.container import ApplicationContainer as DependencyContainer
from api.features.health.controller import HealthController
from api.features.health.dtos import HealthReport, HealthRequest

router = APIRouter()

logger = logging.getLogger("advisor.health")


def _respond(controller: HealthController, report: HealthReport) -> JSONResponse:
    if report.status != "healthy":
        logger.warning(f"Health check reported {report.status}")
    return JSONResponse(
        status_code=controller.status_code(report), content=report.model_dump(mode="json")
    )


@router.get("", response_model=HealthReport, responses={207: {"model": HealthReport}, 503: {"model": HealthReport}})
@inject
async def health(
    controller: HealthController = Depends(Provide[DependencyContainer.controllers.health_controller]),
):
    """Ping the database and the model: 200 healthy, 207 degraded, 503 error."""
    return _respond(controller, await controller.check())


@router.post("", response_model=HealthReport, responses={207: {"model": HealthReport}, 503: {"model": HealthReport}})
@inject
async def detailed_health(
    request: Optional[HealthRequest] = None,
    controller: HealthController = Depends(Provide[DependencyContainer.controllers.health_controller]),
):
    detailed = request.detailed if request else False
    return _respond(controller, await controller.check(detailed=detailed))
