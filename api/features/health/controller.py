"""Controller for the Health feature."""
from api.features.health.dtos import HealthReport
from api.features.health.service import HealthService

HTTP_STATUS = {"healthy": 200, "degraded": 207, "error": 503}


class HealthController:
    def __init__(self, health_service: HealthService):
        self.health_service = health_service

    async def check(self, *, detailed: bool = False) -> HealthReport:
        if detailed:
            return await self.health_service.check_detailed()
        return await self.health_service.check()

    @staticmethod
    def status_code(report: HealthReport) -> int:
        return HTTP_STATUS[report.status]
