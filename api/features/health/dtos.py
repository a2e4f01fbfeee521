"""DTOs for the Health feature."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from api.shared.dtos import BaseDTO
from api.shared.utils import utcnow

Status = Literal["healthy", "degraded", "error"]


class HealthRequest(BaseDTO):
    detailed: bool = Field(default=False, description="Run the slower table and model checks")


class ServiceStatus(BaseDTO):
    status: Status
    latency_ms: int = 0
    provider: str
    error: Optional[str] = None


class HealthCheck(BaseDTO):
    name: str
    status: Status
    latency_ms: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class HealthSummary(BaseDTO):
    total_checks: int
    healthy_checks: int
    degraded_checks: int
    error_checks: int


class HealthReport(BaseDTO):
    """Health of the API and its backing services."""

    status: Status
    timestamp: datetime = Field(default_factory=utcnow)
    version: str = Field(default="0.1.0")
    environment: str
    services: Dict[str, ServiceStatus] = Field(default_factory=dict)
    checks: List[HealthCheck] = Field(default_factory=list)
    summary: Optional[HealthSummary] = None
    total_latency_ms: int = 0
