"""Health checks against the database and the chat model.

The quick check pings both services once. The database being unreachable is an
error, since no turn can be stored; a failing model only degrades the API
because chat turns still answer with the fallback reply. The detailed check
counts the main tables and runs a few representative prompts.
"""
import asyncio
import logging
import time
from typing import Any, Dict, List, Sequence

from sqlalchemy import text

from advisor.llm.invoker import ModelInvoker
from advisor.prompts.chat.system_prompt import AssembledPrompt
from api.features.cars.repositories.car_repository import CarRepository
from api.features.conversations.repositories.conversation_repository import ConversationRepository
from api.features.health.dtos import HealthCheck, HealthReport, HealthSummary, ServiceStatus
from infra.resources import DatabaseResource

logger = logging.getLogger("advisor.health.service")

PING_PROMPT = "测试连接"
DETAILED_PROMPTS = ("你好", "推荐一款汽车", "比较两款车型的优缺点")
PREVIEW_CHARS = 100


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def _ping(prompt: str) -> AssembledPrompt:
    return AssembledPrompt(system="Reply in one short sentence.", turns=(("user", prompt),), language="zh")


class HealthService:
    def __init__(self, database: DatabaseResource, invoker: ModelInvoker, environment: str):
        self.database = database
        self.invoker = invoker
        self.environment = environment

    async def check(self) -> HealthReport:
        start = time.time()
        database = await self._check_database()
        model = await self._check_model()
        if database.status == "error":
            status = "error"
        elif model.status == "error":
            status = "degraded"
        else:
            status = "healthy"
        return HealthReport(
            status=status,
            environment=self.environment,
            services={"database": database, "model": model},
            total_latency_ms=_elapsed_ms(start),
        )

    async def check_detailed(self) -> HealthReport:
        start = time.time()
        checks = [await self._check_tables(), await self._check_prompts(DETAILED_PROMPTS)]
        summary = HealthSummary(
            total_checks=len(checks),
            healthy_checks=sum(1 for check in checks if check.status == "healthy"),
            degraded_checks=sum(1 for check in checks if check.status == "degraded"),
            error_checks=sum(1 for check in checks if check.status == "error"),
        )
        if summary.healthy_checks == summary.total_checks:
            status = "healthy"
        elif summary.healthy_checks == 0 and summary.degraded_checks == 0:
            status = "error"
        else:
            status = "degraded"
        return HealthReport(
            status=status,
            environment=self.environment,
            checks=checks,
            summary=summary,
            total_latency_ms=_elapsed_ms(start),
        )

    async def _check_database(self) -> ServiceStatus:
        start = time.time()
        try:
            async with self.database.get_session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return ServiceStatus(
                status="error", latency_ms=_elapsed_ms(start), provider="postgresql", error=str(e)
            )
        return ServiceStatus(status="healthy", latency_ms=_elapsed_ms(start), provider="postgresql")

    async def _check_model(self) -> ServiceStatus:
        start = time.time()
        try:
            await self.invoker.generate(_ping(PING_PROMPT), "zh")
        except Exception as e:
            logger.warning(f"Model health check failed: {e}")
            return ServiceStatus(
                status="error",
                latency_ms=_elapsed_ms(start),
                provider=self.invoker.model_name,
                error=str(e),
            )
        return ServiceStatus(
            status="healthy", latency_ms=_elapsed_ms(start), provider=self.invoker.model_name
        )

    async def _check_tables(self) -> HealthCheck:
        start = time.time()
        try:
            async with self.database.get_session() as session:
                cars = await CarRepository(session).count()
                conversations = await ConversationRepository(session).count()
        except Exception as e:
            logger.warning(f"Database table check failed: {e}")
            return HealthCheck(
                name="database_tables", status="error", latency_ms=_elapsed_ms(start), error=str(e)
            )
        return HealthCheck(
            name="database_tables",
            status="healthy",
            latency_ms=_elapsed_ms(start),
            details={"cars_count": cars, "conversations_count": conversations},
        )

    async def _check_prompts(self, prompts: Sequence[str]) -> HealthCheck:
        start = time.time()
        results: List[Dict[str, Any]] = await asyncio.gather(
            *(self._run_prompt(prompt) for prompt in prompts)
        )
        successes = sum(1 for result in results if result["success"])
        if successes == len(prompts):
            status = "healthy"
        elif successes:
            status = "degraded"
        else:
            status = "error"
        return HealthCheck(
            name="model",
            status=status,
            latency_ms=_elapsed_ms(start),
            details={"total_tests": len(prompts), "successful_tests": successes, "results": results},
        )

    async def _run_prompt(self, prompt: str) -> Dict[str, Any]:
        try:
            reply = await self.invoker.generate(_ping(prompt), "zh")
        except Exception as e:
            return {"prompt": prompt, "success": False, "error": str(e)}
        return {"prompt": prompt, "success": True, "response": reply[:PREVIEW_CHARS]}
