import logging
import sys
import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request

from di.container import ApplicationContainer as DependencyContainer
from api.shared.dtos import ErrorResponse
from api.shared.exceptions import AdvisorException, DatabaseError
from core.settings import SETTINGS

# Configure logging
logging.basicConfig(
    level=SETTINGS.APP.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if SETTINGS.APP.JSON_LOGS
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        logging.getLevelName(SETTINGS.APP.LOG_LEVEL.upper())
    ),
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = logging.getLogger("advisor")


class CustomFastAPI(FastAPI):
    container: DependencyContainer


@asynccontextmanager
async def lifespan(_app: CustomFastAPI):
    logger.info("Starting application initialization...")
    start_time = time.time()

    try:
        logger.info("Initializing database connection...")
        db_start = time.time()
        db_resource = _app.container.infrastructure.database()
        await db_resource.init()
        async with db_resource.engine.begin() as _conn:
            await _conn.execute(text("SELECT 1"))
        logger.info(f"Database connection established in {time.time() - db_start:.2f}s")
        logger.info(
            f"Application startup completed in {time.time() - start_time:.2f}s "
            f"(model={SETTINGS.OPENAI.OPENAI_MODEL}, stream_mode={SETTINGS.CHAT.STREAM_MODE})"
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to initialize application")
        raise DatabaseError("Database is unreachable", details={"reason": str(e)}) from e

    yield

    db_resource = _app.container.infrastructure.database()
    if db_resource:
        await db_resource.shutdown()
    logger.info("Application shutdown complete")


def create_fastapi_app() -> CustomFastAPI:
    _app = CustomFastAPI(
        title="ReHui Car Advisor API",
        description="Bilingual car-buying advisor chat for the Canadian market",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Initialize dependency container
    _app.container = DependencyContainer()
    _app.container.wire(modules=[sys.modules[__name__]])
    _app.container.init_resources()

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=SETTINGS.APP.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include feature routers
    from api.features.cars.router import router as cars_router
    from api.features.chat.router import router as chat_router
    from api.features.conversations.router import router as conversations_router
    from api.features.health.router import router as health_router
    from api.features.recommendations.router import router as recommendations_router
    from api.features.users.router import router as users_router

    _app.include_router(chat_router, prefix="/api/v1/chat", tags=["Chat"])
    _app.include_router(
        conversations_router, prefix="/api/v1/conversations", tags=["Conversations"]
    )
    _app.include_router(cars_router, prefix="/api/v1/cars", tags=["Cars"])
    _app.include_router(
        recommendations_router, prefix="/api/v1/recommendations", tags=["Recommendations"]
    )
    _app.include_router(users_router, prefix="/api/v1/users", tags=["Users"])
    _app.include_router(health_router, prefix="/health", tags=["Health"])

    return _app


app = create_fastapi_app()


# Exception handlers
@app.exception_handler(404)
async def not_found_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "detail": getattr(exc, "detail", "Not Found"),
            "path": str(request.url.path),
            "status_code": 404,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation Error",
            "detail": jsonable_encoder(
                [{key: value for key, value in error.items() if key != "ctx"} for error in exc.errors()]
            ),
            "status_code": 400,
        },
    )


@app.exception_handler(AdvisorException)
async def advisor_exception_handler(request: Request, exc: AdvisorException):
    body = ErrorResponse(error_code=exc.error_code, message=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "status_code": 500,
        },
    )
