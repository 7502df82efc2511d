import json
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from deckpad.api.schemas import ErrorResponse, HealthResponse
from deckpad.api.v1.presentations import router as presentations_router
from deckpad.core import dependencies
from deckpad.core.config import settings
from deckpad.core.logging import get_logger, setup_logging
from deckpad.core.observability import setup_observability
from deckpad.infrastructure.db.database import Database

logger = get_logger(__name__)


class CustomJSONResponse(JSONResponse):
    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
            default=jsonable_encoder,
        ).encode("utf-8")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    await startup_event(app)
    try:
        yield
    finally:
        await shutdown_event(app)


async def startup_event(app: FastAPI) -> None:
    logger.info("Starting up Deckpad API", version=settings.version)

    try:
        setup_observability()

        database = Database(settings.database_url, settings.database_echo)
        await database.initialize()
        if not settings.is_production():
            await database.create_tables()
        dependencies.database = database

        db_healthy = await database.health_check()
        if not db_healthy:
            raise RuntimeError("Database health check failed")

        logger.info(
            "Application startup completed successfully",
            database_healthy=db_healthy,
            environment=settings.environment,
        )
    except Exception as e:
        logger.error("Application startup failed", error=str(e))
        raise


async def shutdown_event(app: FastAPI) -> None:
    logger.info("Shutting down Deckpad API")

    try:
        if dependencies.database:
            await dependencies.database.close()
            dependencies.database = None
        logger.info("Application shutdown completed")
    except Exception as e:
        logger.error("Error during shutdown", error=str(e))


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    setup_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Outline generation, editing and versioned presentation storage",
        docs_url="/docs" if not settings.is_production() else None,
        redoc_url="/redoc" if not settings.is_production() else None,
        lifespan=lifespan,
        default_response_class=CustomJSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(presentations_router, prefix="/api")

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        services = {}
        if dependencies.database:
            services["database"] = await dependencies.database.health_check()

        all_healthy = all(services.values()) if services else False

        return HealthResponse(
            status="healthy" if all_healthy else "unhealthy",
            timestamp=datetime.now(UTC),
            services=services,
            version=settings.version,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        logger.error(
            "Unhandled exception",
            error=str(exc),
            path=str(request.url.path),
            method=request.method,
        )

        return CustomJSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="internal_server_error",
                message="An unexpected error occurred",
            ).model_dump(),
        )

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "deckpad.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        log_level=settings.log_level.lower(),
    )
