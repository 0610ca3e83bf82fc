"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from idregistry.api.dependencies import CurrentGate, CurrentSettings
from idregistry.api.errors import register_exception_handlers
from idregistry.api.router import api_router
from idregistry.config import settings
from idregistry.core import database
from idregistry.core.db_kernel import db_read
from idregistry.core.exceptions import ConfigurationError, StorageError
from idregistry.core.logging import setup_logging
from idregistry.core.random_source import RandomSource, SystemRandomSource
from idregistry.core.suspend_gate import SuspendGate
from idregistry.schemas.common import HealthResponse, HealthSettings
from idregistry.services.settings_store import AllocationSettings, load_allocation_settings

logger = logging.getLogger(__name__)


async def _load_startup_settings() -> AllocationSettings:
    try:
        return await db_read(load_allocation_settings, operation_name="load_settings")
    except StorageError as exc:
        raise ConfigurationError(
            "Could not read the settings table",
            details={"reason": exc.message},
        ) from exc


def create_app(*, random_source: RandomSource | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging(settings.log_level)
        logger.info(
            "Starting IdRegistry",
            extra={"environment": settings.environment, "version": settings.app_version},
        )

        database.init_engine()
        try:
            if settings.environment == "development":
                await database.init_db()
            allocation_settings = await _load_startup_settings()
        except Exception:
            await database.close_db()
            raise

        app.state.allocation_settings = allocation_settings
        app.state.suspend_gate = SuspendGate(allocation_settings.admin_secret)
        app.state.random_source = random_source or SystemRandomSource()
        app.state.database_path = database.database_path

        logger.info(
            "Database pool ready",
            extra={
                "database_path": database.database_path,
                "id_length": allocation_settings.id_length,
                "charset": allocation_settings.charset,
            },
        )

        yield

        logger.info("Shutting down IdRegistry")
        await database.close_db()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Issues short, collision-free identifiers and tracks their lifecycle",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health check",
        description="Return suspend state, storage location and active settings.",
    )
    async def health_check(
        gate: CurrentGate,
        allocation_settings: CurrentSettings,
    ) -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="suspended" if gate.is_suspended() else "ok",
            db_path=str(app.state.database_path),
            settings=HealthSettings(**allocation_settings.public_view()),
        )

    return app


app = create_app()
