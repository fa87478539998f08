"""
Main FastAPI application with logging, dependency injection and middleware setup.
"""
from contextlib import asynccontextmanager

from dishka import Provider, make_async_container
from dishka.integrations.fastapi import DishkaRoute
from dishka.integrations import fastapi as fastapi_integration
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middlewares.response_middleware import (
    RequestContextMiddleware,
    StandardResponseMiddleware,
)
from src.api.exceptions.exception_handlers import register_exception_handlers
from src.api.v1.controllers.scanner import router as scanner_router
from src.core.config import config, Config
from src.core.logging import get_logger, set_service_context, setup_logging
from src.ioc import AppProvider

__version__ = "0.1.0"

setup_logging(
    level="DEBUG" if config.debug else "INFO",
    json_logs=not config.debug,
)
set_service_context(config.app_name, __version__)

logger = get_logger(__name__)


def create_app(app_config: Config = config, provider: Provider | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with Dishka DI container.
    """
    container = make_async_container(provider or AppProvider(), context={Config: app_config})

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("application_startup", app_name=app_config.app_name)
        yield
        logger.info("application_shutdown", app_name=app_config.app_name)
        await container.close()

    app = FastAPI(
        title=app_config.app_name,
        description="Assignment OCR and AI-likelihood screening",
        version=__version__,
        lifespan=lifespan,
    )

    fastapi_integration.setup_dishka(container, app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(StandardResponseMiddleware)
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    health_router = APIRouter(route_class=DishkaRoute, tags=["Health"])

    @health_router.get("/health")
    async def health_check():
        """
        Basic liveness check endpoint.
        """
        return {"status": "healthy", "service": app_config.app_name}

    @health_router.get("/health/ready")
    async def readiness_check():
        """
        Readiness check endpoint.
        """
        return {
            "status": "ready",
            "service": app_config.app_name,
        }

    app.include_router(health_router)
    app.include_router(scanner_router)

    return app


app = create_app()
