from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from clipbridge.app import App
from clipbridge.config import Config
from clipbridge.errors import ResourceExhaustedError, UserError
from clipbridge.utils import now
from clipbridge.web.deps import AppDep
from clipbridge.web.error_handlers import (
    general_exception_handler,
    http_exception_handler,
    request_validation_handler,
    resource_exhausted_handler,
    user_error_handler,
)
from clipbridge.web.openapi import set_custom_openapi
from clipbridge.web.routers import realtime_router, sessions_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        # Store app instance and config in app state
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="ClipBridge API",
        lifespan=lifespan,
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check(app_dep: AppDep) -> dict[str, Any]:
        return {"status": "OK", "timestamp": now().isoformat(), "connectedCount": app_dep.get_connected_count()}

    app.include_router(sessions_router)
    app.include_router(realtime_router)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(ResourceExhaustedError, resource_exhausted_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
