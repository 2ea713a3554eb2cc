from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="ClipBridge API",
            version="0.1.0",
            summary="Share a short clipboard between devices with a 6-digit code",
            description="Realtime updates are delivered over the WebSocket endpoint `/ws`.",
            routes=app.routes,
        )

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "Device code must be 6 digits", "type": "validation_error"},
                {"error": "Session not found", "type": "not_found"},
                {"error": "Internal server error", "type": "internal_server_error"},
            ]
        }
    }
