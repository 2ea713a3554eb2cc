from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field, field_validator

from clipbridge.utils import is_device_code
from clipbridge.web.deps import AppDep
from clipbridge.web.openapi import ErrorResponse

router = APIRouter(tags=["session"])


class ConnectRequest(BaseModel):
    """Create a new session, or join an existing one by code."""

    code: str | None = Field(None, description="6-digit device code to join; omit to create a new session")

    @field_validator("code")
    @classmethod
    def validate_code(cls, value: str | None) -> str | None:
        if value is not None and not is_device_code(value):
            raise ValueError("Device code must be 6 digits")
        return value


class ConnectResponse(BaseModel):
    """Session credentials for the realtime channel."""

    success: bool = True
    code: str = Field(..., description="6-digit device code")
    is_new: bool = Field(..., serialization_alias="isNew", description="True when a new session was created")
    secret_key: str = Field(..., serialization_alias="secretKey", description="Key required to join the session")


class ContentResponse(BaseModel):
    """Current clipboard text of a session."""

    success: bool = True
    text: str = Field(..., description="Decrypted clipboard text, empty when nothing is shared")
    last_update: datetime = Field(..., serialization_alias="lastUpdate", description="Last session activity")


@router.post(
    "/session/connect",
    summary="Create or join a session",
    description="Without a code a new session is created. With a code, the existing session is refreshed.",
    operation_id="connectDevice",
    responses={
        200: {"description": "Session credentials"},
        400: {"model": ErrorResponse, "description": "Invalid device code"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
)
async def connect_device(app: AppDep, connect_data: ConnectRequest | None = None) -> ConnectResponse:
    result = await app.connect_device(connect_data.code if connect_data else None)
    return ConnectResponse(code=result.code, is_new=result.is_new, secret_key=result.secret_key)


@router.get(
    "/session/{code}/content",
    summary="Get clipboard content",
    operation_id="getSessionContent",
    responses={
        200: {"description": "Clipboard content"},
        400: {"model": ErrorResponse, "description": "Invalid device code"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_content(code: str, app: AppDep) -> ContentResponse:
    content = await app.get_content(code)
    return ContentResponse(text=content.text, last_update=content.last_update)
