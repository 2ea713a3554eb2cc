"""Device session models."""

from datetime import datetime
from typing import NewType, Self

from pydantic import BaseModel, ConfigDict, Field

from clipbridge.utils import now

SecretKey = NewType("SecretKey", str)


class Session(BaseModel):
    """Shared clipboard of one device code.

    Stored as JSON under device:{code} with a TTL renewed on every write.
    Content holds ciphertext only, an empty string means no clipboard.
    """

    code: str
    secret_key: str = Field(alias="secretKey")
    content: str = ""
    last_active_at: datetime = Field(alias="lastActiveAt", default_factory=now)

    model_config = ConfigDict(populate_by_name=True)

    def to_store(self) -> str:
        """Serialize to the persisted JSON shape with camelCase keys."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_store(cls, raw: str | bytes) -> Self:
        return cls.model_validate_json(raw)


class ConnectResult(BaseModel):
    """Outcome of creating or joining a session."""

    code: str
    secret_key: SecretKey
    is_new: bool


class ClipboardContent(BaseModel):
    """Decrypted clipboard text with the time of the last session activity."""

    text: str
    last_update: datetime
