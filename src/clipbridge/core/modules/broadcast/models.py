"""Realtime channel messages and per-connection state."""

import asyncio
from datetime import datetime
from enum import StrEnum
from typing import Any, NamedTuple, Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from clipbridge.utils import now


class ClientEventType(StrEnum):
    JOIN = "join"
    UPDATE = "update"
    CLEAR = "clear"
    LEAVE = "leave"


class ServerEventType(StrEnum):
    JOINED = "joined"
    UPDATED = "updated"
    CLEARED = "cleared"
    PEER_CONNECTED = "peer-connected"
    PEER_DISCONNECTED = "peer-disconnected"
    ERROR = "error"


class ClientMessage(BaseModel):
    """Incoming frame: {"event": ..., "data": {...}}."""

    event: ClientEventType
    data: dict[str, Any] = Field(default_factory=dict)


class JoinPayload(BaseModel):
    code: str
    secret_key: str = Field(alias="secretKey")

    model_config = ConfigDict(populate_by_name=True)


class UpdatePayload(BaseModel):
    text: str | None = None


class ServerEvent(BaseModel):
    """Outgoing frame, serialized with model_dump_json."""

    event: ServerEventType
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def joined(cls, code: str, text: str) -> Self:
        return cls(event=ServerEventType.JOINED, data={"code": code, "currentText": text})

    @classmethod
    def updated(cls, text: str, timestamp: datetime) -> Self:
        return cls(event=ServerEventType.UPDATED, data={"text": text, "timestamp": timestamp})

    @classmethod
    def cleared(cls, timestamp: datetime) -> Self:
        return cls(event=ServerEventType.CLEARED, data={"timestamp": timestamp})

    @classmethod
    def peer_connected(cls) -> Self:
        return cls(event=ServerEventType.PEER_CONNECTED, data={"message": "A device connected"})

    @classmethod
    def peer_disconnected(cls) -> Self:
        return cls(event=ServerEventType.PEER_DISCONNECTED, data={"message": "A device disconnected"})

    @classmethod
    def error(cls, message: str) -> Self:
        return cls(event=ServerEventType.ERROR, data={"message": message})


class ConnectionState(StrEnum):
    UNBOUND = "unbound"
    BOUND = "bound"


class Binding(NamedTuple):
    code: str
    secret_key: str


class Connection:
    """One realtime client.

    Events are queued on the outbox; the transport drains it in order.
    A bounded outbox that fills up marks the client as stalled.
    """

    def __init__(self, connection_id: str | None = None, max_pending: int = 0) -> None:
        self.id = connection_id or uuid4().hex
        self.connected_at = now()
        self.binding: Binding | None = None
        self.outbox: asyncio.Queue[ServerEvent] = asyncio.Queue(maxsize=max_pending)

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.BOUND if self.binding is not None else ConnectionState.UNBOUND

    @property
    def is_bound(self) -> bool:
        return self.binding is not None

    def send(self, event: ServerEvent) -> bool:
        """Queue an event. Returns False when the outbox is full."""
        try:
            self.outbox.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def reset(self, event: ServerEvent) -> None:
        """Drop every pending event and queue a single one in their place."""
        while not self.outbox.empty():
            self.outbox.get_nowait()
        self.outbox.put_nowait(event)

    def bind(self, code: str, secret_key: str) -> None:
        self.binding = Binding(code, secret_key)

    def unbind(self) -> None:
        self.binding = None
