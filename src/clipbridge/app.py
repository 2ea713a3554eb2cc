from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from clipbridge.config import Config
from clipbridge.core.core import Core
from clipbridge.core.modules.broadcast.models import Connection
from clipbridge.core.modules.session.models import ClipboardContent, ConnectResult
from clipbridge.core.store import SessionStore


class App:
    """Facade for all application operations used by the web layer."""

    def __init__(self, config: Config, store: SessionStore | None = None) -> None:
        self._core = Core(config, store)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def connect_device(self, code: str | None = None) -> ConnectResult:
        """Create a new session when no code is given, otherwise join the existing one."""
        return await self._core.services.session.create_or_join(code)

    async def get_content(self, code: str) -> ClipboardContent:
        """Get decrypted clipboard text of a session."""
        return await self._core.services.session.read_content(code)

    def get_connected_count(self) -> int:
        return self._core.services.broadcast.connected_count

    # === Realtime channel ===
    def open_connection(self) -> Connection:
        return Connection(max_pending=self._core.config.outbox_max_events)

    async def handle_message(self, connection: Connection, raw: str | bytes) -> None:
        await self._core.services.broadcast.dispatch(connection, raw)

    async def close_connection(self, connection: Connection) -> None:
        await self._core.services.broadcast.disconnect(connection)
