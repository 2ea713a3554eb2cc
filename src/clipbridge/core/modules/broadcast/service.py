from collections.abc import Awaitable

import structlog
from pydantic import ValidationError as PydanticValidationError

from clipbridge.core.core import Service
from clipbridge.core.modules.broadcast.models import (
    Binding,
    ClientEventType,
    ClientMessage,
    Connection,
    JoinPayload,
    ServerEvent,
    UpdatePayload,
)
from clipbridge.core.store import SessionStore
from clipbridge.errors import AccessDeniedError, NotFoundError, UserError, ValidationError
from clipbridge.utils import is_device_code, now

logger = structlog.get_logger(__name__)

STALLED_MESSAGE = "Too many pending events, join again"


class BroadcastService(Service):
    """Routes realtime events between connections bound to the same session.

    Group membership is a routing cache only. Losing it drops live delivery,
    never data; clients rebuild it by joining again.
    """

    def __init__(self, store: SessionStore) -> None:
        super().__init__(store)
        self._groups: dict[str, dict[str, Connection]] = {}

    async def on_stop(self) -> None:
        if self._groups:
            logger.info("broadcast_groups_dropped", groups=len(self._groups), connections=self.connected_count)
        self._groups.clear()

    @property
    def connected_count(self) -> int:
        """Number of connections currently bound to a session."""
        return sum(len(group) for group in self._groups.values())

    def members(self, code: str) -> list[Connection]:
        return list(self._groups.get(code, {}).values())

    def publish(self, code: str, event: ServerEvent, exclude: Connection | None = None) -> int:
        """Queue an event for every member of the group. Returns the number of recipients.

        Members whose outbox is full are evicted and the rest of the group
        is told they left.
        """
        recipients = [c for c in self.members(code) if exclude is None or c.id != exclude.id]
        stalled = [c for c in recipients if not c.send(event)]
        for connection in stalled:
            self._evict(connection)
        for _ in stalled:
            if code in self._groups:
                self.publish(code, ServerEvent.peer_disconnected())
        return len(recipients) - len(stalled)

    async def dispatch(self, connection: Connection, raw: str | bytes) -> None:
        """Parse one client frame and run the matching transition."""
        try:
            message = ClientMessage.model_validate_json(raw)
            action: Awaitable[None]
            if message.event == ClientEventType.JOIN:
                join = JoinPayload.model_validate(message.data)
                action = self.join(connection, join.code, join.secret_key)
            elif message.event == ClientEventType.UPDATE:
                update = UpdatePayload.model_validate(message.data)
                action = self.update(connection, update.text or "")
            elif message.event == ClientEventType.CLEAR:
                action = self.clear(connection)
            else:
                action = self.leave(connection)
        except PydanticValidationError:
            logger.debug("invalid_client_message", connection_id=connection.id)
            connection.send(ServerEvent.error("Invalid message"))
            return

        try:
            await action
        except (NotFoundError, AccessDeniedError) as e:
            connection.send(ServerEvent.error(str(e)))
            # Force the client through the join flow again
            await self.leave(connection)
        except UserError as e:
            connection.send(ServerEvent.error(str(e)))
        except Exception:
            logger.exception("realtime_event_failed", connection_id=connection.id, client_event=message.event)
            connection.send(ServerEvent.error("Internal server error"))

    async def join(self, connection: Connection, code: str, secret_key: str) -> None:
        if connection.is_bound:
            await self.leave(connection)

        if not is_device_code(code):
            raise ValidationError("Invalid device code")

        # Admission shares the mutation lock: the snapshot sent in `joined`
        # is either the latest write or followed by its broadcast.
        async with self.core.services.session.exclusive(code):
            session = await self.core.services.session.authorize(code, secret_key)
            text = self.core.services.cipher.decrypt_or_empty(session.content, session.secret_key, code=code)

            connection.bind(code, session.secret_key)
            group = self._groups.setdefault(code, {})
            group[connection.id] = connection

            connection.send(ServerEvent.joined(code, text))
            self.publish(code, ServerEvent.peer_connected(), exclude=connection)
        logger.info("connection_joined", connection_id=connection.id, code=code, members=len(group))

    async def update(self, connection: Connection, text: str) -> None:
        binding = self._require_binding(connection)
        await self.core.services.session.mutate_content(binding.code, binding.secret_key, text)

    async def clear(self, connection: Connection) -> None:
        binding = self._require_binding(connection)
        await self.core.services.session.clear_content(binding.code, binding.secret_key)

    async def leave(self, connection: Connection) -> None:
        binding = connection.binding
        if binding is None:
            return
        connection.unbind()

        remaining = self._remove_member(binding.code, connection)
        if remaining is None:
            return
        if remaining:
            self.publish(binding.code, ServerEvent.peer_disconnected())
        logger.info("connection_left", connection_id=connection.id, code=binding.code, members=remaining)

    async def disconnect(self, connection: Connection) -> None:
        """Transport closed: drop the connection from its group."""
        await self.leave(connection)
        lifetime = now() - connection.connected_at
        logger.debug("connection_closed", connection_id=connection.id, connected_seconds=round(lifetime.total_seconds(), 1))

    def _evict(self, connection: Connection) -> None:
        """Unbind a client that stopped reading. It has to join again."""
        binding = connection.binding
        if binding is None:
            return
        connection.unbind()
        self._remove_member(binding.code, connection)
        connection.reset(ServerEvent.error(STALLED_MESSAGE))
        logger.warning("connection_stalled", connection_id=connection.id, code=binding.code)

    def _remove_member(self, code: str, connection: Connection) -> int | None:
        """Drop a connection from a group. Returns the members left, or None if it was not there."""
        group = self._groups.get(code)
        if group is None or group.pop(connection.id, None) is None:
            return None
        if not group:
            del self._groups[code]
        return len(group)

    def _require_binding(self, connection: Connection) -> Binding:
        if connection.binding is None:
            raise ValidationError("Not joined to a session")
        return connection.binding
