import asyncio
import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from weakref import WeakValueDictionary

import structlog

from clipbridge.core.core import Service
from clipbridge.core.modules.broadcast.models import ServerEvent
from clipbridge.core.modules.session.models import ClipboardContent, ConnectResult, SecretKey, Session
from clipbridge.core.store import SessionStore
from clipbridge.errors import AccessDeniedError, NotFoundError, ResourceExhaustedError, ValidationError
from clipbridge.utils import is_device_code, now, sanitize_text

logger = structlog.get_logger(__name__)

# Attempts to claim an allocated code that another writer took in between
CREATE_ATTEMPTS = 3


def generate_secret_key() -> SecretKey:
    return SecretKey(secrets.token_hex(32))


class SessionService(Service):
    """Creates, joins and mutates device sessions."""

    def __init__(self, store: SessionStore) -> None:
        super().__init__(store)
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    @property
    def _ttl(self) -> int:
        return self.core.config.session_ttl_seconds

    @asynccontextmanager
    async def exclusive(self, code: str) -> AsyncGenerator[None]:
        """Serialize read-modify-write cycles and realtime admission on one code."""
        if not self.core.config.serialize_mutations:
            yield
            return
        lock = self._locks.get(code)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[code] = lock
        async with lock:
            yield

    async def create_or_join(self, requested_code: str | None = None) -> ConnectResult:
        """Create a new session, or refresh an existing one and return its key."""
        if requested_code is None:
            return await self._create_session()

        if not is_device_code(requested_code):
            raise ValidationError("Device code must be 6 digits")

        async with self.exclusive(requested_code):
            session = await self.store.get(requested_code)
            if session is None:
                raise NotFoundError
            session.last_active_at = now()
            await self.store.put(session, self._ttl)

        logger.info("session_joined", code=requested_code)
        return ConnectResult(code=session.code, secret_key=SecretKey(session.secret_key), is_new=False)

    async def _create_session(self) -> ConnectResult:
        for _ in range(CREATE_ATTEMPTS):
            code = await self.core.services.allocator.allocate()
            session = Session(code=code, secret_key=generate_secret_key())
            if await self.store.create(session, self._ttl):
                logger.info("session_created", code=code)
                return ConnectResult(code=code, secret_key=SecretKey(session.secret_key), is_new=True)
            logger.debug("device_code_claimed_concurrently", code=code)
        raise ResourceExhaustedError("Could not claim a free device code")

    async def authorize(self, code: str, secret_key: str) -> Session:
        """Return the session if the key matches.

        Malformed code, unknown code and wrong key are reported identically.
        """
        if not is_device_code(code) or not secret_key:
            raise AccessDeniedError
        session = await self.store.get(code)
        if session is None or not secrets.compare_digest(session.secret_key.encode(), secret_key.encode()):
            raise AccessDeniedError
        return session

    async def read_content(self, code: str) -> ClipboardContent:
        if not is_device_code(code):
            raise ValidationError("Device code must be 6 digits")
        session = await self.store.get(code)
        if session is None:
            raise NotFoundError
        text = self.core.services.cipher.decrypt_or_empty(session.content, session.secret_key, code=code)
        return ClipboardContent(text=text, last_update=session.last_active_at)

    async def mutate_content(self, code: str, secret_key: str, text: str) -> ClipboardContent:
        """Store sanitized text and broadcast it to every connection in the group."""
        async with self.exclusive(code):
            session = await self.authorize(code, secret_key)
            sanitized = sanitize_text(text, self.core.config.max_text_length)
            session.content = self.core.services.cipher.encrypt(sanitized, session.secret_key)
            session.last_active_at = now()
            await self.store.put(session, self._ttl)
            # Published under the lock so delivery order follows write order
            self.core.services.broadcast.publish(code, ServerEvent.updated(sanitized, session.last_active_at))

        logger.debug("content_updated", code=code, length=len(sanitized))
        return ClipboardContent(text=sanitized, last_update=session.last_active_at)

    async def clear_content(self, code: str, secret_key: str) -> datetime:
        async with self.exclusive(code):
            session = await self.authorize(code, secret_key)
            session.content = ""
            session.last_active_at = now()
            await self.store.put(session, self._ttl)
            self.core.services.broadcast.publish(code, ServerEvent.cleared(session.last_active_at))

        logger.debug("content_cleared", code=code)
        return session.last_active_at
