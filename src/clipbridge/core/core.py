from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import cast

from clipbridge.config import Config
from clipbridge.core.store import SessionStore, create_store


class Service:
    """Base class for services with direct session store access."""

    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from clipbridge.core.modules.allocator.service import CodeAllocatorService  # noqa: PLC0415
    from clipbridge.core.modules.broadcast.service import BroadcastService  # noqa: PLC0415
    from clipbridge.core.modules.cipher.service import CipherService  # noqa: PLC0415
    from clipbridge.core.modules.session.service import SessionService  # noqa: PLC0415

    cipher: CipherService
    allocator: CodeAllocatorService
    session: SessionService
    broadcast: BroadcastService

    def __init__(self, store: SessionStore) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._store = store

        # Service configuration: (attribute_name, module_path, class_name)
        service_configs = [
            ("cipher", "clipbridge.core.modules.cipher.service", "CipherService"),
            ("allocator", "clipbridge.core.modules.allocator.service", "CodeAllocatorService"),
            ("session", "clipbridge.core.modules.session.service", "SessionService"),
            ("broadcast", "clipbridge.core.modules.broadcast.service", "BroadcastService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(store)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop services in reverse order so the broadcaster drains first."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, session store, and all service instances."""

    config: Config
    store: SessionStore
    services: Services

    def __init__(self, config: Config, store: SessionStore | None = None) -> None:
        """Initialize core with config, the session store, and auto-register services."""
        self.config = config
        self.store = store if store is not None else create_store(config.redis_url)
        self.services = Services(self.store)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the store connection on shutdown."""
        await self.services.stop_all()
        await self.store.close()
