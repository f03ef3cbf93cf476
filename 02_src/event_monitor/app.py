"""Application bootstrap and lifecycle management."""

import os
from pathlib import Path
from typing import Protocol

from .buffer import LiveEventBuffer
from .config import resolve_buffer_capacity, resolve_catalog_path, resolve_db_path
from .dashboard import Dashboard
from .discovery import ChannelDiscovery
from .logging_config import get_logger
from .storage import IStorage, Storage
from .subscriptions import SubscriptionRegistry
from .transport import InMemoryPubSubClient, IPubSubClient

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Drop subscriptions, live events and persisted logs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        catalog_path: str | Path | None = None,
        client: IPubSubClient | None = None,
        buffer_capacity: int | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        env_catalog = os.getenv("CHANNEL_CATALOG") if catalog_path is None else catalog_path
        self._catalog_path = resolve_catalog_path(env_catalog)
        self._buffer_capacity = buffer_capacity or resolve_buffer_capacity()

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._client: IPubSubClient | None = client
        self._buffer: LiveEventBuffer | None = None
        self._registry: SubscriptionRegistry | None = None
        self._discovery: ChannelDiscovery | None = None
        self._dashboard: Dashboard | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Transport client, constructed once and shared
        if self._client is None:
            self._client = InMemoryPubSubClient()
        logger.info("Transport client initialized")

        # 3. Live buffer (no dependencies)
        self._buffer = LiveEventBuffer(capacity=self._buffer_capacity)

        # 4. Registry (depends on transport, buffer, storage)
        self._registry = SubscriptionRegistry(
            client=self._client,
            buffer=self._buffer,
            persistence=self._storage,
        )
        logger.info("Subscription registry initialized")

        # 5. Discovery (depends on storage)
        self._discovery = ChannelDiscovery(self._storage, self._catalog_path)
        await self._discovery.load_catalog()

        # 6. Dashboard (depends on everything above)
        self._dashboard = Dashboard(
            discovery=self._discovery,
            registry=self._registry,
            buffer=self._buffer,
            persistence=self._storage,
        )
        await self._registry.probe_availability()
        await self._dashboard.refresh()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._registry:
            await self._registry.teardown()
            await self._registry.drain()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Drop subscriptions, live events and persisted logs."""
        if self._registry:
            await self._registry.teardown()
            await self._registry.drain()
        if self._buffer:
            self._buffer.clear_all()
        if self._dashboard:
            self._dashboard.reset()
        if self._storage:
            await self._storage.clear()
            logger.info("Reset complete")

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def client(self) -> IPubSubClient:
        """Get transport client instance."""
        if not self._client:
            raise RuntimeError("Application not started")
        return self._client

    @property
    def buffer(self) -> LiveEventBuffer:
        """Get live buffer instance."""
        if not self._buffer:
            raise RuntimeError("Application not started")
        return self._buffer

    @property
    def registry(self) -> SubscriptionRegistry:
        """Get subscription registry instance."""
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def discovery(self) -> ChannelDiscovery:
        """Get discovery service instance."""
        if not self._discovery:
            raise RuntimeError("Application not started")
        return self._discovery

    @property
    def dashboard(self) -> Dashboard:
        """Get dashboard instance."""
        if not self._dashboard:
            raise RuntimeError("Application not started")
        return self._dashboard
