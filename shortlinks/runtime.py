"""Application runtime.

Owns every long-lived resource: the Redis client, the database engine, the
storage tiers, the services built on top of them and the scheduler. The
runtime is created once per application, started on startup and shut down
on shutdown. Nothing connects at import time.
"""

from typing import Any, Dict, List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from shortlinks.core.config import Settings, settings as default_settings
from shortlinks.core.redis import RedisClientManager
from shortlinks.core.timeutils import Clock, utcnow
from shortlinks.db import SessionManager, create_engine, create_session_factory, create_tables
from shortlinks.scheduler import SchedulerService
from shortlinks.services.cleanup import CleanupService
from shortlinks.services.ingest import IngestService
from shortlinks.services.relay import EventRelay
from shortlinks.services.shortlinks import ShortlinkService
from shortlinks.services.signatures import SignatureVerifier
from shortlinks.services.sink import AnalyticsSink, SqlAnalyticsSink
from shortlinks.services.store import TieredStore
from shortlinks.tiers import DurableTier, MemoryTier, StorageTier, VolatileTier


class RuntimeNotStartedError(RuntimeError):
    """A component was requested before startup() completed."""
    pass


class ShortlinkRuntime:
    """
    Explicit owner of the service graph.

    Tiers are ordered volatile, durable, memory. The volatile tier is only
    present when a Redis URL is configured (or a client is injected); the
    durable tier only when enabled. The memory tier is always last.

    Args:
        settings: Application settings
        redis_client: Pre-built Redis client, bypasses REDIS_URL
        sink: Pre-built analytics sink, bypasses the SQL sink
        clock: Time source shared by every component
        start_scheduler: Whether startup() starts the sweep scheduler
    """

    def __init__(
        self,
        settings: Settings = default_settings,
        redis_client: Any = None,
        sink: Optional[AnalyticsSink] = None,
        clock: Clock = utcnow,
        start_scheduler: bool = True,
    ):
        self.settings = settings
        self.clock = clock
        self.start_scheduler = start_scheduler

        self._injected_redis = redis_client
        self._injected_sink = sink

        self.redis_manager: Optional[RedisClientManager] = None
        self.engine: Optional[AsyncEngine] = None
        self.session_manager: Optional[SessionManager] = None
        self.tiers: List[StorageTier] = []
        self.memory_tier: Optional[MemoryTier] = None
        self.store: Optional[TieredStore] = None
        self.sink: Optional[AnalyticsSink] = None
        self.relay: Optional[EventRelay] = None
        self.shortlinks: Optional[ShortlinkService] = None
        self.ingest: Optional[IngestService] = None
        self.cleanup: Optional[CleanupService] = None
        self.scheduler: Optional[SchedulerService] = None
        self.started = False

    def _build_volatile_tier(self) -> Optional[VolatileTier]:
        client = self._injected_redis
        if client is None and self.settings.volatile_tier_enabled:
            self.redis_manager = RedisClientManager(
                self.settings.REDIS_URL,
                max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                socket_timeout=self.settings.VOLATILE_TIMEOUT_SECONDS,
            )
            client = self.redis_manager.connect()
        if client is None:
            logger.info("REDIS_URL not set, volatile tier disabled")
            return None
        return VolatileTier(
            client,
            key_prefix=self.settings.REDIS_KEY_PREFIX,
            timeout=self.settings.VOLATILE_TIMEOUT_SECONDS,
            expiry_grace_seconds=self.settings.VOLATILE_EXPIRY_GRACE_SECONDS,
        )

    async def _build_database(self) -> None:
        self.engine = create_engine(self.settings)
        self.session_manager = SessionManager(create_session_factory(self.engine))
        if self.settings.DB_CREATE_TABLES:
            try:
                await create_tables(self.engine)
            except Exception as e:
                # The durable tier reports itself unavailable and falls through
                logger.error(f"Could not create database tables: {e!r}")

    async def startup(self) -> None:
        """Build and start every component."""
        if self.started:
            return
        settings = self.settings

        volatile = self._build_volatile_tier()
        if volatile is not None:
            self.tiers.append(volatile)
        if self.redis_manager is not None:
            if await self.redis_manager.ping():
                logger.info("Successfully connected to Redis")
            else:
                logger.warning("Redis unreachable at startup, writes will fall through")

        needs_database = settings.DURABLE_TIER_ENABLED or self._injected_sink is None
        if needs_database:
            await self._build_database()

        if settings.DURABLE_TIER_ENABLED:
            self.tiers.append(
                DurableTier(self.session_manager, timeout=settings.DURABLE_TIMEOUT_SECONDS)
            )

        self.memory_tier = MemoryTier(clock=self.clock)
        self.tiers.append(self.memory_tier)
        self.store = TieredStore(self.tiers)

        self.sink = self._injected_sink or SqlAnalyticsSink(self.session_manager)
        self.relay = EventRelay(
            self.sink,
            source_tag=settings.RELAY_SOURCE_TAG,
            timeout=settings.RELAY_TIMEOUT_SECONDS,
            clock=self.clock,
        )
        self.shortlinks = ShortlinkService(
            self.store,
            self.relay,
            policy=settings.SHORTLINK_POLICY,
            min_ttl_seconds=settings.SHORTLINK_MIN_TTL_SECONDS,
            max_ttl_seconds=settings.SHORTLINK_MAX_TTL_SECONDS,
            default_ttl_seconds=settings.SHORTLINK_DEFAULT_TTL_SECONDS,
            token_bytes=settings.SHORTLINK_TOKEN_BYTES,
            token_attempts=settings.SHORTLINK_TOKEN_ATTEMPTS,
            path_prefix=settings.SHORTLINK_PATH_PREFIX,
            clock=self.clock,
        )
        self.ingest = IngestService(
            self.sink, SignatureVerifier(settings.MAP_SHARED_SECRET), clock=self.clock
        )

        self.cleanup = CleanupService(self.memory_tier, batch_size=settings.SWEEP_BATCH_SIZE)
        self.scheduler = SchedulerService(self.cleanup, settings)
        if self.start_scheduler:
            self.scheduler.start()

        self.started = True
        logger.info(
            "Shortlink runtime started",
            tiers=self.store.tier_names(),
            policy=settings.SHORTLINK_POLICY.value,
        )

    async def shutdown(self) -> None:
        """Stop background work and release connections, in reverse order."""
        if not self.started:
            return

        if self.scheduler is not None:
            self.scheduler.shutdown()

        if self.relay is not None:
            await self.relay.drain(timeout=self.settings.RELAY_TIMEOUT_SECONDS)

        for tier in self.tiers:
            await tier.close()

        if self.redis_manager is not None:
            await self.redis_manager.close()
            self.redis_manager = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

        self.tiers = []
        self.started = False
        logger.info("Shortlink runtime stopped")

    def require(self, component: Optional[Any], name: str) -> Any:
        if component is None:
            raise RuntimeNotStartedError(f"{name} is not available before startup")
        return component

    async def health(self) -> Dict[str, Any]:
        """Tier reachability and scheduler status."""
        store = self.require(self.store, "store")
        tiers = await store.health()
        return {
            "tiers": tiers,
            "scheduler": self.scheduler.get_status() if self.scheduler else None,
            "relay_pending": self.relay.pending if self.relay else 0,
            "relay_failures": self.relay.failures if self.relay else 0,
        }
