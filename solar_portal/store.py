"""Process-wide portal store: storage stack plus every repository.

Construct one ``DataStore`` per process, ``await initialize()`` before use,
and ``await shutdown()`` at exit. Repository reads are synchronous against
the cache; writes return immediately and are persisted in the background.
``await flush()`` waits until they are durable.
"""

import logging
from typing import Optional

from solar_portal.core import config
from solar_portal.models import (
    AppCode,
    CalculationEntry,
    Customer,
    Document,
    Message,
    ProductionReading,
    Session,
    Settings,
    User,
)
from solar_portal.models.base import utcnow
from solar_portal.repositories import (
    AppCodeRepository,
    CalculationHistoryRepository,
    CustomerRepository,
    DocumentRepository,
    MessageRepository,
    ProductionRepository,
    SessionRepository,
    SettingsRepository,
    UserRepository,
)
from solar_portal.repositories.base import Clock
from solar_portal.services.auth_service import AuthService
from solar_portal.services.calculators import CalculatorService
from solar_portal.services.production_service import ProductionService
from solar_portal.storage.adapter import KeyValueAdapter
from solar_portal.storage.cache import CacheSummary, Collection, RepositoryCache
from solar_portal.storage.fallback import FileMedium
from solar_portal.storage.readiness import ReadinessGate
from solar_portal.storage.structured import StructuredMedium

logger = logging.getLogger(__name__)

COLLECTIONS = [
    Collection("users", User),
    Collection("customers", Customer),
    Collection("app_codes", AppCode),
    Collection("documents", Document),
    Collection("messages", Message),
    Collection("production", ProductionReading),
    Collection("calc_history", CalculationEntry),
    Collection("session", Session, many=False, default=lambda: None, seed=False),
    Collection("settings", Settings, many=False, default=Settings),
]


class DataStore:
    def __init__(self, app_settings: Optional[config.Settings] = None, clock: Clock = utcnow):
        self.settings = app_settings or config.settings

        structured = (
            StructuredMedium(self.settings.DATABASE_URL)
            if self.settings.STRUCTURED_STORE_ENABLED
            else None
        )
        self.fallback = FileMedium(
            self.settings.FALLBACK_STORAGE_DIR,
            quota_bytes=self.settings.FALLBACK_QUOTA_BYTES,
        )
        self.gate = ReadinessGate()
        self.adapter = KeyValueAdapter(structured, self.fallback, self.gate)
        self.cache = RepositoryCache(
            self.adapter,
            COLLECTIONS,
            key_prefix=self.settings.STORAGE_KEY_PREFIX,
            grace_seconds=self.settings.STARTUP_GRACE_SECONDS,
        )

        self.users = UserRepository(self.cache, clock)
        self.app_codes = AppCodeRepository(self.cache, clock)
        self.customers = CustomerRepository(self.cache, self.app_codes, clock)
        self.documents = DocumentRepository(self.cache, clock)
        self.messages = MessageRepository(self.cache, clock)
        self.production_readings = ProductionRepository(self.cache, clock)
        self.session = SessionRepository(self.cache, self.fallback, self.settings.SESSION_MIRROR_KEY, clock)
        self.app_settings = SettingsRepository(self.cache)
        self.calc_history = CalculationHistoryRepository(self.cache, clock)

        self.production = ProductionService(self.production_readings, clock)
        self.auth = AuthService(self.users, self.customers, self.session)
        self.calculators = CalculatorService(self.calc_history)

    @property
    def is_ready(self) -> bool:
        return self.gate.is_ready and self.cache.loaded

    @property
    def degraded(self) -> bool:
        return self.adapter.degraded

    def bootstrap_session(self) -> Optional[Session]:
        """Session from the fallback mirror, readable before initialize()."""
        return self.session.peek_mirror()

    async def initialize(self):
        await self.adapter.init()
        await self.gate.on_ready()
        await self.cache.load()
        logger.info(
            "Portal store initialized (%s)",
            "fallback only" if self.degraded else "structured + fallback",
        )

    async def flush(self) -> bool:
        return await self.cache.flush()

    async def clear_all(self) -> bool:
        """Wipe both mediums and reset every collection to its default."""
        await self.cache.flush()
        self.cache.reset()
        await self.adapter.clear_all()
        return True

    def summary(self) -> CacheSummary:
        return self.cache.summary()

    async def shutdown(self):
        await self.cache.close()
        await self.adapter.close()
        logger.info("Portal store shut down")
