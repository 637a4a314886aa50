import json
import logging
from typing import Optional

from pydantic import ValidationError

from solar_portal.models import Session, User
from solar_portal.models.base import utcnow
from solar_portal.repositories.base import Clock
from solar_portal.storage.cache import RepositoryCache
from solar_portal.storage.errors import StorageUnavailable
from solar_portal.storage.fallback import FileMedium

logger = logging.getLogger(__name__)


class SessionRepository:
    """Single active session per store; the last login wins.

    Besides the cached ``session`` collection, every login writes a mirror
    copy straight into the fallback medium so the session can be read
    synchronously before the cache has loaded.
    """

    collection = "session"

    def __init__(self, cache: RepositoryCache, mirror: FileMedium, mirror_key: str, clock: Clock = utcnow):
        self.cache = cache
        self.mirror = mirror
        self.mirror_key = mirror_key
        self.clock = clock

    def login(self, user: User) -> Session:
        session = Session(
            user_id=user.id,
            type=user.type,
            name=user.name,
            phone=user.phone,
            login_time=self.clock(),
        )
        self.cache.put(self.collection, session)
        try:
            self.mirror.write_now(self.mirror_key, json.dumps(session.model_dump(mode="json")))
        except StorageUnavailable as e:
            logger.warning("Could not write session mirror: %s", e)
        logger.info("Session started for %s user %s", user.type.value, user.id)
        return session

    @property
    def loaded(self) -> bool:
        """False until the cache has loaded; reads come from the mirror until then."""
        return self.cache.loaded

    def get(self) -> Optional[Session]:
        if not self.cache.loaded:
            return self.peek_mirror()
        return self.cache.get(self.collection)

    def is_logged_in(self) -> bool:
        return self.get() is not None

    def logout(self):
        self.cache.put(self.collection, None)
        try:
            self.mirror.delete_now(self.mirror_key)
        except StorageUnavailable as e:
            logger.warning("Could not clear session mirror: %s", e)

    def peek_mirror(self) -> Optional[Session]:
        try:
            data = self.mirror.read_now(self.mirror_key)
            if data is None:
                return None
            return Session.model_validate(json.loads(data))
        except (StorageUnavailable, ValueError, ValidationError) as e:
            logger.warning("Session mirror unreadable: %s", e)
            return None
