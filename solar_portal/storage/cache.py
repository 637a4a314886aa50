"""In-memory mirror of every persisted collection.

Reads are synchronous. Writes update memory immediately, bump the key's
version, and mark the key dirty; a single background writer task persists
every dirty key through the adapter. All keys dirty at the moment the writer
runs go out in one ``set_many`` call, so keys written together by
``put_many`` share one structured transaction and two writes of the same key
never race at the backend. ``flush()`` waits for the writer to catch up.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Type

from pydantic import BaseModel, ValidationError

from solar_portal.storage.adapter import KeyValueAdapter
from solar_portal.storage.errors import StoreNotReady

logger = logging.getLogger(__name__)

QUARANTINE_SUFFIX = ".corrupt"


@dataclass(frozen=True)
class Collection:
    name: str
    model: Type[BaseModel]
    many: bool = True
    default: Callable[[], Any] = list
    seed: bool = True  # write the default when the key is absent at startup


@dataclass
class _KeyState:
    version: int = 0
    persisted_version: int = 0
    last_ok: bool = True


@dataclass
class CacheSummary:
    loaded: bool
    counts: Dict[str, int] = field(default_factory=dict)
    dirty: List[str] = field(default_factory=list)


class RepositoryCache:
    def __init__(
        self,
        adapter: KeyValueAdapter,
        collections: Iterable[Collection],
        key_prefix: str = "",
        grace_seconds: Optional[float] = None,
    ):
        self.adapter = adapter
        self.collections: Dict[str, Collection] = {c.name: c for c in collections}
        self.key_prefix = key_prefix
        self.grace_seconds = grace_seconds
        self.loaded = False

        self._memory: Dict[str, Any] = {name: c.default() for name, c in self.collections.items()}
        self._states: Dict[str, _KeyState] = {name: _KeyState() for name in self.collections}
        self._dirty: Set[str] = set()
        self._writer: Optional[asyncio.Task] = None

    def storage_key(self, name: str) -> str:
        return f"{self.key_prefix}{name}"

    def _collection(self, name: str) -> Collection:
        try:
            return self.collections[name]
        except KeyError:
            raise KeyError(f"Unknown collection: {name}") from None

    # -----------------------------------------------------------------------
    # Startup
    # -----------------------------------------------------------------------

    async def load(self):
        """Read every collection once; seed absent ones with their defaults.

        Reads still running after ``grace_seconds`` are abandoned and the
        collection starts at its default without seeding, so a slow backend
        cannot overwrite stored data with an empty list. Records that fail to
        decode are dropped from memory and the raw payload is copied to
        ``<key>.corrupt`` first. Writes are refused until this has finished.
        """
        tasks = {
            name: asyncio.ensure_future(self.adapter.get(self.storage_key(name)))
            for name in self.collections
        }
        done, pending = await asyncio.wait(tasks.values(), timeout=self.grace_seconds)
        for task in pending:
            task.cancel()

        to_seed = []
        to_quarantine = {}
        for name, task in tasks.items():
            collection = self.collections[name]
            if task not in done:
                logger.warning("Startup read of %s did not finish in time, starting empty", name)
                self._memory[name] = collection.default()
                continue

            raw = task.result()
            if raw is None:
                self._memory[name] = collection.default()
                if collection.seed:
                    to_seed.append(name)
                continue

            self._memory[name], rejected = self._decode(collection, raw)
            if rejected:
                to_quarantine[name] = raw

        # Keep a copy of anything undecodable before the next write replaces it
        for name, raw in to_quarantine.items():
            key = self.storage_key(name) + QUARANTINE_SUFFIX
            if await self.adapter.set(key, raw):
                logger.warning("Copied unreadable %s payload to %s", name, key)
            else:
                logger.error("Could not quarantine unreadable %s payload", name)

        self.loaded = True
        if to_seed:
            logger.info("Seeding empty collections: %s", ", ".join(to_seed))
            for name in to_seed:
                self._mark(name)
            await self.flush()

    # -----------------------------------------------------------------------
    # Reads / writes
    # -----------------------------------------------------------------------

    def get(self, name: str) -> Any:
        collection = self._collection(name)
        value = self._memory[name]
        return list(value) if collection.many else value

    def put(self, name: str, value: Any):
        self.put_many({name: value})

    def put_many(self, values: Dict[str, Any]):
        if not self.loaded:
            raise StoreNotReady(f"Cannot write {', '.join(values)} before the cache has loaded")
        for name, value in values.items():
            collection = self._collection(name)
            self._memory[name] = list(value) if collection.many else value
        for name in values:
            self._mark(name)
        self._schedule()

    async def save(self, name: str) -> bool:
        """Persist one collection and wait for the write to land."""
        self._collection(name)
        self._mark(name)
        return await self.flush()

    def version(self, name: str) -> int:
        return self._states[name].version

    def persisted_version(self, name: str) -> int:
        return self._states[name].persisted_version

    def reset(self):
        for name, collection in self.collections.items():
            self._memory[name] = collection.default()

    def summary(self) -> CacheSummary:
        counts = {}
        for name, collection in self.collections.items():
            value = self._memory[name]
            counts[name] = len(value) if collection.many else int(value is not None)
        return CacheSummary(loaded=self.loaded, counts=counts, dirty=sorted(self._dirty))

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    def _mark(self, name: str):
        self._states[name].version += 1
        self._dirty.add(name)

    def _schedule(self):
        if self._writer is not None and not self._writer.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop: the write stays dirty until the next flush()
            return
        self._writer = loop.create_task(self._drain())

    async def flush(self) -> bool:
        """Wait until every in-memory version has been persisted.

        Returns False if the latest write of any collection failed.
        """
        while self._dirty or (self._writer is not None and not self._writer.done()):
            if self._writer is None or self._writer.done():
                self._writer = asyncio.get_running_loop().create_task(self._drain())
            await asyncio.shield(self._writer)
        return all(state.last_ok for state in self._states.values())

    async def close(self):
        await self.flush()
        self._writer = None

    async def _drain(self):
        while self._dirty:
            names = sorted(self._dirty)
            self._dirty.clear()
            snapshot = {name: self._states[name].version for name in names}
            payload = {name: self._encode(self.collections[name], self._memory[name]) for name in names}

            try:
                ok = await self._persist(payload)
            except Exception:
                logger.exception("Persisting %s failed", ", ".join(names))
                ok = False

            for name, version in snapshot.items():
                state = self._states[name]
                state.persisted_version = max(state.persisted_version, version)
                state.last_ok = ok

    async def _persist(self, payload: Dict[str, Any]) -> bool:
        to_set = {self.storage_key(n): v for n, v in payload.items() if v is not None}
        to_remove = [self.storage_key(n) for n, v in payload.items() if v is None]

        ok = True
        if to_set:
            ok = await self.adapter.set_many(to_set)
        for key in to_remove:
            await self.adapter.remove(key)
        if not ok:
            logger.warning("Persistence not confirmed for %s", ", ".join(sorted(to_set)))
        return ok

    # -----------------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------------

    @staticmethod
    def _encode(collection: Collection, value: Any) -> Any:
        if value is None:
            return None
        if collection.many:
            return [item.model_dump(mode="json") for item in value]
        return value.model_dump(mode="json")

    @staticmethod
    def _decode(collection: Collection, raw: Any) -> Tuple[Any, int]:
        """Decode a stored payload, returning the value and how many records were dropped.

        List collections keep every record that validates; a bad record is
        logged and skipped instead of discarding its neighbours.
        """
        if not collection.many:
            try:
                return collection.model.model_validate(raw), 0
            except ValidationError as e:
                logger.error("Stored %s is unreadable, starting from default: %s", collection.name, e)
                return collection.default(), 1

        if not isinstance(raw, list):
            logger.error(
                "Stored %s is a %s, not a list; starting from default",
                collection.name, type(raw).__name__,
            )
            return collection.default(), 1

        records = []
        rejected = 0
        for index, item in enumerate(raw):
            try:
                records.append(collection.model.model_validate(item))
            except ValidationError as e:
                logger.error("Dropping unreadable %s record at index %d: %s", collection.name, index, e)
                rejected += 1
        return records, rejected
