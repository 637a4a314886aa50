"""Structured, transactional key-value medium backed by SQLAlchemy asyncio."""

import logging
from typing import Dict, Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from solar_portal.database.base import KeyValueRecord
from solar_portal.database.engine import create_engine
from solar_portal.database.session import init_db, make_sessionmaker
from solar_portal.storage.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class StructuredMedium:
    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine = None
        self._sessionmaker = None

    @property
    def is_open(self) -> bool:
        return self._sessionmaker is not None

    async def open(self):
        """Create the engine and the key-value table.

        Raises StorageUnavailable when the driver is missing or the database
        cannot be opened; the medium stays closed in that case.
        """
        try:
            engine = create_engine(self.database_url)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            raise StorageUnavailable(f"Unsupported structured store: {e}") from e

        try:
            await init_db(engine)
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            raise StorageUnavailable(f"Could not open structured store: {e}") from e

        self._engine = engine
        self._sessionmaker = make_sessionmaker(engine)
        logger.info("Structured store opened")

    async def close(self):
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    def _require_open(self):
        if self._sessionmaker is None:
            raise StorageUnavailable("Structured store is not open")
        return self._sessionmaker

    async def read(self, key: str) -> Optional[str]:
        sessionmaker = self._require_open()
        try:
            async with sessionmaker() as session:
                record = await session.get(KeyValueRecord, key)
                return record.value if record is not None else None
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Structured read failed for {key}: {e}") from e

    async def write(self, key: str, data: str):
        await self.write_many({key: data})

    async def write_many(self, items: Dict[str, str]):
        """Upsert every key in a single transaction."""
        sessionmaker = self._require_open()
        try:
            async with sessionmaker() as session:
                async with session.begin():
                    for key, data in items.items():
                        record = await session.get(KeyValueRecord, key)
                        if record is None:
                            session.add(KeyValueRecord(key=key, value=data, version=1))
                        else:
                            record.value = data
                            record.version = (record.version or 0) + 1
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Structured write failed for {sorted(items)}: {e}") from e

    async def version(self, key: str) -> int:
        sessionmaker = self._require_open()
        try:
            async with sessionmaker() as session:
                record = await session.get(KeyValueRecord, key)
                return record.version if record is not None else 0
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Structured read failed for {key}: {e}") from e

    async def delete(self, key: str):
        sessionmaker = self._require_open()
        try:
            async with sessionmaker() as session:
                async with session.begin():
                    await session.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Structured delete failed for {key}: {e}") from e

    async def clear(self):
        sessionmaker = self._require_open()
        try:
            async with sessionmaker() as session:
                async with session.begin():
                    await session.execute(delete(KeyValueRecord))
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Structured clear failed: {e}") from e
