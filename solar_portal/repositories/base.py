from datetime import datetime
from typing import Callable, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from solar_portal.models.base import utcnow
from solar_portal.storage.cache import RepositoryCache

T = TypeVar("T", bound=BaseModel)
P = TypeVar("P", bound=BaseModel)

Clock = Callable[[], datetime]


def coerce_payload(payload_cls: Type[P], data) -> P:
    """Accept a payload model or a plain mapping; unknown keys raise ValidationError."""
    if isinstance(data, payload_cls):
        return data
    return payload_cls.model_validate(data)


class CollectionRepository(Generic[T]):
    """Synchronous CRUD over one list-shaped cache collection keyed by ``id``."""

    collection: str
    model: Type[T]

    def __init__(self, cache: RepositoryCache, clock: Clock = utcnow):
        self.cache = cache
        self.clock = clock

    def get_all(self) -> List[T]:
        return self.cache.get(self.collection)

    def get_by_id(self, record_id: str) -> Optional[T]:
        return next((r for r in self.get_all() if r.id == record_id), None)

    def delete(self, record_id: str) -> bool:
        """Remove by id. Dependent collections are left untouched."""
        remaining = [r for r in self.get_all() if r.id != record_id]
        self.cache.put(self.collection, remaining)
        return True

    def _append(self, record: T) -> T:
        records = self.get_all()
        records.append(record)
        self.cache.put(self.collection, records)
        return record

    def _update(self, record_id: str, changes: BaseModel) -> Optional[T]:
        records = self.get_all()
        for index, record in enumerate(records):
            if record.id == record_id:
                fields = changes.model_dump(exclude_unset=True)
                fields["updated_at"] = self.clock()
                # validate the merged record so a bad field never reaches storage
                records[index] = self.model.model_validate({**record.model_dump(), **fields})
                self.cache.put(self.collection, records)
                return records[index]
        return None
