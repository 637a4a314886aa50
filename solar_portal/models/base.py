import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Random UUID4 hex (122 random bits); ids are never checked for collisions."""
    return uuid.uuid4().hex


class Record(BaseModel):
    """Persisted record: immutable in memory, unknown fields rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Payload(BaseModel):
    """Create / partial-update input: unknown fields rejected."""

    model_config = ConfigDict(extra="forbid")
