import enum
from datetime import datetime

from solar_portal.models.base import Payload, Record


class UserType(str, enum.Enum):
    VENDOR = "vendor"
    CUSTOMER = "customer"


class User(Record):
    id: str
    type: UserType
    name: str
    phone: str
    address: str = ""
    email: str = ""
    password: str  # stored as entered; the portal has no hashing
    customer_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class UserCreate(Payload):
    type: UserType
    name: str
    phone: str
    address: str = "Not provided"
    email: str = ""
    password: str
    customer_id: str | None = None


class UserUpdate(Payload):
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    email: str | None = None
    password: str | None = None
    customer_id: str | None = None
