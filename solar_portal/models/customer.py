from datetime import datetime

from pydantic import Field

from solar_portal.models.base import Payload, Record

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"

DEFAULT_PANEL_RATING_W = 400


class Customer(Record):
    id: str
    app_code: str
    vendor_id: str | None
    name: str
    phone: str
    address: str = ""
    system_capacity: float = 0  # kW
    panels: int = 0
    panel_rating: float = DEFAULT_PANEL_RATING_W  # W per panel
    status: str = STATUS_PENDING  # vendors may set their own values
    created_at: datetime
    updated_at: datetime | None = None


class CustomerCreate(Payload):
    vendor_id: str | None
    name: str
    phone: str
    address: str = ""
    system_capacity: float = Field(default=0, ge=0)
    panels: int = Field(default=0, ge=0)
    panel_rating: float = Field(default=DEFAULT_PANEL_RATING_W, gt=0)


class CustomerUpdate(Payload):
    """Fields a vendor may edit; app_code and vendor_id are fixed at creation."""

    name: str | None = None
    phone: str | None = None
    address: str | None = None
    system_capacity: float | None = Field(default=None, ge=0)
    panels: int | None = Field(default=None, ge=0)
    panel_rating: float | None = Field(default=None, gt=0)
    status: str | None = None
