from datetime import datetime

from solar_portal.models.base import Record

APP_CODE_PREFIX = "BSV"


class AppCode(Record):
    code: str  # BSV-<year>-<4-digit sequence>
    vendor_id: str | None
    customer_id: str | None = None
    status: str = "pending"
    created_at: datetime
    updated_at: datetime | None = None
