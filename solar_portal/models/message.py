from datetime import datetime

from solar_portal.models.base import Record


class Message(Record):
    id: str
    from_user_id: str
    to_user_id: str
    text: str
    timestamp: datetime
    read: bool = False
