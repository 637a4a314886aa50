from datetime import datetime

from solar_portal.models.base import Record
from solar_portal.models.user import UserType


class Session(Record):
    user_id: str
    type: UserType
    name: str
    phone: str = ""
    login_time: datetime
