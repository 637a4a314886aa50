from typing import Literal

from solar_portal.models.base import Payload, Record

Theme = Literal["light", "dark"]


class Settings(Record):
    theme: Theme = "light"


class SettingsUpdate(Payload):
    theme: Theme | None = None
