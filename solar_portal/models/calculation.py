import enum
from datetime import datetime
from typing import Any, Dict

from solar_portal.models.base import Record


class CalculationType(str, enum.Enum):
    ENERGY = "energy"
    SAVINGS = "savings"
    WATTS = "watts"
    BATTERY = "battery"
    ROOF = "roof"
    TEMPERATURE = "temperature"


class CalculationEntry(Record):
    id: str
    type: CalculationType
    inputs: Dict[str, Any]
    result: Dict[str, Any]
    timestamp: datetime
