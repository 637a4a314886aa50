import datetime as dt
from typing import List

from solar_portal.models.base import Record


class HourlyOutput(Record):
    hour: int
    output: float  # kWh


class ProductionReading(Record):
    id: str
    customer_id: str
    date: dt.date
    hourly_data: List[HourlyOutput]
    daily_total: float
    efficiency: int  # percent of capacity * 5 sun-hours
    created_at: dt.datetime


class DayTotal(Record):
    date: dt.date
    day_name: str
    total: float


class ProductionStats(Record):
    today: float
    this_month: float
    all_time: float
    efficiency: int
    co2_saved: int  # kg
