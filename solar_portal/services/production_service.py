"""Synthetic solar production: daily curve generation and rollups.

A customer's reading for a calendar day is generated at most once. Later
requests for the same day return the stored reading unchanged, so refreshing
a dashboard never moves "today's" numbers.

Hourly output for daylight hours 5..19:

    output = capacity_kw * 0.85 / 24 * sin((hour - 5) * pi / 14) * weather

with ``weather`` drawn uniformly from [0.8, 1.2] for every hour.
"""

import datetime as dt
import logging
import math
import random
from typing import List, Optional

from solar_portal.core.numbers import round_half_up, round_int
from solar_portal.models import DayTotal, HourlyOutput, ProductionReading, ProductionStats, new_id
from solar_portal.models.base import utcnow
from solar_portal.repositories.base import Clock
from solar_portal.repositories.production import ProductionRepository

logger = logging.getLogger(__name__)

FIRST_HOUR = 5
LAST_HOUR = 19
DAYLIGHT_SPAN = 14
SYSTEM_EFFICIENCY = 0.85
WEATHER_MIN = 0.8
WEATHER_MAX = 1.2
PEAK_SUN_HOURS = 5
CO2_KG_PER_KWH = 0.85


class ProductionService:
    def __init__(
        self,
        readings: ProductionRepository,
        clock: Clock = utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.readings = readings
        self.clock = clock
        self.rng = rng or random.Random()

    def today(self) -> dt.date:
        return self.clock().date()

    def get_by_customer(self, customer_id: str) -> List[ProductionReading]:
        return self.readings.get_by_customer(customer_id)

    def get_today(self, customer_id: str) -> Optional[ProductionReading]:
        return self.readings.get_for_day(customer_id, self.today())

    # -----------------------------------------------------------------------
    # Generation
    # -----------------------------------------------------------------------

    def generate_daily_data(self, customer_id: str, capacity_kw: float) -> ProductionReading:
        existing = self.get_today(customer_id)
        if existing is not None:
            return existing

        reading = self.build_reading(customer_id, capacity_kw, self.today())
        logger.info(
            "Generated production for customer %s on %s: %.2f kWh",
            customer_id, reading.date, reading.daily_total,
        )
        return self.readings.add(reading)

    def build_reading(self, customer_id: str, capacity_kw: float, day: dt.date) -> ProductionReading:
        base_output = capacity_kw * SYSTEM_EFFICIENCY / 24

        hourly = []
        for hour in range(FIRST_HOUR, LAST_HOUR + 1):
            sun_factor = math.sin((hour - FIRST_HOUR) * math.pi / DAYLIGHT_SPAN)
            weather_factor = self.rng.uniform(WEATHER_MIN, WEATHER_MAX)
            output = base_output * sun_factor * weather_factor
            hourly.append(HourlyOutput(hour=hour, output=round_half_up(output, 2)))

        total = sum(h.output for h in hourly)
        target = capacity_kw * PEAK_SUN_HOURS
        efficiency = round_int(total / target * 100) if target > 0 else 0

        return ProductionReading(
            id=new_id(),
            customer_id=customer_id,
            date=day,
            hourly_data=hourly,
            daily_total=round_half_up(total, 2),
            efficiency=efficiency,
            created_at=self.clock(),
        )

    # -----------------------------------------------------------------------
    # Rollups
    # -----------------------------------------------------------------------

    def get_weekly_data(self, customer_id: str) -> List[DayTotal]:
        return self._trailing_days(customer_id, 7)

    def get_monthly_data(self, customer_id: str) -> List[DayTotal]:
        return self._trailing_days(customer_id, 30)

    def _trailing_days(self, customer_id: str, days: int) -> List[DayTotal]:
        by_date = {p.date: p.daily_total for p in self.get_by_customer(customer_id)}
        today = self.today()
        result = []
        for offset in range(days - 1, -1, -1):
            day = today - dt.timedelta(days=offset)
            result.append(DayTotal(date=day, day_name=day.strftime("%a"), total=by_date.get(day, 0)))
        return result

    def get_stats(self, customer_id: str) -> ProductionStats:
        readings = self.get_by_customer(customer_id)
        today = self.today()
        todays = next((p for p in readings if p.date == today), None)

        this_month = sum(
            p.daily_total for p in readings
            if p.date.year == today.year and p.date.month == today.month
        )
        all_time = sum(p.daily_total for p in readings)

        return ProductionStats(
            today=todays.daily_total if todays else 0,
            this_month=round_half_up(this_month, 1),
            all_time=round_half_up(all_time, 1),
            efficiency=todays.efficiency if todays else 0,
            co2_saved=round_int(all_time * CO2_KG_PER_KWH),
        )
