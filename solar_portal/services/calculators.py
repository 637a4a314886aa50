"""Solar sizing and savings calculators.

The calculation functions are pure and raise ValueError for unusable input.
``CalculatorService`` runs them and records each result in the history.
"""

import math
from typing import Callable, Dict

from pydantic import BaseModel

from solar_portal.core.numbers import round_half_up, round_int
from solar_portal.models import CalculationEntry, CalculationType
from solar_portal.repositories import CalculationHistoryRepository

SYSTEM_EFFICIENCY = 0.85
CO2_KG_PER_KWH = 0.85
CO2_KG_PER_TREE_YEAR = 22

SOLAR_OFFSET = 0.70
INSTALLED_COST_PER_KW = 50_000

LITHIUM_DOD = 0.80
LEAD_ACID_DOD = 0.50
LITHIUM_COST_PER_KWH = 15_000
LEAD_ACID_COST_PER_KWH = 8_000
PEAK_USAGE_HOURS = 5
INVERTER_MARGIN = 1.25

PANEL_SPECS = {
    "mono": {"name": "Monocrystalline", "efficiency": 0.20, "watts_per_sqm": 200, "panel_watts": 400},
    "poly": {"name": "Polycrystalline", "efficiency": 0.16, "watts_per_sqm": 160, "panel_watts": 400},
    "thin": {"name": "Thin-Film", "efficiency": 0.12, "watts_per_sqm": 120, "panel_watts": 300},
}
ROOF_SPACING = 1.3
TYPICAL_ROOF_SQM = 100

STC_TEMP_C = 25
TEMP_COEFFICIENT = -0.004  # per degree C, typical silicon
CELL_TEMP_RISE_C = 28


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class EnergyResult(BaseModel):
    daily: float
    monthly: float
    yearly: float
    co2_saved: int
    trees: int


class SavingsResult(BaseModel):
    monthly_consumption: float
    solar_generation: float
    monthly_savings: int
    yearly_savings: int
    system_size: float
    estimated_cost: float
    payback_years: float


class WattsResult(BaseModel):
    watts: float
    kilowatts: float
    megawatts: float
    horsepower: float
    btu_per_hour: float


class BatteryResult(BaseModel):
    total_energy: float
    lithium_capacity: float
    lead_acid_capacity: float
    inverter_size: float
    lithium_cost: float
    lead_acid_cost: float


class RoofAreaResult(BaseModel):
    panel_type: str
    num_panels: int
    panel_wattage: int
    panel_area: float
    total_panel_area: float
    total_area_needed: float
    roof_percentage: int


class TemperatureDerateResult(BaseModel):
    cell_temp: float
    stc_temp: float
    temp_diff: float
    rated_power: float
    actual_output: float
    power_loss: float
    loss_percentage: float


# ---------------------------------------------------------------------------
# Calculations
# ---------------------------------------------------------------------------

def _require_positive(value: float, message: str) -> float:
    if value is None or not value > 0:
        raise ValueError(message)
    return float(value)


def energy(system_size_kw: float, sun_hours: float = 5) -> EnergyResult:
    system_size_kw = _require_positive(system_size_kw, "Please enter a valid system size")
    sun_hours = sun_hours or 5

    daily = system_size_kw * sun_hours * SYSTEM_EFFICIENCY
    yearly = daily * 365
    co2_yearly = yearly * CO2_KG_PER_KWH
    return EnergyResult(
        daily=round_half_up(daily, 2),
        monthly=round_half_up(daily * 30, 2),
        yearly=round_half_up(yearly, 2),
        co2_saved=round_int(co2_yearly),
        trees=round_int(co2_yearly / CO2_KG_PER_TREE_YEAR),
    )


def savings(monthly_bill: float, rate_per_kwh: float = 6) -> SavingsResult:
    """Amounts are in rupees; estimated_cost is in lakhs (100 000)."""
    monthly_bill = _require_positive(monthly_bill, "Please enter a valid monthly bill amount")
    rate_per_kwh = rate_per_kwh or 6

    consumption = monthly_bill / rate_per_kwh
    generation = consumption * SOLAR_OFFSET
    monthly_savings = monthly_bill * SOLAR_OFFSET
    yearly_savings = monthly_savings * 12
    system_size = generation / (5 * 30 * SYSTEM_EFFICIENCY)
    installed_cost = system_size * INSTALLED_COST_PER_KW

    return SavingsResult(
        monthly_consumption=round_half_up(consumption, 1),
        solar_generation=round_half_up(generation, 1),
        monthly_savings=round_int(monthly_savings),
        yearly_savings=round_int(yearly_savings),
        system_size=round_half_up(system_size, 2),
        estimated_cost=round_half_up(installed_cost / 100_000, 2),
        payback_years=round_half_up(installed_cost / yearly_savings, 1),
    )


def watts(value: float) -> WattsResult:
    if value is None or value < 0:
        raise ValueError("Please enter a valid watt value")
    value = float(value)
    return WattsResult(
        watts=value,
        kilowatts=round_half_up(value / 1_000, 4),
        megawatts=round_half_up(value / 1_000_000, 7),
        horsepower=round_half_up(value / 745.7, 3),
        btu_per_hour=round_half_up(value * 3.412, 2),
    )


def battery(daily_usage_kwh: float, backup_days: int = 1) -> BatteryResult:
    """Costs are in lakhs."""
    daily_usage_kwh = _require_positive(daily_usage_kwh, "Please enter a valid daily usage")
    backup_days = int(backup_days or 1)

    total = daily_usage_kwh * backup_days
    lithium = total / LITHIUM_DOD
    lead_acid = total / LEAD_ACID_DOD
    inverter = daily_usage_kwh / PEAK_USAGE_HOURS * INVERTER_MARGIN

    return BatteryResult(
        total_energy=round_half_up(total, 1),
        lithium_capacity=round_half_up(lithium, 1),
        lead_acid_capacity=round_half_up(lead_acid, 1),
        inverter_size=round_half_up(inverter, 2),
        lithium_cost=round_half_up(lithium * LITHIUM_COST_PER_KWH / 100_000, 2),
        lead_acid_cost=round_half_up(lead_acid * LEAD_ACID_COST_PER_KWH / 100_000, 2),
    )


def roof_area(system_size_kw: float, panel_type: str = "mono") -> RoofAreaResult:
    system_size_kw = _require_positive(system_size_kw, "Please enter a valid system size")
    panel = PANEL_SPECS.get(panel_type)
    if panel is None:
        raise ValueError(f"Unknown panel type: {panel_type}")

    panel_watts = panel["panel_watts"]
    num_panels = math.ceil(system_size_kw * 1000 / panel_watts)
    panel_area = panel_watts / panel["watts_per_sqm"]
    total_panel_area = num_panels * panel_area
    total_needed = total_panel_area * ROOF_SPACING

    return RoofAreaResult(
        panel_type=panel["name"],
        num_panels=num_panels,
        panel_wattage=panel_watts,
        panel_area=round_half_up(panel_area, 2),
        total_panel_area=round_half_up(total_panel_area, 1),
        total_area_needed=round_half_up(total_needed, 1),
        roof_percentage=round_int(total_needed / TYPICAL_ROOF_SQM * 100),
    )


def temperature_derate(panel_rating: float = 400, ambient_temp: float = 35) -> TemperatureDerateResult:
    panel_rating = panel_rating or 400
    ambient_temp = 35 if ambient_temp is None else ambient_temp

    cell_temp = ambient_temp + CELL_TEMP_RISE_C
    temp_diff = cell_temp - STC_TEMP_C
    actual = panel_rating * (1 + TEMP_COEFFICIENT * temp_diff)
    loss = panel_rating - actual

    return TemperatureDerateResult(
        cell_temp=round_half_up(cell_temp, 1),
        stc_temp=STC_TEMP_C,
        temp_diff=round_half_up(temp_diff, 1),
        rated_power=panel_rating,
        actual_output=round_half_up(actual, 1),
        power_loss=round_half_up(loss, 1),
        loss_percentage=round_half_up(loss / panel_rating * 100, 1),
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class CalculatorService:
    def __init__(self, history: CalculationHistoryRepository):
        self.history = history

    def _record(self, calc_type: CalculationType, fn: Callable[..., BaseModel], inputs: Dict) -> BaseModel:
        result = fn(**inputs)
        self.history.add(calc_type, inputs, result.model_dump())
        return result

    def energy(self, system_size_kw: float, sun_hours: float = 5) -> EnergyResult:
        return self._record(CalculationType.ENERGY, energy, {"system_size_kw": system_size_kw, "sun_hours": sun_hours})

    def savings(self, monthly_bill: float, rate_per_kwh: float = 6) -> SavingsResult:
        return self._record(CalculationType.SAVINGS, savings, {"monthly_bill": monthly_bill, "rate_per_kwh": rate_per_kwh})

    def watts(self, value: float) -> WattsResult:
        return self._record(CalculationType.WATTS, watts, {"value": value})

    def battery(self, daily_usage_kwh: float, backup_days: int = 1) -> BatteryResult:
        return self._record(CalculationType.BATTERY, battery, {"daily_usage_kwh": daily_usage_kwh, "backup_days": backup_days})

    def roof_area(self, system_size_kw: float, panel_type: str = "mono") -> RoofAreaResult:
        return self._record(CalculationType.ROOF, roof_area, {"system_size_kw": system_size_kw, "panel_type": panel_type})

    def temperature_derate(self, panel_rating: float = 400, ambient_temp: float = 35) -> TemperatureDerateResult:
        return self._record(
            CalculationType.TEMPERATURE,
            temperature_derate,
            {"panel_rating": panel_rating, "ambient_temp": ambient_temp},
        )

    def get_history(self, calc_type: CalculationType | str | None = None) -> list[CalculationEntry]:
        if calc_type is None:
            return self.history.get_all()
        return self.history.get_by_type(calc_type)

    def clear_history(self):
        self.history.clear()
