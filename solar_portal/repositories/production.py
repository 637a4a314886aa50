import datetime as dt
from typing import List, Optional

from solar_portal.models import ProductionReading
from solar_portal.repositories.base import CollectionRepository


class ProductionRepository(CollectionRepository[ProductionReading]):
    """Daily readings; at most one per (customer_id, date)."""

    collection = "production"
    model = ProductionReading

    def get_by_customer(self, customer_id: str) -> List[ProductionReading]:
        return [p for p in self.get_all() if p.customer_id == customer_id]

    def get_for_day(self, customer_id: str, day: dt.date) -> Optional[ProductionReading]:
        return next(
            (p for p in self.get_all() if p.customer_id == customer_id and p.date == day),
            None,
        )

    def add(self, reading: ProductionReading) -> ProductionReading:
        """Store a reading unless that customer already has one for the day.

        Returns whichever reading ends up stored for the day.
        """
        existing = self.get_for_day(reading.customer_id, reading.date)
        if existing is not None:
            return existing
        return self._append(reading)
