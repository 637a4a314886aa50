from typing import Any, Dict, List

from solar_portal.models import CalculationEntry, CalculationType, new_id
from solar_portal.repositories.base import CollectionRepository

HISTORY_LIMIT = 50


class CalculationHistoryRepository(CollectionRepository[CalculationEntry]):
    """Calculator history, newest first, capped at HISTORY_LIMIT entries."""

    collection = "calc_history"
    model = CalculationEntry

    def get_by_type(self, calc_type: CalculationType | str) -> List[CalculationEntry]:
        calc_type = CalculationType(calc_type)
        return [e for e in self.get_all() if e.type == calc_type]

    def add(self, calc_type: CalculationType | str, inputs: Dict[str, Any], result: Dict[str, Any]) -> CalculationEntry:
        entry = CalculationEntry(
            id=new_id(),
            type=CalculationType(calc_type),
            inputs=inputs,
            result=result,
            timestamp=self.clock(),
        )
        history = [entry, *self.get_all()][:HISTORY_LIMIT]
        self.cache.put(self.collection, history)
        return entry

    def clear(self):
        self.cache.put(self.collection, [])
