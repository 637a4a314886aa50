import re
from typing import List, Optional

from solar_portal.models import AppCode
from solar_portal.models.app_code import APP_CODE_PREFIX
from solar_portal.repositories.base import CollectionRepository

CODE_PATTERN = re.compile(rf"^{APP_CODE_PREFIX}-(\d{{4}})-(\d+)$")


def format_code(year: int, sequence: int) -> str:
    return f"{APP_CODE_PREFIX}-{year}-{sequence:04d}"


class AppCodeRepository(CollectionRepository[AppCode]):
    """App codes are keyed by ``code`` rather than ``id``."""

    collection = "app_codes"
    model = AppCode

    def get_by_id(self, record_id: str) -> Optional[AppCode]:
        return self.get_by_code(record_id)

    def get_by_code(self, code: str) -> Optional[AppCode]:
        return next((c for c in self.get_all() if c.code == code), None)

    def get_by_vendor(self, vendor_id: str) -> List[AppCode]:
        return [c for c in self.get_all() if c.vendor_id == vendor_id]

    def next_code(self, year: int) -> str:
        """Next code for ``year``: highest issued sequence + 1.

        Matches "count + 1" while nothing has been removed, and never hands
        out a number twice if a code does get removed.
        """
        highest = 0
        for record in self.get_all():
            match = CODE_PATTERN.match(record.code)
            if match and int(match.group(1)) == year:
                highest = max(highest, int(match.group(2)))
        return format_code(year, highest + 1)

    def build(self, code: str, vendor_id: Optional[str], customer_id: Optional[str]) -> AppCode:
        return AppCode(code=code, vendor_id=vendor_id, customer_id=customer_id, created_at=self.clock())

    def update_status(self, code: str, status: str) -> Optional[AppCode]:
        records = self.get_all()
        for index, record in enumerate(records):
            if record.code == code:
                records[index] = record.model_copy(update={"status": status, "updated_at": self.clock()})
                self.cache.put(self.collection, records)
                return records[index]
        return None

    def delete(self, record_id: str) -> bool:
        remaining = [c for c in self.get_all() if c.code != record_id]
        self.cache.put(self.collection, remaining)
        return True
