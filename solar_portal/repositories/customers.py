import logging
from typing import List, Optional

from solar_portal.models import Customer, CustomerCreate, CustomerUpdate, User, new_id
from solar_portal.models.base import utcnow
from solar_portal.repositories.app_codes import AppCodeRepository
from solar_portal.repositories.base import Clock, CollectionRepository, coerce_payload
from solar_portal.storage.cache import RepositoryCache

logger = logging.getLogger(__name__)


class CustomerRepository(CollectionRepository[Customer]):
    collection = "customers"
    model = Customer

    def __init__(self, cache: RepositoryCache, app_codes: AppCodeRepository, clock: Clock = utcnow):
        super().__init__(cache, clock)
        self.app_codes = app_codes

    def get_by_vendor(self, vendor_id: str) -> List[Customer]:
        return [c for c in self.get_all() if c.vendor_id == vendor_id]

    def get_by_app_code(self, app_code: str) -> Optional[Customer]:
        return next((c for c in self.get_all() if c.app_code == app_code), None)

    def get_for_user(self, user: User) -> Optional[Customer]:
        """The customer record a login user belongs to: linked id first, then phone."""
        if user.customer_id:
            customer = self.get_by_id(user.customer_id)
            if customer is not None:
                return customer
        return next((c for c in self.get_all() if c.phone == user.phone), None)

    def create(self, data: CustomerCreate | dict) -> Customer:
        """Create a customer and its app code together.

        The app code record is built already linked to the new customer and
        both collections are written in a single ``put_many``, which the cache
        persists as one structured transaction.
        """
        payload = coerce_payload(CustomerCreate, data)
        now = self.clock()
        code = self.app_codes.next_code(now.year)

        customer = Customer(id=new_id(), app_code=code, created_at=now, **payload.model_dump())
        app_code = self.app_codes.build(code, payload.vendor_id, customer.id)

        customers = self.get_all()
        customers.append(customer)
        codes = self.app_codes.get_all()
        codes.append(app_code)
        self.cache.put_many({
            self.collection: customers,
            self.app_codes.collection: codes,
        })

        logger.info("Created customer %s with app code %s", customer.id, code)
        return customer

    def update(self, customer_id: str, updates: CustomerUpdate | dict) -> Optional[Customer]:
        return self._update(customer_id, coerce_payload(CustomerUpdate, updates))

    def search(self, query: str, vendor_id: str) -> List[Customer]:
        q = query.lower()
        return [
            c for c in self.get_by_vendor(vendor_id)
            if q in c.name.lower()
            or q in c.phone
            or q in c.app_code.lower()
            or q in c.address.lower()
        ]
