import logging
from typing import List, Optional

from solar_portal.models import User, UserCreate, UserType, UserUpdate, new_id
from solar_portal.repositories.base import CollectionRepository, coerce_payload

logger = logging.getLogger(__name__)


class DuplicatePhoneError(ValueError):
    pass


class UserRepository(CollectionRepository[User]):
    """Users keyed by id; a phone number belongs to at most one account."""

    collection = "users"
    model = User

    def get_by_phone(self, phone: str) -> Optional[User]:
        return next((u for u in self.get_all() if u.phone == phone), None)

    def get_by_type(self, user_type: UserType | str) -> List[User]:
        user_type = UserType(user_type)
        return [u for u in self.get_all() if u.type == user_type]

    def _check_phone_free(self, phone: str, user_id: Optional[str] = None):
        owner = self.get_by_phone(phone)
        if owner is not None and owner.id != user_id:
            raise DuplicatePhoneError(f"Phone {phone} is already registered")

    def create(self, data: UserCreate | dict) -> User:
        payload = coerce_payload(UserCreate, data)
        self._check_phone_free(payload.phone)
        user = User(id=new_id(), created_at=self.clock(), **payload.model_dump())
        logger.info("Created %s user %s", user.type.value, user.id)
        return self._append(user)

    def update(self, user_id: str, updates: UserUpdate | dict) -> Optional[User]:
        payload = coerce_payload(UserUpdate, updates)
        if payload.phone is not None:
            self._check_phone_free(payload.phone, user_id)
        return self._update(user_id, payload)

    def validate_login(self, phone: str, password: str, user_type: UserType | str) -> Optional[User]:
        """Plain equality match; there is no hashing, throttling or lockout."""
        user_type = UserType(user_type)
        return next(
            (
                u for u in self.get_all()
                if u.phone == phone and u.password == password and u.type == user_type
            ),
            None,
        )
