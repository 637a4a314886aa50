"""Vendor registration, customer onboarding, vendor and customer login, session restore."""

import logging
from typing import Optional

from solar_portal.models import Customer, Session, User, UserType
from solar_portal.repositories import CustomerRepository, SessionRepository, UserRepository

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 10
MIN_PASSWORD_LENGTH = 4
DEFAULT_CUSTOMER_PASSWORD = "customer"
DEFAULT_CAPACITY_KW = 5
DEFAULT_PANELS = 12
NOT_PROVIDED = "Not provided"


class RegistrationError(ValueError):
    pass


def _validate_phone(phone: str) -> str:
    phone = (phone or "").strip()
    if len(phone) < MIN_PHONE_LENGTH:
        raise RegistrationError("Please enter a valid phone number")
    return phone


class AuthService:
    def __init__(self, users: UserRepository, customers: CustomerRepository, session: SessionRepository):
        self.users = users
        self.customers = customers
        self.session = session

    def register_vendor(
        self,
        name: str,
        phone: str,
        password: str,
        confirm_password: str,
        address: str = "",
        email: str = "",
    ) -> User:
        name = (name or "").strip()
        if not name:
            raise RegistrationError("Please enter your business name")
        phone = _validate_phone(phone)
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise RegistrationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if password != confirm_password:
            raise RegistrationError("Passwords do not match")
        if self.users.get_by_phone(phone) is not None:
            raise RegistrationError("This phone number is already registered")

        return self.users.create({
            "type": UserType.VENDOR,
            "name": name,
            "phone": phone,
            "email": email.strip(),
            "address": address.strip() or NOT_PROVIDED,
            "password": password,
        })

    def login_vendor(self, phone: str, password: str) -> Optional[Session]:
        user = self.users.validate_login((phone or "").strip(), password, UserType.VENDOR)
        if user is None:
            logger.info("Vendor login rejected for phone ending %s", (phone or "")[-4:])
            return None
        return self.session.login(user)

    def login_customer(self, app_code: str, phone: str, address: str = "") -> Optional[Session]:
        """Log a customer in by app code and phone.

        An unknown code creates a customer under the first registered vendor;
        an unknown phone creates the customer's login user. Returns None when
        no vendor exists yet.
        """
        code = (app_code or "").strip().upper()
        if not code:
            raise RegistrationError("Please enter your application code")
        phone = _validate_phone(phone)
        address = (address or "").strip()

        customer = self.customers.get_by_app_code(code)
        if customer is None:
            vendors = self.users.get_by_type(UserType.VENDOR)
            if not vendors:
                logger.info("Customer login with %s but no vendor is registered", code)
                return None
            customer = self.customers.create({
                "vendor_id": vendors[0].id,
                "name": f"Customer {code[-4:]}",
                "phone": phone,
                "address": address or NOT_PROVIDED,
            })

        user = self.users.get_by_phone(phone)
        if user is None:
            user = self.users.create({
                "type": UserType.CUSTOMER,
                "customer_id": customer.id,
                "name": customer.name,
                "phone": phone,
                "address": address or customer.address,
                "password": DEFAULT_CUSTOMER_PASSWORD,
            })

        return self.session.login(user)

    def add_customer(
        self,
        vendor_id: str,
        name: str,
        phone: str,
        address: str = "",
        system_capacity: float = DEFAULT_CAPACITY_KW,
        panels: int = DEFAULT_PANELS,
    ) -> Customer:
        """Vendor-side onboarding: the customer record plus its login user."""
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name or not phone:
            raise RegistrationError("Name and phone required")
        if self.users.get_by_phone(phone) is not None:
            raise RegistrationError("This phone number is already registered")
        address = (address or "").strip() or NOT_PROVIDED

        customer = self.customers.create({
            "vendor_id": vendor_id,
            "name": name,
            "phone": phone,
            "address": address,
            "system_capacity": system_capacity or DEFAULT_CAPACITY_KW,
            "panels": panels or DEFAULT_PANELS,
        })
        self.users.create({
            "type": UserType.CUSTOMER,
            "customer_id": customer.id,
            "name": name,
            "phone": phone,
            "address": address,
            "password": DEFAULT_CUSTOMER_PASSWORD,
        })
        return customer

    def get_vendor_for(self, user: User) -> Optional[User]:
        """The vendor a customer user chats with, if their customer record names one."""
        customer = self.customers.get_for_user(user)
        if customer is None or not customer.vendor_id:
            return None
        return self.users.get_by_id(customer.vendor_id)

    def restore_session(self) -> Optional[Session]:
        """Return the stored session if its user still exists, else log out.

        Before the store has loaded, the mirrored session is returned as is;
        users cannot be checked yet.
        """
        current = self.session.get()
        if current is None or not self.session.loaded:
            return current
        if self.users.get_by_id(current.user_id) is None:
            logger.info("Dropping session for missing user %s", current.user_id)
            self.session.logout()
            return None
        return current

    def logout(self):
        self.session.logout()
