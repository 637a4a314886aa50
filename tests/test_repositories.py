import asyncio
import re

import pytest
from pydantic import ValidationError

from solar_portal.models import DocumentType, UserType
from solar_portal.repositories.calculations import HISTORY_LIMIT
from solar_portal.repositories.users import DuplicatePhoneError


def _vendor(store, phone="9000000001"):
    return store.users.create({
        "type": UserType.VENDOR,
        "name": "Sun Co",
        "phone": phone,
        "address": "12 Solar Road",
        "password": "secret",
    })


def _customer(store, vendor, **overrides):
    data = {
        "vendor_id": vendor.id,
        "name": "Ravi Kumar",
        "phone": "9876543210",
        "address": "4 Lake View",
        "system_capacity": 5,
        "panels": 12,
    }
    data.update(overrides)
    return store.customers.create(data)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def test_user_lookups_and_login(open_store, clock):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            assert vendor.created_at == clock()
            assert vendor.updated_at is None

            assert store.users.get_by_phone("9000000001") == vendor
            assert store.users.get_by_phone("0000000000") is None
            assert store.users.get_by_type("vendor") == [vendor]
            assert store.users.get_by_type(UserType.CUSTOMER) == []

            assert store.users.validate_login("9000000001", "secret", "vendor") == vendor
            assert store.users.validate_login("9000000001", "wrong", "vendor") is None
            assert store.users.validate_login("9000000001", "secret", "customer") is None

    asyncio.run(scenario())


def test_user_update_merges_and_stamps(open_store, clock):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            clock.advance(minutes=5)

            updated = store.users.update(vendor.id, {"name": "Sun Co Ltd"})
            assert updated.name == "Sun Co Ltd"
            assert updated.phone == vendor.phone
            assert updated.created_at == vendor.created_at
            assert updated.updated_at == clock()
            assert store.users.get_by_id(vendor.id) == updated

            assert store.users.update("missing", {"name": "x"}) is None

            with pytest.raises(ValidationError):
                store.users.update(vendor.id, {"role": "admin"})

    asyncio.run(scenario())


def test_user_create_rejects_unknown_fields(open_store):
    async def scenario():
        async with open_store() as store:
            with pytest.raises(ValidationError):
                store.users.create({
                    "type": "vendor",
                    "name": "x",
                    "phone": "9000000001",
                    "password": "p",
                    "is_admin": True,
                })
            with pytest.raises(ValidationError):
                store.users.create({"type": "installer", "name": "x", "phone": "1", "password": "p"})
            assert store.users.get_all() == []

    asyncio.run(scenario())


def test_user_delete(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            other = _vendor(store, phone="9000000002")
            assert store.users.delete(vendor.id) is True
            assert store.users.get_all() == [other]

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Customers and app codes
# ---------------------------------------------------------------------------

def test_customer_creation_links_app_code(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            customer = _customer(store, vendor)

            assert customer.app_code == "BSV-2026-0001"
            assert customer.status == "pending"
            assert customer.panel_rating == 400

            code = store.app_codes.get_by_code(customer.app_code)
            assert code.customer_id == customer.id
            assert code.vendor_id == vendor.id
            assert code.status == "pending"

            assert store.customers.get_by_app_code("BSV-2026-0001") == customer
            assert store.customers.get_by_vendor(vendor.id) == [customer]
            assert store.app_codes.get_by_vendor(vendor.id) == [code]

            await store.flush()
            stored_codes = await store.adapter.get("bs_app_codes")
            assert stored_codes[0]["customer_id"] == customer.id

    asyncio.run(scenario())


def test_app_codes_unique_and_increasing(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            codes = [_customer(store, vendor, phone=f"98765432{i:02d}").app_code for i in range(5)]

            assert len(set(codes)) == 5
            sequences = [int(re.match(r"^BSV-2026-(\d{4})$", c).group(1)) for c in codes]
            assert sequences == [1, 2, 3, 4, 5]

    asyncio.run(scenario())


def test_app_code_sequence_restarts_each_year(open_store, clock):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            _customer(store, vendor)
            clock.advance(days=80)

            assert _customer(store, vendor).app_code == "BSV-2027-0001"
            assert store.app_codes.next_code(2026) == "BSV-2026-0002"

    asyncio.run(scenario())


def test_app_code_numbers_are_not_reused_after_removal(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            _customer(store, vendor)
            second = _customer(store, vendor)
            store.app_codes.delete("BSV-2026-0001")

            assert second.app_code == "BSV-2026-0002"
            assert store.app_codes.next_code(2026) == "BSV-2026-0003"

    asyncio.run(scenario())


def test_app_code_status_update(open_store):
    async def scenario():
        async with open_store() as store:
            customer = _customer(store, _vendor(store))
            updated = store.app_codes.update_status(customer.app_code, "active")

            assert updated.status == "active"
            assert updated.updated_at is not None
            assert store.app_codes.update_status("BSV-1999-0001", "active") is None

    asyncio.run(scenario())


def test_customer_update_cannot_touch_app_code(open_store):
    async def scenario():
        async with open_store() as store:
            customer = _customer(store, _vendor(store))

            updated = store.customers.update(customer.id, {"status": "active", "system_capacity": 6.5})
            assert updated.status == "active"
            assert updated.system_capacity == 6.5
            assert updated.app_code == customer.app_code

            with pytest.raises(ValidationError):
                store.customers.update(customer.id, {"app_code": "BSV-2026-9999"})
            with pytest.raises(ValidationError):
                store.customers.update(customer.id, {"vendor_id": "someone-else"})
            assert store.customers.get_by_id(customer.id).app_code == customer.app_code

    asyncio.run(scenario())


def test_customer_search(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            other_vendor = _vendor(store, phone="9000000002")
            ravi = _customer(store, vendor)
            meena = _customer(store, vendor, name="Meena Iyer", phone="9123456780", address="Hill Street")
            _customer(store, other_vendor, name="Ravi Other")

            assert store.customers.search("ravi", vendor.id) == [ravi]
            assert store.customers.search("HILL", vendor.id) == [meena]
            assert store.customers.search("91234", vendor.id) == [meena]
            assert store.customers.search("bsv-2026-0002", vendor.id) == [meena]
            assert store.customers.search("nobody", vendor.id) == []

    asyncio.run(scenario())


def test_customer_delete_leaves_dependents(open_store):
    async def scenario():
        async with open_store() as store:
            customer = _customer(store, _vendor(store))
            store.documents.create({
                "customer_id": customer.id,
                "name": "warranty.pdf",
                "payload": "data:application/pdf;base64,AAAA",
                "size": 3,
            })

            assert store.customers.delete(customer.id) is True
            assert store.customers.get_by_id(customer.id) is None
            assert len(store.documents.get_by_customer(customer.id)) == 1
            assert store.app_codes.get_by_code(customer.app_code) is not None

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def test_documents_by_customer_and_type(open_store):
    async def scenario():
        async with open_store() as store:
            warranty = store.documents.create({
                "customer_id": "c1",
                "name": "warranty.pdf",
                "type": "warranty",
                "payload": "A" * 400,
                "size": 300,
            })
            quote = store.documents.create({
                "customer_id": "c1",
                "name": "quote.pdf",
                "type": DocumentType.QUOTATION,
                "payload": "B" * 100,
                "size": 75,
            })
            store.documents.create({"customer_id": "c2", "name": "bill.png", "type": "utility", "payload": "", "size": 0})

            assert store.documents.get_by_customer("c1") == [warranty, quote]
            assert store.documents.get_by_type("c1", "quotation") == [quote]
            assert store.documents.get_by_id(warranty.id) == warranty
            assert store.documents.get_storage_used() == pytest.approx(375.0)

            store.documents.delete(warranty.id)
            assert store.documents.get_by_customer("c1") == [quote]

            with pytest.raises(ValidationError):
                store.documents.create({"customer_id": "c1", "name": "x", "type": "invoice", "payload": "", "size": 0})

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

def test_conversation_is_ordered_by_timestamp(open_store, clock):
    async def scenario():
        async with open_store() as store:
            first = store.messages.send("a", "b", "hello")
            clock.advance(seconds=10)
            second = store.messages.send("b", "a", "hi there")
            clock.advance(seconds=10)
            third = store.messages.send("a", "b", "panels installed?")
            store.messages.send("a", "c", "unrelated")
            clock.advance(seconds=-30)
            earliest = store.messages.send("b", "a", "sent from another device earlier")

            expected = [earliest, first, second, third]
            assert store.messages.get_conversation("a", "b") == expected
            assert store.messages.get_conversation("b", "a") == expected

    asyncio.run(scenario())


def test_unread_counts_and_partners(open_store):
    async def scenario():
        async with open_store() as store:
            m1 = store.messages.send("vendor", "cust1", "welcome")
            m2 = store.messages.send("vendor", "cust1", "documents uploaded")
            store.messages.send("cust2", "vendor", "question")
            store.messages.send("cust1", "vendor", "thanks")

            assert store.messages.get_unread_count("cust1") == 2
            assert store.messages.get_user_conversations("vendor") == ["cust1", "cust2"]

            store.messages.mark_as_read([m1.id, m2.id, "missing"])
            assert store.messages.get_unread_count("cust1") == 0
            assert store.messages.get_unread_count("vendor") == 2

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

def test_session_lifecycle(open_store, clock):
    async def scenario():
        async with open_store() as store:
            assert store.session.is_logged_in() is False
            user = _vendor(store)

            session = store.session.login(user)
            assert store.session.get().user_id == user.id
            assert session.login_time == clock()
            assert store.session.is_logged_in() is True

            store.session.logout()
            assert store.session.get() is None
            assert store.session.is_logged_in() is False

    asyncio.run(scenario())


def test_last_login_wins(open_store):
    async def scenario():
        async with open_store() as store:
            first = _vendor(store)
            second = _vendor(store, phone="9000000002")
            store.session.login(first)
            store.session.login(second)
            assert store.session.get().user_id == second.id

    asyncio.run(scenario())


def test_session_mirror_readable_before_initialize(open_store, store_settings):
    from solar_portal.store import DataStore

    async def scenario():
        async with open_store() as store:
            user = _vendor(store)
            store.session.login(user)
        return user

    user = asyncio.run(scenario())

    cold = DataStore(store_settings)
    assert cold.bootstrap_session().user_id == user.id
    assert cold.session.get().user_id == user.id


def test_logout_clears_mirror(open_store, store_settings):
    from solar_portal.store import DataStore

    async def scenario():
        async with open_store() as store:
            store.session.login(_vendor(store))
            store.session.logout()

        async with open_store() as reopened:
            assert reopened.session.get() is None

    asyncio.run(scenario())
    assert DataStore(store_settings).bootstrap_session() is None


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

def test_settings_theme(open_store):
    async def scenario():
        async with open_store() as store:
            assert store.app_settings.get().theme == "light"
            assert store.app_settings.toggle_theme().theme == "dark"
            assert store.app_settings.toggle_theme().theme == "light"
            assert store.app_settings.set_theme("dark").theme == "dark"

            with pytest.raises(ValidationError):
                store.app_settings.set_theme("sepia")
            with pytest.raises(ValidationError):
                store.app_settings.update({"font": "large"})
            assert store.app_settings.get().theme == "dark"

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Calculation history
# ---------------------------------------------------------------------------

def test_calculation_history_is_capped_newest_first(open_store):
    async def scenario():
        async with open_store() as store:
            for i in range(HISTORY_LIMIT + 5):
                store.calc_history.add("watts", {"value": i}, {"kilowatts": i / 1000})

            history = store.calc_history.get_all()
            assert len(history) == HISTORY_LIMIT
            assert history[0].inputs == {"value": HISTORY_LIMIT + 4}
            assert history[-1].inputs == {"value": 5}
            assert store.calc_history.get_by_type("energy") == []

            store.calc_history.clear()
            assert store.calc_history.get_all() == []

    asyncio.run(scenario())


# ---------------------------------------------------------------------------
# Update validation and phone uniqueness
# ---------------------------------------------------------------------------

def test_update_to_null_is_rejected_and_collection_survives_reopen(open_store):
    async def scenario():
        async with open_store() as store:
            first = _vendor(store)
            second = _vendor(store, phone="9000000002")

            for field in ("name", "phone", "password"):
                with pytest.raises(ValidationError):
                    store.users.update(first.id, {field: None})
            assert store.users.get_by_id(first.id) == first

            customer = _customer(store, first)
            with pytest.raises(ValidationError):
                store.customers.update(customer.id, {"status": None})
            with pytest.raises(ValidationError):
                store.customers.update(customer.id, {"system_capacity": None})
            assert store.customers.get_by_id(customer.id) == customer

        async with open_store() as reopened:
            assert reopened.users.get_all() == [first, second]
            assert reopened.customers.get_all() == [customer]

    asyncio.run(scenario())


def test_update_can_clear_nullable_fields(open_store):
    async def scenario():
        async with open_store() as store:
            user = store.users.create({
                "type": "customer",
                "name": "Ravi Kumar",
                "phone": "9876543210",
                "password": "customer",
                "customer_id": "c1",
            })
            assert store.users.update(user.id, {"customer_id": None}).customer_id is None

    asyncio.run(scenario())


def test_phone_is_unique_across_users(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            other = _vendor(store, phone="9000000002")

            with pytest.raises(DuplicatePhoneError):
                _vendor(store)
            with pytest.raises(ValueError):
                store.users.update(other.id, {"phone": "9000000001"})

            assert store.users.update(vendor.id, {"phone": "9000000001", "name": "Sun Co Ltd"}).name == "Sun Co Ltd"
            assert len(store.users.get_all()) == 2
            assert store.users.get_by_phone("9000000002") == other

    asyncio.run(scenario())


def test_customer_for_user_by_link_then_phone(open_store):
    async def scenario():
        async with open_store() as store:
            vendor = _vendor(store)
            linked = _customer(store, vendor)
            by_phone = _customer(store, vendor, name="Meena Iyer", phone="9123456780")

            linked_user = store.users.create({
                "type": "customer",
                "name": linked.name,
                "phone": "9555555555",
                "password": "customer",
                "customer_id": linked.id,
            })
            phone_user = store.users.create({
                "type": "customer",
                "name": by_phone.name,
                "phone": by_phone.phone,
                "password": "customer",
            })
            stranger = store.users.create({
                "type": "customer",
                "name": "Nobody",
                "phone": "9000000099",
                "password": "customer",
            })

            assert store.customers.get_for_user(linked_user) == linked
            assert store.customers.get_for_user(phone_user) == by_phone
            assert store.customers.get_for_user(stranger) is None

    asyncio.run(scenario())
