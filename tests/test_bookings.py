import unittest
from datetime import datetime

from fake_server import StoreTestCase
from state.bookings import ServiceBookings
from state.identity import IdentityStore
from utils.errors import InvalidInput, PermissionDenied, RemoteUnavailable, ValidationFailed

ADMIN = {"id": "a1", "username": "Store Admin", "role": "admin"}
ASHA = {"id": "u1", "username": "Asha Rao"}

FORM = {
    "name": " Asha Rao ",
    "phone": "98765 43210",
    "service": "installation",
    "message": "Evenings please",
}


def booking_record(booking_id, status="pending", when="2026-10-01T10:00:00", **extra):
    return {
        "id": booking_id,
        "name": "Ravi Kumar",
        "phone": "9123456780",
        "service": "repair",
        "message": "",
        "date": when,
        "status": status,
        **extra,
    }


class ServiceBookingsTestCase(StoreTestCase):
    async def asyncSetUp(self):
        self.identity = IdentityStore()
        await self.identity.load()
        self.bookings = ServiceBookings(self.remote, self.identity)

    # ---------- booking ----------

    async def test_guest_booking_is_saved_as_pending(self):
        booking = await self.bookings.book(FORM, now=datetime(2026, 10, 19, 9, 30))

        self.assertEqual(booking.id, "100")
        saved = self.server.records("bookings")
        self.assertEqual(len(saved), 1)
        self.assertEqual(saved[0]["name"], "Asha Rao")
        self.assertEqual(saved[0]["phone"], "9876543210")
        self.assertEqual(saved[0]["status"], "pending")
        self.assertEqual(saved[0]["date"], "2026-10-19T09:30:00")
        self.assertNotIn("userId", saved[0])

    async def test_logged_in_booking_carries_user_id(self):
        await self.identity.login(ASHA)
        await self.bookings.book(FORM)
        self.server.records("bookings").append(booking_record("B2", userId="u2"))

        self.assertEqual(self.server.records("bookings")[0]["userId"], "u1")
        mine = await self.bookings.my_bookings()
        self.assertEqual([b.user_id for b in mine], ["u1"])

    async def test_invalid_form_is_not_sent(self):
        with self.assertRaises(ValidationFailed) as ctx:
            await self.bookings.book({**FORM, "phone": "12345", "service": "painting"})
        self.assertEqual(set(ctx.exception.errors), {"phone", "service"})
        self.assertEqual(self.server.calls, [])

    async def test_remote_failure_is_raised(self):
        self.server.down = True
        with self.assertRaises(RemoteUnavailable):
            await self.bookings.book(FORM)

    async def test_guest_has_no_bookings(self):
        self.server.records("bookings").append(booking_record("B1"))
        self.assertEqual(await self.bookings.my_bookings(), [])

    # ---------- admin ----------

    async def test_admin_operations_require_admin_role(self):
        self.server.records("bookings").append(booking_record("B1"))
        await self.identity.login(ASHA)
        with self.assertRaises(PermissionDenied):
            await self.bookings.list_bookings()
        with self.assertRaises(PermissionDenied):
            await self.bookings.update_status("B1", "confirmed")
        with self.assertRaises(PermissionDenied):
            await self.bookings.delete("B1")
        self.assertEqual(self.server.calls, [])
        self.assertEqual(self.server.records("bookings")[0]["status"], "pending")

    async def test_admin_lists_filters_and_searches(self):
        self.server.records("bookings").extend(
            [
                booking_record("B1", when="2026-09-01T10:00:00"),
                booking_record("B2", status="completed", when="2026-10-01T10:00:00"),
                {
                    **booking_record("B3", when="2026-09-15T10:00:00"),
                    "name": "Meera Nair",
                    "service": "filter",
                },
            ]
        )
        await self.identity.login(ADMIN)

        every = await self.bookings.list_bookings()
        self.assertEqual([b.id for b in every], ["B2", "B3", "B1"])
        pending = await self.bookings.list_bookings(status="pending")
        self.assertEqual({b.id for b in pending}, {"B1", "B3"})
        found = await self.bookings.list_bookings(search="MEERA")
        self.assertEqual([b.id for b in found], ["B3"])
        found = await self.bookings.list_bookings(search="filter")
        self.assertEqual([b.id for b in found], ["B3"])

    async def test_admin_updates_status_with_patch(self):
        self.server.records("bookings").append(booking_record("B1"))
        await self.identity.login(ADMIN)

        updated = await self.bookings.update_status("B1", "confirmed")
        self.assertEqual(updated.status, "confirmed")
        self.assertEqual(updated.name, "Ravi Kumar")
        self.assertIn(("PATCH", "/bookings/B1"), self.server.calls)

        with self.assertRaises(InvalidInput):
            await self.bookings.update_status("B1", "lost")
        with self.assertRaises(RemoteUnavailable) as ctx:
            await self.bookings.update_status("B404", "confirmed")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_admin_deletes_booking(self):
        self.server.records("bookings").extend([booking_record("B1"), booking_record("B2")])
        await self.identity.login(ADMIN)
        await self.bookings.delete("B1")
        self.assertEqual([b["id"] for b in self.server.records("bookings")], ["B2"])


if __name__ == "__main__":
    unittest.main()
