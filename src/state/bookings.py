"""
Service visit bookings kept in the remote `bookings` collection.

Anyone may book; a logged in user's bookings carry their id. Listing every
booking, changing a status and deleting are for admins only.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Mapping, Optional

from state.identity import IdentityStore
from store.models import Booking
from store.remote import RemoteStore
from utils.constants import BOOKING_STATUSES
from utils.errors import InvalidInput, ValidationFailed
from utils.logger import get_logger
from utils.validators import clean_phone, validate_booking

_logger = get_logger(__name__)

BOOKINGS = "bookings"


def _newest_first(records) -> List[Booking]:
    bookings = [Booking.from_json(r) for r in records if isinstance(r, dict)]
    bookings.sort(key=lambda b: b.date, reverse=True)
    return bookings


class ServiceBookings:
    def __init__(self, remote: RemoteStore, identity: IdentityStore) -> None:
        self._remote = remote
        self._identity = identity

    async def book(self, form: Mapping[str, str], now: Optional[datetime] = None) -> Booking:
        """
        Validate and submit a booking with status "pending".

        Raises ValidationFailed with every failing field, or RemoteUnavailable
        when the booking could not be saved.
        """
        errors = validate_booking(form)
        if errors:
            raise ValidationFailed(errors)

        user = self._identity.current
        booking = Booking(
            id=None,
            name=form["name"].strip(),
            phone=clean_phone(form["phone"]),
            service=form["service"],
            message=(form.get("message") or "").strip(),
            date=(now or datetime.now()).isoformat(),
            user_id=None if user.is_guest else user.id,
        )
        created = await self._remote.create(BOOKINGS, booking.to_json())
        _logger.info(f"Booked {booking.service} for {booking.name}")
        return Booking.from_json(created or booking.to_json())

    async def my_bookings(self) -> List[Booking]:
        user = self._identity.current
        if user.is_guest:
            return []
        return _newest_first(await self._remote.list(BOOKINGS, userId=user.id))

    async def list_bookings(self, status: str = "all", search: str = "") -> List[Booking]:
        """Admin view: every booking, optionally by status and name/service/id search."""
        self._identity.require_role("admin")
        bookings = _newest_first(await self._remote.list(BOOKINGS))
        if status != "all":
            bookings = [b for b in bookings if b.status == status]
        term = search.strip().lower()
        if term:
            bookings = [
                b
                for b in bookings
                if term in b.name.lower()
                or term in b.service.lower()
                or term in (b.id or "")
            ]
        return bookings

    async def update_status(self, booking_id: str, status: str) -> Booking:
        self._identity.require_role("admin")
        if status not in BOOKING_STATUSES:
            raise InvalidInput(f"Unknown booking status: {status}")
        updated = await self._remote.patch(BOOKINGS, booking_id, {"status": status})
        _logger.info(f"Booking {booking_id} is now {status}")
        return Booking.from_json(updated)

    async def delete(self, booking_id: str) -> None:
        self._identity.require_role("admin")
        await self._remote.delete(BOOKINGS, booking_id)
        _logger.info(f"Deleted booking {booking_id}")
