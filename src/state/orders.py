from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from store import local
from store.models import Identity, Order
from store.remote import RemoteStore
from utils.constants import CANCELLABLE_ORDER_STATUSES, orders_key
from utils.errors import InvalidInput, LocalStorageError, OrderNotFound, RemoteUnavailable
from utils.logger import get_logger

_logger = get_logger(__name__)

ORDERS = "orders"


def _find(records: list, order_id: str) -> Optional[dict]:
    for r in records:
        if isinstance(r, dict) and str(r.get("id")) == order_id:
            return r
    return None


class OrderHistory:
    """Past orders of an identified user, newest first."""

    def __init__(self, remote: RemoteStore) -> None:
        self._remote = remote
        self.source: Optional[str] = None

    async def list_orders(self, identity: Identity) -> List[Order]:
        """
        Read the remote `orders` collection for the user, or the local order
        log when the remote store is unreachable. Guests have no orders.
        """
        if identity.is_guest:
            return []
        try:
            records = await self._remote.list(ORDERS, userId=identity.id)
            self.source = "remote"
        except RemoteUnavailable as e:
            _logger.warning(f"Could not fetch orders, using local log: {e}")
            records = await self._local_log(identity.id)
            self.source = "local"

        orders = [Order.from_json(r) for r in records if isinstance(r, dict)]
        orders = [o for o in orders if o.user_id == identity.id]
        orders.sort(key=lambda o: o.order_date, reverse=True)
        return orders

    async def get_order(self, identity: Identity, order_id: str) -> Optional[Order]:
        """
        Fetch one of the user's orders by id for tracking. Falls back to the
        local order log when the remote store is unreachable. Orders that
        belong to someone else are reported as missing.
        """
        if identity.is_guest:
            return None
        try:
            record = await self._remote.get(ORDERS, order_id)
        except RemoteUnavailable as e:
            if e.status_code == 404:
                return None
            _logger.warning(f"Could not fetch order {order_id}, using local log: {e}")
            record = _find(await self._local_log(identity.id), order_id)
        if not isinstance(record, dict) or not record.get("id"):
            return None
        order = Order.from_json(record)
        return order if order.user_id == identity.id else None

    async def cancel(self, identity: Identity, order_id: str, now: Optional[datetime] = None) -> Order:
        """
        Cancel an order that has not shipped yet.

        Raises OrderNotFound, InvalidInput when the order is past cancelling,
        or RemoteUnavailable when the change could not be saved.
        """
        order = await self.get_order(identity, order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found")
        if order.status not in CANCELLABLE_ORDER_STATUSES:
            raise InvalidInput(f"Order {order_id} is {order.status} and can no longer be cancelled")

        stamp = (now or datetime.now()).isoformat()
        updated = await self._remote.patch(
            ORDERS, order_id, {"status": "cancelled", "cancelledAt": stamp, "updatedAt": stamp}
        )
        await self._mark_local(identity.id, order_id, "cancelled")
        _logger.info(f"Order {order_id} cancelled")
        return Order.from_json(updated)

    async def _mark_local(self, user_id: str, order_id: str, status: str) -> None:
        records = await self._local_log(user_id)
        record = _find(records, order_id)
        if record is None:
            return
        record["status"] = status
        try:
            await local.set_json(orders_key(user_id), records)
        except LocalStorageError as e:
            _logger.warning(f"Could not update local order log: {e}")

    async def _local_log(self, user_id: str) -> list:
        try:
            records = await local.get_json(orders_key(user_id), [])
        except LocalStorageError as e:
            _logger.warning(f"Ignoring unreadable order log: {e}")
            return []
        return records if isinstance(records, list) else []
