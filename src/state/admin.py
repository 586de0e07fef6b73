from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from state.accounts import USERS
from state.catalog import PRODUCTS, CatalogLoader
from state.identity import IdentityStore
from state.orders import ORDERS
from store.models import Order, Product
from store.remote import RemoteStore
from utils.constants import OPEN_ORDER_STATUSES, ORDER_STATUSES
from utils.errors import InvalidInput, ValidationFailed
from utils.logger import get_logger
from utils.validators import parse_number, validate_product_form

_logger = get_logger(__name__)


@dataclass(frozen=True)
class DashboardSummary:
    products: int
    orders: int
    users: int
    revenue: float
    open_orders: int
    status_counts: Dict[str, int] = field(default_factory=dict)


def product_payload(form: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the wire record for a validated product form.

    The entered price is the list price; a discount lowers the selling price
    and keeps the list price as originalPrice.
    """
    list_price = parse_number(form.get("price"), float)
    discount = parse_number(form.get("discount") or 0, float)
    price = round(list_price * (1 - discount / 100), 2) if discount else list_price
    features = form.get("features") or ()
    if isinstance(features, str):
        features = [f.strip() for f in features.split(",") if f.strip()]
    return {
        "name": str(form["name"]).strip(),
        "category": form["category"],
        "price": price,
        "originalPrice": list_price,
        "discount": discount,
        "rating": parse_number(form.get("rating") or 0, float),
        "reviews": parse_number(form.get("reviews") or 0, int) or 0,
        "stock": parse_number(form.get("stock"), int),
        "image": str(form.get("image") or ""),
        "description": str(form["description"]).strip(),
        "features": list(features),
        "updatedAt": (now or datetime.now()).isoformat(),
    }


class AdminConsole:
    """
    Catalog and order management for admins. Every operation checks the
    current identity holds the "admin" role and raises PermissionDenied
    otherwise; remote failures surface as RemoteUnavailable.
    """

    def __init__(
        self, remote: RemoteStore, identity: IdentityStore, catalog: CatalogLoader
    ) -> None:
        self._remote = remote
        self._identity = identity
        self._catalog = catalog

    def _require_admin(self) -> None:
        self._identity.require_role("admin")

    # ---------- products ----------

    async def save_product(
        self, form: Mapping[str, Any], product_id: Optional[str] = None
    ) -> Product:
        """Create a product, or replace product_id when given, then reload the catalog."""
        self._require_admin()
        errors = validate_product_form(form)
        if errors:
            raise ValidationFailed(errors)

        payload = product_payload(form)
        if product_id is None:
            payload["createdAt"] = payload["updatedAt"]
            saved = await self._remote.create(PRODUCTS, payload)
            _logger.info(f"Added product {saved.get('id')} {payload['name']}")
        else:
            saved = await self._remote.replace(PRODUCTS, product_id, payload)
            _logger.info(f"Updated product {product_id}")
        await self._catalog.load()
        return Product.from_json(saved)

    async def delete_product(self, product_id: str) -> None:
        self._require_admin()
        await self._remote.delete(PRODUCTS, product_id)
        _logger.info(f"Deleted product {product_id}")
        await self._catalog.load()

    # ---------- orders ----------

    async def list_orders(self, status: str = "all") -> List[Order]:
        self._require_admin()
        records = await self._remote.list(ORDERS)
        orders = [Order.from_json(r) for r in records if isinstance(r, dict)]
        if status != "all":
            orders = [o for o in orders if o.status == status]
        orders.sort(key=lambda o: o.order_date, reverse=True)
        return orders

    async def update_order_status(
        self, order_id: str, status: str, now: Optional[datetime] = None
    ) -> Order:
        self._require_admin()
        if status not in ORDER_STATUSES:
            raise InvalidInput(f"Unknown order status: {status}")
        stamp = (now or datetime.now()).isoformat()
        changes = {"status": status, "updatedAt": stamp}
        if status == "delivered":
            changes["deliveredDate"] = stamp
        updated = await self._remote.patch(ORDERS, order_id, changes)
        _logger.info(f"Order {order_id} is now {status}")
        return Order.from_json(updated)

    # ---------- dashboard ----------

    async def dashboard(self) -> DashboardSummary:
        self._require_admin()
        products, orders, users = await asyncio.gather(
            self._remote.list(PRODUCTS),
            self._remote.list(ORDERS),
            self._remote.list(USERS),
        )
        statuses = Counter(o.get("status") or "confirmed" for o in orders)
        revenue = sum(
            parse_number(o.get("total"), float) or 0.0
            for o in orders
            if o.get("status") != "cancelled"
        )
        return DashboardSummary(
            products=len(products),
            orders=len(orders),
            users=len(users),
            revenue=round(revenue, 2),
            open_orders=sum(statuses[s] for s in OPEN_ORDER_STATUSES),
            status_counts=dict(statuses),
        )
