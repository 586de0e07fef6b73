"""
Cart synchronizer.

Keeps one in-memory list of line items for every owner loaded during the
session and scopes every query and mutation to the current identity.
Identified users are backed by the remote `cart` collection with a local
backup snapshot; guests live only in local storage.

Local state is authoritative for the UI: a failed remote write is reported
in the result, but the in-memory list and the local snapshot are updated
regardless.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Tuple, Union

from state.identity import IdentityStore
from store import local
from store.models import CartLineItem, Identity, Product
from store.remote import RemoteStore
from utils.constants import DEFAULT_STOCK, GUEST_CART_KEY, cart_backup_key
from utils.errors import (
    InvalidProduct,
    ItemNotFound,
    LocalStorageError,
    RemoteUnavailable,
    StorefrontError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

CART = "cart"


@dataclass(frozen=True)
class CartResult:
    success: bool
    data: Optional[CartLineItem] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[CartLineItem] = None) -> "CartResult":
        return cls(True, data)

    @classmethod
    def fail(cls, error: str, data: Optional[CartLineItem] = None) -> "CartResult":
        return cls(False, data, error)


@dataclass(frozen=True)
class DeleteOutcome:
    product_id: str
    remote_id: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ClearResult:
    """Outcome of clearing a cart: one DeleteOutcome per remote record."""

    success: bool
    outcomes: Tuple[DeleteOutcome, ...] = ()
    error: Optional[str] = None

    @property
    def failed(self) -> Tuple[DeleteOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.success)


class CartSnapshot:
    """
    Point-in-time copy of one owner's line items.

    Each iteration walks the same frozen tuple lazily; mutations made after
    the snapshot was taken are not visible through it.
    """

    def __init__(self, items) -> None:
        self._items: Tuple[CartLineItem, ...] = tuple(items)

    def __iter__(self) -> Iterator[CartLineItem]:
        return (item for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"CartSnapshot({len(self._items)} items)"


def _coerce_product(product: Union[Product, Mapping[str, Any], None]) -> Product:
    if isinstance(product, Mapping):
        product = Product.from_json(product)
    if not isinstance(product, Product) or not product.id:
        raise InvalidProduct("Invalid product data")
    return product


class CartSynchronizer:
    def __init__(self, remote: RemoteStore, identity_store: IdentityStore) -> None:
        self._remote = remote
        self._identity_store = identity_store
        self._items: List[CartLineItem] = []
        # one mutation in flight at a time; closes the add/add race
        self._lock = asyncio.Lock()
        identity_store.subscribe(self.reload)

    @property
    def identity(self) -> Identity:
        return self._identity_store.current

    # ---------------------------
    # Loading & reconciliation
    # ---------------------------

    async def reload(self, identity: Optional[Identity] = None) -> CartSnapshot:
        """
        Load the cart owned by identity (default: current) into memory,
        replacing only that owner's line items.
        """
        identity = identity or self.identity
        async with self._lock:
            if identity.is_guest:
                loaded = await self._read_snapshot(GUEST_CART_KEY)
            else:
                loaded = await self._fetch_remote(identity)
            self._items = [i for i in self._items if not identity.owns(i)] + [
                i for i in loaded if identity.owns(i)
            ]
            _logger.info(f"Loaded {len(loaded)} cart item(s) for {identity.display_name}")
        return self.current_items()

    async def _fetch_remote(self, identity: Identity) -> List[CartLineItem]:
        backup_key = cart_backup_key(identity.id)
        try:
            records = await self._remote.list(CART, userId=identity.id)
        except RemoteUnavailable as e:
            _logger.warning(f"Cart fetch failed, using local backup: {e}")
            return await self._read_snapshot(backup_key)

        items = [CartLineItem.from_json(r) for r in records if isinstance(r, dict)]
        items = await self._push_unsynced(identity, items, backup_key)
        try:
            await local.set_json(backup_key, [i.to_json() for i in items])
        except LocalStorageError as e:
            _logger.warning(f"Could not refresh cart backup: {e}")
        return items

    async def _push_unsynced(
        self, identity: Identity, items: List[CartLineItem], backup_key: str
    ) -> List[CartLineItem]:
        """Create remotely any backed-up line item that never reached the remote store."""
        on_remote = {i.product_id for i in items}
        for pending in await self._read_snapshot(backup_key):
            if pending.remote_id is not None or pending.product_id in on_remote:
                continue
            pushed, error = await self._push(identity, pending)
            if error:
                _logger.warning(f"Still could not sync {pending.product_id}: {error}")
            items.append(pushed)
            on_remote.add(pushed.product_id)
        return items

    async def _read_snapshot(self, key: str) -> List[CartLineItem]:
        try:
            raw = await local.get_json(key, [])
        except LocalStorageError as e:
            _logger.warning(f"Ignoring unreadable cart snapshot '{key}': {e}")
            return []
        if not isinstance(raw, list):
            return []
        return [
            CartLineItem.from_json(r)
            for r in raw
            if isinstance(r, dict) and r.get("productId") is not None
        ]

    async def _persist(self, identity: Identity) -> None:
        key = GUEST_CART_KEY if identity.is_guest else cart_backup_key(identity.id)
        await local.set_json(key, [i.to_json() for i in self._owned(identity)])

    async def _push(
        self, identity: Identity, item: CartLineItem
    ) -> Tuple[CartLineItem, Optional[str]]:
        """Write item to the remote store; returns (item, error message or None)."""
        if identity.is_guest:
            return item, None
        try:
            if item.remote_id:
                record = await self._remote.replace(CART, item.remote_id, item.to_json())
            else:
                record = await self._remote.create(CART, item.to_json())
        except RemoteUnavailable as e:
            return item, str(e)
        if isinstance(record, dict) and record.get("id") is not None:
            item = replace(item, remote_id=str(record["id"]))
        return item, None

    # ---------------------------
    # In-memory helpers
    # ---------------------------

    def _owned(self, identity: Identity) -> List[CartLineItem]:
        return [i for i in self._items if identity.owns(i)]

    def _find(self, identity: Identity, product_id) -> Optional[CartLineItem]:
        product_id = str(product_id)
        for item in self._items:
            if item.product_id == product_id and identity.owns(item):
                return item
        return None

    def _put(self, identity: Identity, item: CartLineItem) -> None:
        for idx, existing in enumerate(self._items):
            if existing.product_id == item.product_id and identity.owns(existing):
                self._items[idx] = item
                return
        self._items.append(item)

    def _drop(self, identity: Identity, product_id: str) -> None:
        self._items = [
            i
            for i in self._items
            if not (i.product_id == product_id and identity.owns(i))
        ]

    # ---------------------------
    # Mutations
    # ---------------------------

    async def add(self, product: Union[Product, Mapping[str, Any]]) -> CartResult:
        """
        Add one unit of product to the current cart.

        Stock is not checked here; callers must not offer out-of-stock
        products.
        """
        identity = self.identity
        try:
            product = _coerce_product(product)
        except InvalidProduct as e:
            return CartResult.fail(str(e))

        async with self._lock:
            try:
                existing = self._find(identity, product.id)
                if existing:
                    item = replace(existing, quantity=existing.quantity + 1)
                else:
                    item = CartLineItem(
                        product_id=product.id,
                        user_id=identity.id,
                        user_name=identity.username,
                        user_email=identity.email,
                        product_name=product.name,
                        product_image=product.image,
                        price=product.price,
                        quantity=1,
                        category=product.category,
                        stock=product.stock if product.stock is not None else DEFAULT_STOCK,
                        added_at=datetime.now().isoformat(),
                    )
                item, error = await self._push(identity, item)
                self._put(identity, item)
                await self._persist(identity)
            except StorefrontError as e:
                _logger.error(f"Add to cart failed for {product.id}: {e}")
                return CartResult.fail(str(e) or "Failed to add to cart")

        if error:
            _logger.warning(f"Added {product.id} locally only: {error}")
            return CartResult.fail(error, item)
        _logger.debug(f"Added {product.id}, quantity now {item.quantity}")
        return CartResult.ok(item)

    async def remove(self, product_id) -> CartResult:
        identity = self.identity
        product_id = str(product_id)
        async with self._lock:
            try:
                existing = self._find(identity, product_id)
                if existing is None:
                    raise ItemNotFound("Item not found in cart")
                self._drop(identity, product_id)

                error = None
                if not identity.is_guest and existing.remote_id:
                    try:
                        await self._remote.delete(CART, existing.remote_id)
                    except RemoteUnavailable as e:
                        error = str(e)
                await self._persist(identity)
            except StorefrontError as e:
                return CartResult.fail(str(e))

        if error:
            return CartResult.fail(error, existing)
        return CartResult.ok(existing)

    async def update_quantity(self, product_id, new_quantity: int) -> CartResult:
        """Set the quantity outright; anything below 1 removes the line item."""
        if new_quantity < 1:
            return await self.remove(product_id)

        identity = self.identity
        async with self._lock:
            try:
                existing = self._find(identity, product_id)
                if existing is None:
                    raise ItemNotFound("Item not found")
                item, error = await self._push(
                    identity, replace(existing, quantity=int(new_quantity))
                )
                self._put(identity, item)
                await self._persist(identity)
            except StorefrontError as e:
                return CartResult.fail(str(e))

        if error:
            return CartResult.fail(error, item)
        return CartResult.ok(item)

    async def clear(self) -> ClearResult:
        """
        Drop every line item of the current owner. Remote deletes are
        attempted one by one; a failure is recorded and the rest continue.
        """
        identity = self.identity
        async with self._lock:
            owned = self._owned(identity)
            outcomes = []
            if not identity.is_guest:
                outcomes = [await self._delete_remote(i) for i in owned if i.remote_id]

            self._items = [i for i in self._items if not identity.owns(i)]
            key = GUEST_CART_KEY if identity.is_guest else cart_backup_key(identity.id)
            try:
                await local.remove(key)
            except LocalStorageError as e:
                return ClearResult(False, tuple(outcomes), str(e))

        result = ClearResult(True, tuple(outcomes))
        if result.failed:
            _logger.warning(f"{len(result.failed)} remote cart record(s) were not deleted")
        return result

    async def retry_deletes(self, previous: ClearResult) -> ClearResult:
        """Re-attempt the remote deletes that failed in a previous clear()."""
        async with self._lock:
            outcomes = []
            for failed in previous.failed:
                try:
                    await self._remote.delete(CART, failed.remote_id)
                    outcomes.append(replace(failed, success=True, error=None))
                except RemoteUnavailable as e:
                    outcomes.append(replace(failed, error=str(e)))
        return ClearResult(True, tuple(outcomes))

    async def _delete_remote(self, item: CartLineItem) -> DeleteOutcome:
        try:
            await self._remote.delete(CART, item.remote_id)
        except RemoteUnavailable as e:
            _logger.warning(f"Failed to delete cart record {item.remote_id}: {e}")
            return DeleteOutcome(item.product_id, item.remote_id, False, str(e))
        return DeleteOutcome(item.product_id, item.remote_id, True)

    # ---------------------------
    # Queries (current owner only)
    # ---------------------------

    def quantity_of(self, product_id) -> int:
        item = self._find(self.identity, product_id)
        return item.quantity if item else 0

    def total(self) -> float:
        return sum(i.price * i.quantity for i in self._owned(self.identity))

    def item_count(self) -> int:
        return sum(i.quantity for i in self._owned(self.identity))

    def current_items(self) -> CartSnapshot:
        return CartSnapshot(self._owned(self.identity))
