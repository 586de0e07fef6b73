from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from store import local
from store.models import Product
from store.remote import RemoteStore
from utils.constants import (
    CATALOG_CACHE_KEY,
    CATEGORIES,
    FALLBACK_PRODUCTS,
    PURIFIER_RECOMMENDATIONS,
    TDS_BANDS,
)
from utils.errors import InvalidInput, LocalStorageError, RemoteUnavailable
from utils.logger import get_logger

_logger = get_logger(__name__)

PRODUCTS = "products"


def _parse(records) -> Tuple[Product, ...]:
    products = (Product.from_json(r) for r in records if isinstance(r, dict))
    return tuple(p for p in products if p.id)


class CatalogLoader:
    """
    Read-only product list. Sources, in order: the remote store, the last
    catalog cached locally, the bundled fallback catalog.
    """

    def __init__(self, remote: RemoteStore) -> None:
        self._remote = remote
        self._products: Tuple[Product, ...] = ()
        self.source: Optional[str] = None

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    async def load(self) -> Tuple[Product, ...]:
        try:
            records = await self._remote.list(PRODUCTS)
        except RemoteUnavailable as e:
            _logger.warning(f"Could not fetch products: {e}")
        else:
            self._products, self.source = _parse(records), "remote"
            try:
                await local.set_json(CATALOG_CACHE_KEY, records)
            except LocalStorageError as e:
                _logger.warning(f"Could not cache catalog: {e}")
            return self._products

        try:
            cached = await local.get_json(CATALOG_CACHE_KEY)
        except LocalStorageError as e:
            _logger.warning(f"Ignoring unreadable catalog cache: {e}")
            cached = None
        if isinstance(cached, list) and cached:
            _logger.info("Using cached catalog")
            self._products, self.source = _parse(cached), "cache"
        else:
            _logger.info("Using bundled fallback catalog")
            self._products, self.source = _parse(FALLBACK_PRODUCTS), "fallback"
        return self._products

    def find(self, product_id) -> Optional[Product]:
        product_id = str(product_id)
        for product in self._products:
            if product.id == product_id:
                return product
        return None


def filter_products(
    products: Iterable[Product],
    category: str = "all",
    search: str = "",
    sort_by: str = "featured",
) -> List[Product]:
    """
    Category filter, case-insensitive search over name and description,
    then sort. Unknown sort keys behave like "featured" (rating, high first).
    """
    if category not in CATEGORIES:
        raise InvalidInput(f"Unknown category: {category}")
    term = search.strip().lower()

    result = [
        p
        for p in products
        if (category == "all" or p.category == category)
        and (not term or term in p.name.lower() or term in p.description.lower())
    ]

    if sort_by == "price-low":
        result.sort(key=lambda p: p.price)
    elif sort_by == "price-high":
        result.sort(key=lambda p: p.price, reverse=True)
    elif sort_by == "name":
        result.sort(key=lambda p: p.name.lower())
    else:
        result.sort(key=lambda p: p.rating, reverse=True)
    return result


def recommend_purifier(tds: int) -> Dict[str, object]:
    """Map a TDS reading (ppm) to the matching purifier recommendation band."""
    if tds < 0:
        raise InvalidInput("TDS cannot be negative")
    for upper, band in TDS_BANDS:
        if upper is None or tds <= upper:
            return {"band": band, **PURIFIER_RECOMMENDATIONS[band]}
    raise AssertionError("TDS_BANDS must end with an open band")
