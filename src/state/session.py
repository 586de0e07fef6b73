from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import httpx

from state.accounts import AccountDirectory
from state.admin import AdminConsole
from state.bookings import ServiceBookings
from state.cart import CartSynchronizer
from state.catalog import CatalogLoader
from state.checkout import CheckoutSession, PaymentProcessor
from state.identity import IdentityStore
from state.orders import OrderHistory
from store.models import Identity
from store.remote import RemoteStore
from utils.config import Settings, settings as default_settings


@dataclass
class AppState:
    """
    Session-wide providers shared by screens.

    Built once per app run; start() restores the persisted identity (which
    loads its cart), close() releases the HTTP client.
    """

    settings: Settings = field(default_factory=lambda: default_settings)
    transport: Optional[httpx.AsyncBaseTransport] = None

    def __post_init__(self) -> None:
        self.remote = RemoteStore(
            self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            transport=self.transport,
        )
        self.identity = IdentityStore()
        self.cart = CartSynchronizer(self.remote, self.identity)
        self.catalog = CatalogLoader(self.remote)
        self.orders = OrderHistory(self.remote)
        self.accounts = AccountDirectory(self.remote)
        self.bookings = ServiceBookings(self.remote, self.identity)
        self.admin = AdminConsole(self.remote, self.identity, self.catalog)

    @property
    def user(self) -> Identity:
        return self.identity.current

    @property
    def is_admin(self) -> bool:
        return self.identity.has_role("admin")

    async def start(self) -> Identity:
        return await self.identity.load()

    async def close(self) -> None:
        await self.remote.aclose()

    def new_checkout(self, payment_processor: Optional[PaymentProcessor] = None) -> CheckoutSession:
        return CheckoutSession(
            self.identity,
            self.cart,
            self.remote,
            payment_processor=payment_processor,
            reachability_timeout=self.settings.reachability_timeout,
            processing_delay=self.settings.processing_delay,
        )
