import dataclasses
import unittest

from fake_server import PRODUCTS, StoreTestCase
from state.checkout import CheckoutStage
from state.session import AppState
from store.models import GUEST
from utils.config import settings
from utils.errors import PermissionDenied


class AppStateTestCase(StoreTestCase):
    async def asyncSetUp(self):
        await self.remote.aclose()
        self.state = AppState(
            settings=dataclasses.replace(settings, processing_delay=0, reachability_timeout=1),
            transport=self.server.transport(),
        )
        self.remote = self.state.remote

    async def test_start_restores_identity_and_cart(self):
        self.assertIs(await self.state.start(), GUEST)
        await self.state.identity.login({"id": "u1", "username": "asha"})
        await self.state.cart.add(PRODUCTS[0])

        restarted = AppState(settings=self.state.settings, transport=self.server.transport())
        try:
            user = await restarted.start()
            self.assertEqual(user.id, "u1")
            self.assertEqual(restarted.user, user)
            self.assertEqual(restarted.cart.quantity_of("p001"), 1)
        finally:
            await restarted.close()

    async def test_new_checkout_uses_shared_cart(self):
        await self.state.start()
        await self.state.identity.login({"id": "u1", "username": "asha"})
        await self.state.cart.add(PRODUCTS[2])

        session = self.state.new_checkout()
        self.assertEqual(session.stage, CheckoutStage.COLLECTING_DELIVERY)
        self.assertEqual(session.totals().subtotal, 1000)

    async def test_catalog_through_shared_remote(self):
        products = await self.state.catalog.load()
        self.assertEqual(len(products), 3)
        self.assertEqual(self.state.catalog.source, "remote")

    async def test_admin_providers_follow_identity(self):
        await self.state.start()
        self.assertFalse(self.state.is_admin)
        with self.assertRaises(PermissionDenied):
            await self.state.admin.dashboard()

        await self.state.identity.login({"id": "a1", "username": "boss", "role": "admin"})
        self.assertTrue(self.state.is_admin)
        summary = await self.state.admin.dashboard()
        self.assertEqual(summary.products, 3)
        self.assertEqual(await self.state.bookings.list_bookings(), [])


if __name__ == "__main__":
    unittest.main()
