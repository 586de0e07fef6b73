import unittest

from fake_server import StoreTestCase
from utils.errors import RemoteUnavailable


class RemoteStoreTestCase(StoreTestCase):
    async def test_crud_against_collection(self):
        created = await self.remote.create("cart", {"productId": "p001", "userId": "u1"})
        record_id = created["id"]

        self.assertEqual(len(await self.remote.list("cart", userId="u1")), 1)
        self.assertEqual(await self.remote.list("cart", userId="u2"), [])

        await self.remote.replace("cart", record_id, {"productId": "p001", "quantity": 3})
        self.assertEqual((await self.remote.get("cart", record_id))["quantity"], 3)

        await self.remote.patch("cart", record_id, {"quantity": 4})
        self.assertEqual((await self.remote.get("cart", record_id))["quantity"], 4)

        await self.remote.delete("cart", record_id)
        self.assertEqual(await self.remote.list("cart"), [])

    async def test_none_filters_are_dropped(self):
        products = await self.remote.list("products", category=None)
        self.assertEqual(len(products), 3)
        self.assertEqual(self.server.calls[-1], ("GET", "/products"))

    async def test_error_status_becomes_remote_unavailable(self):
        with self.assertRaises(RemoteUnavailable) as ctx:
            await self.remote.delete("cart", "nope")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_connection_failure_becomes_remote_unavailable(self):
        self.server.down = True
        with self.assertRaises(RemoteUnavailable) as ctx:
            await self.remote.list("products")
        self.assertIsNone(ctx.exception.status_code)

    async def test_is_reachable(self):
        self.assertTrue(await self.remote.is_reachable("orders", timeout=1))
        self.server.down = True
        self.assertFalse(await self.remote.is_reachable("orders", timeout=1))


if __name__ == "__main__":
    unittest.main()
