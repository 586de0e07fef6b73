import unittest

from fake_server import StoreTestCase
from state.accounts import AccountDirectory
from store import local
from utils.constants import REGISTERED_USERS_KEY
from utils.errors import AuthenticationFailed, InvalidInput


class AccountDirectoryTestCase(StoreTestCase):
    def setUp(self):
        super().setUp()
        self.server.records("users").extend(
            [
                {"id": 1, "name": "Asha Rao", "email": "asha@example.in", "password": "pw", "role": "admin"},
                {"id": 2, "name": "Ravi", "email": "ravi@example.in", "password": "pw", "blocked": True},
                {"id": 3, "name": "Meera", "email": "meera@example.in", "password": "pw", "status": "pending"},
            ]
        )
        self.accounts = AccountDirectory(self.remote)

    async def assertRejected(self, email, password, message):
        with self.assertRaises(AuthenticationFailed) as ctx:
            await self.accounts.authenticate(email, password)
        self.assertEqual(str(ctx.exception), message)

    async def test_authenticate(self):
        user = await self.accounts.authenticate(" asha@example.in ", "pw")
        self.assertEqual(user.id, "1")
        self.assertEqual(user.username, "Asha Rao")
        self.assertEqual(user.role, "admin")

    async def test_authenticate_rejections(self):
        await self.assertRejected("", "pw", "Email and password are required")
        await self.assertRejected("nobody@example.in", "pw", "No account found with this email")
        await self.assertRejected("asha@example.in", "nope", "Invalid password")
        await self.assertRejected(
            "ravi@example.in", "pw", "Your account has been blocked. Please contact support."
        )
        await self.assertRejected(
            "meera@example.in",
            "pw",
            "Your account is pending approval. Please contact administrator.",
        )

    async def test_register_remotely(self):
        user = await self.accounts.register("Kiran", "kiran@example.in", "secret")
        self.assertEqual(user.username, "Kiran")
        self.assertEqual(user.role, "user")
        stored = self.server.records("users")[-1]
        self.assertEqual(stored["email"], "kiran@example.in")
        self.assertEqual(str(stored["id"]), user.id)

    async def test_register_validation(self):
        with self.assertRaises(InvalidInput):
            await self.accounts.register("", "kiran@example.in", "secret")
        with self.assertRaises(InvalidInput):
            await self.accounts.register("Kiran", "kiran@", "secret")
        with self.assertRaises(InvalidInput) as ctx:
            await self.accounts.register("Asha", "asha@example.in", "secret")
        self.assertEqual(str(ctx.exception), "Email already taken.")

    async def test_register_and_login_while_remote_down(self):
        self.server.down = True
        user = await self.accounts.register("Kiran", "kiran@example.in", "secret")
        self.assertTrue(user.id.startswith("local-"))
        saved = await local.get_json(REGISTERED_USERS_KEY)
        self.assertEqual([u["email"] for u in saved], ["kiran@example.in"])

        again = await self.accounts.authenticate("KIRAN@example.in", "secret")
        self.assertEqual(again.id, user.id)
        with self.assertRaises(InvalidInput):
            await self.accounts.register("Kiran", "kiran@example.in", "other")


if __name__ == "__main__":
    unittest.main()
