import unittest
from datetime import date, datetime, timedelta

from fake_server import PRODUCTS, StoreTestCase
from state.cart import CartSynchronizer
from state.checkout import (
    CheckoutSession,
    CheckoutStage,
    CheckoutStatus,
    compute_totals,
)
from state.identity import IdentityStore
from store import local
from utils.constants import address_key, cart_backup_key, orders_key
from utils.errors import LocalStorageError, ValidationFailed

TODAY = date(2026, 10, 19)
USER = {"id": "u1", "username": "Asha Rao", "email": "asha@example.in"}

DELIVERY = {
    "fullName": "Asha Rao",
    "phoneNumber": "9876543210",
    "email": "asha@example.in",
    "addressLine1": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
}


async def accept_payment(order):
    return None


class TotalsTestCase(unittest.TestCase):
    def test_free_shipping_above_threshold(self):
        totals = compute_totals(6000)
        self.assertEqual(totals.shipping, 0)
        self.assertEqual(totals.tax, 1080)
        self.assertEqual(totals.total, 7080)

    def test_flat_fee_at_or_below_threshold(self):
        totals = compute_totals(3000)
        self.assertEqual(totals.shipping, 200)
        self.assertEqual(totals.tax, 540)
        self.assertEqual(totals.total, 3740)
        self.assertEqual(compute_totals(5000).shipping, 200)

    def test_tax_is_rounded_to_paise(self):
        self.assertEqual(compute_totals(999.99).tax, 180.0)


class CheckoutTestCase(StoreTestCase):
    async def asyncSetUp(self):
        self.identity = IdentityStore()
        self.cart = CartSynchronizer(self.remote, self.identity)
        await self.identity.load()

    def new_session(self, payment_processor=accept_payment):
        return CheckoutSession(
            self.identity,
            self.cart,
            self.remote,
            payment_processor=payment_processor,
            reachability_timeout=1,
        )

    async def fill_cart(self):
        await self.identity.login(USER)
        await self.cart.add(PRODUCTS[0])
        await self.cart.add(PRODUCTS[2])
        await self.cart.add(PRODUCTS[2])

    # ---------- guards ----------

    async def test_empty_cart_is_rejected_first(self):
        session = self.new_session()
        outcome = await session.place_order(TODAY)
        self.assertEqual(outcome.status, CheckoutStatus.EMPTY_CART)
        self.assertFalse(outcome.success)

    async def test_guest_must_log_in(self):
        await self.cart.add(PRODUCTS[0])
        session = self.new_session()
        session.update(DELIVERY)
        session.update({"upiId": "asha@okaxis"})

        outcome = await session.place_order(TODAY)
        self.assertEqual(outcome.status, CheckoutStatus.LOGIN_REQUIRED)
        self.assertEqual(self.server.records("orders"), [])
        self.assertEqual(self.cart.item_count(), 1)

    async def test_all_field_errors_reported_together(self):
        await self.fill_cart()
        session = self.new_session()
        session.update({**DELIVERY, "pincode": "011001", "city": ""})
        session.select_payment_method("card")
        session.update({"cardNumber": "4539 1488 0343 6468", "cvv": "12"})

        outcome = await session.place_order(TODAY)
        self.assertEqual(outcome.status, CheckoutStatus.INVALID)
        self.assertEqual(
            set(outcome.errors),
            {"pincode", "city", "cardNumber", "cardHolder", "expiryDate", "cvv"},
        )
        self.assertEqual(session.errors, outcome.errors)
        self.assertEqual(self.server.records("orders"), [])

    async def test_validate_raises_with_whole_batch(self):
        session = self.new_session()
        session.update(DELIVERY)
        with self.assertRaises(ValidationFailed) as ctx:
            session.validate(TODAY)
        self.assertEqual(set(ctx.exception.errors), {"upiId"})

        session.update({"upiId": "asha@okaxis"})
        session.validate(TODAY)
        self.assertEqual(session.errors, {})

    async def test_unknown_payment_method_is_refused(self):
        session = self.new_session()
        with self.assertRaises(ValueError):
            session.select_payment_method("cash")
        self.assertEqual(session.payment_method, "upi")

    # ---------- happy path ----------

    async def test_upi_order_is_saved_and_cart_cleared(self):
        await self.fill_cart()
        session = self.new_session()
        session.update(DELIVERY)
        session.update({"upiId": "asha@okaxis"})

        outcome = await session.place_order(TODAY)
        self.assertEqual(outcome.status, CheckoutStatus.CONFIRMED)
        self.assertTrue(outcome.saved_remotely)
        self.assertEqual(session.stage, CheckoutStage.CONFIRMED)

        order = outcome.order
        self.assertTrue(order.id.startswith("ORD"))
        self.assertEqual(order.user_id, "u1")
        self.assertEqual(order.subtotal, 20999)
        self.assertEqual(order.shipping, 0)
        self.assertEqual(order.tax, round(20999 * 0.18, 2))
        self.assertEqual(order.payment_details, {"upiId": "asha@okaxis"})
        self.assertEqual([(i.product_id, i.quantity) for i in order.items], [("p001", 1), ("p003", 2)])
        self.assertEqual(
            datetime.fromisoformat(order.estimated_delivery)
            - datetime.fromisoformat(order.order_date),
            timedelta(days=7),
        )

        remote_orders = self.server.records("orders")
        self.assertEqual([o["id"] for o in remote_orders], [order.id])
        self.assertEqual(remote_orders[0]["deliveryAddress"]["country"], "India")

        history = await local.get_json(orders_key("u1"))
        self.assertEqual([o["id"] for o in history], [order.id])
        saved_address = await local.get_json(address_key("u1"))
        self.assertEqual(saved_address["pincode"], "411001")

        self.assertEqual(self.cart.item_count(), 0)
        self.assertEqual(self.server.records("cart"), [])
        self.assertIsNone(await local.get_json(cart_backup_key("u1")))

    async def test_card_order_keeps_only_last_four_digits(self):
        await self.fill_cart()
        session = self.new_session()
        session.update(DELIVERY)
        session.select_payment_method("card")
        session.update(
            {
                "cardNumber": "4539 1488 0343 6467",
                "cardHolder": "Asha Rao",
                "expiryDate": "12/28",
                "cvv": "123",
            }
        )

        outcome = await session.place_order(TODAY)
        self.assertTrue(outcome.success)
        self.assertEqual(
            outcome.order.payment_details, {"cardLast4": "6467", "cardHolder": "Asha Rao"}
        )
        self.assertNotIn("4539148803436467", str(self.server.records("orders")))
        self.assertNotIn("cvv", self.server.records("orders")[0]["paymentDetails"])

    async def test_unreachable_remote_still_confirms_from_local_log(self):
        await self.fill_cart()
        session = self.new_session()
        session.update(DELIVERY)
        session.update({"upiId": "asha@okaxis"})

        self.server.down = True
        outcome = await session.place_order(TODAY)
        self.assertEqual(outcome.status, CheckoutStatus.CONFIRMED)
        self.assertFalse(outcome.saved_remotely)
        self.assertEqual(self.server.records("orders"), [])

        history = await local.get_json(orders_key("u1"))
        self.assertEqual(len(history), 1)
        self.assertEqual(self.cart.item_count(), 0)

    async def test_address_write_failure_does_not_fail_logged_order(self):
        await self.fill_cart()
        session = self.new_session()
        session.update(DELIVERY)
        session.update({"upiId": "asha@okaxis"})

        # Only the saved-address write fails; the order log still goes through.
        orig_set_json = local.set_json

        async def failing_address_write(key, value):
            if key == address_key("u1"):
                raise LocalStorageError(f"Could not write '{key}': disk full")
            await orig_set_json(key, value)

        self.server.down = True
        try:
            local.set_json = failing_address_write  # type: ignore
            outcome = await session.place_order(TODAY)
        finally:
            local.set_json = orig_set_json  # restore

        self.assertEqual(outcome.status, CheckoutStatus.CONFIRMED)
        self.assertFalse(outcome.saved_remotely)
        history = await local.get_json(orders_key("u1"))
        self.assertEqual([o["id"] for o in history], [outcome.order.id])
        self.assertIsNone(await local.get_json(address_key("u1")))
        self.assertEqual(self.cart.item_count(), 0)

    async def test_order_log_failure_with_remote_down_is_reported(self):
        await self.fill_cart()
        session = self.new_session()
        session.update(DELIVERY)
        session.update({"upiId": "asha@okaxis"})

        orig_append_json = local.append_json

        async def failing_append(key, entry):
            raise LocalStorageError(f"Could not write '{key}': disk full")

        self.server.down = True
        try:
            local.append_json = failing_append  # type: ignore
            outcome = await session.place_order(TODAY)
        finally:
            local.append_json = orig_append_json  # restore

        self.assertEqual(outcome.status, CheckoutStatus.PAYMENT_FAILED)
        self.assertEqual(session.stage, CheckoutStage.COLLECTING_PAYMENT)
        self.assertEqual(self.cart.item_count(), 3)

    async def test_payment_failure_keeps_cart(self):
        async def decline(order):
            raise RuntimeError("gateway timeout")

        await self.fill_cart()
        session = self.new_session(payment_processor=decline)
        session.update(DELIVERY)
        session.update({"upiId": "asha@okaxis"})

        outcome = await session.place_order(TODAY)
        self.assertEqual(outcome.status, CheckoutStatus.PAYMENT_FAILED)
        self.assertEqual(session.stage, CheckoutStage.COLLECTING_PAYMENT)
        self.assertEqual(self.cart.item_count(), 3)
        self.assertEqual(self.server.records("orders"), [])
        self.assertIsNone(await local.get_json(orders_key("u1")))

    # ---------- form flow ----------

    async def test_prefill_uses_identity_then_saved_address(self):
        await self.identity.login(USER)
        session = self.new_session()
        form = await session.prefill()
        self.assertEqual(form["fullName"], "Asha Rao")
        self.assertEqual(form["email"], "asha@example.in")
        self.assertEqual(form["city"], "")

        await local.set_json(address_key("u1"), {**DELIVERY, "city": "Mumbai"})
        form = await self.new_session().prefill()
        self.assertEqual(form["city"], "Mumbai")
        self.assertEqual(form["pincode"], "411001")

    async def test_guest_prefill_leaves_form_blank(self):
        form = await self.new_session().prefill()
        self.assertEqual(form["fullName"], "")
        self.assertEqual(form["country"], "India")

    async def test_submit_delivery_moves_between_stages(self):
        session = self.new_session()
        errors = session.submit_delivery()
        self.assertIn("fullName", errors)
        self.assertEqual(session.stage, CheckoutStage.COLLECTING_DELIVERY)

        session.update(DELIVERY)
        self.assertEqual(session.submit_delivery(), {})
        self.assertEqual(session.stage, CheckoutStage.COLLECTING_PAYMENT)

        session.back_to_delivery()
        self.assertEqual(session.stage, CheckoutStage.COLLECTING_DELIVERY)

    async def test_completion_status(self):
        session = self.new_session()
        status = session.completion_status()
        self.assertFalse(status["delivery"].complete)
        self.assertFalse(status["payment"].complete)

        session.update({**DELIVERY, "pincode": "011001"})
        session.update({"upiId": "asha@okaxis"})
        status = session.completion_status()
        self.assertTrue(status["delivery"].complete)
        self.assertFalse(status["delivery"].valid)
        self.assertTrue(status["payment"].complete)
        self.assertTrue(status["payment"].valid)

    async def test_totals_follow_cart(self):
        await self.identity.login(USER)
        await self.cart.add(PRODUCTS[2])
        totals = self.new_session().totals()
        self.assertEqual(totals.subtotal, 1000)
        self.assertEqual(totals.shipping, 200)
        self.assertEqual(totals.total, 1380)


if __name__ == "__main__":
    unittest.main()
