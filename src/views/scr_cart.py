from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Label, Rule

from state.checkout import compute_totals
from store.models import CartLineItem
from utils.messages import CartChangedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import ConfirmDialogModal, DialogModal


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartLineItem):
        super().__init__()
        self.item = item

    def compose(self):
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(self.item.product_name, id="label-item-name")
                yield Label(format_price(self.item.price), id="label-item-price")
                yield Label(format_price(self.item.line_total), id="label-item-total")
            with Horizontal(id="div-actions"):
                yield Button("-", id="btn-item-sub")
                yield Label(str(self.item.quantity), id="label-item-qty")
                yield Button("+", id="btn-item-add")
                yield Button("Remove", id="btn-item-remove", variant="error")

    def on_mount(self):
        # line items carry the stock seen when they were added
        if self.item.quantity >= self.item.stock:
            self.query_one("#btn-item-add", Button).disabled = True

    @on(Button.Pressed, "#btn-item-add")
    @work(exclusive=True)
    async def handle_add_qty(self):
        await self._set_quantity(self.item.quantity + 1)

    @on(Button.Pressed, "#btn-item-sub")
    @work(exclusive=True)
    async def handle_sub_qty(self):
        await self._set_quantity(self.item.quantity - 1)

    @on(Button.Pressed, "#btn-item-remove")
    @work(exclusive=True)
    async def handle_remove_item(self):
        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Do you really want to remove this item from cart?")
        ):
            return
        result = await self.app.state.cart.remove(self.item.product_id)
        self._report(result, "Item removed from cart.")

    async def _set_quantity(self, qty: int):
        result = await self.app.state.cart.update_quantity(self.item.product_id, qty)
        self._report(result, "")

    def _report(self, result, ok_text: str) -> None:
        if result.success:
            if ok_text:
                self.notify(ok_text)
        elif result.data is not None:
            self.notify(f"Saved locally only: {result.error}", severity="warning")
        else:
            self.notify(result.error, severity="error")
        self.post_message(CartChangedMessage())


class CartScreen(BaseScreen):
    """
    Line items of the current identity's cart, totals, clear and checkout.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        self.render_cart()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="cart")
    async def handle_refresh(self):
        await self.app.state.cart.reload()
        self.render_cart()

    @on(CartChangedMessage)
    @on(ScreenResume)
    def handle_cart_change(self):
        self.render_cart()

    @work(exclusive=True)  # must be exclusive, two renders would mount duplicates
    async def render_cart(self):
        cart = self.app.state.cart
        cart_items = list(cart.current_items())

        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in cart_items])
        content.set_class(not cart_items, "no-items")

        totals = compute_totals(cart.total())
        if cart_items:
            summary = (
                f"Subtotal: {format_price(totals.subtotal)}   "
                f"Shipping: {'FREE' if not totals.shipping else format_price(totals.shipping)}   "
                f"GST: {format_price(totals.tax)}   "
                f"Total: {format_price(totals.total)}"
            )
        else:
            summary = "Your cart is empty."
        self.query_one("#label-cart-total", Label).update(summary)

    @on(Button.Pressed, "#btn-clear-cart")
    @work(exclusive=True, group="cart")
    async def handle_clear_cart(self) -> None:
        cart = self.app.state.cart
        if not cart.current_items():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if not await self.app.push_screen_wait(
            ConfirmDialogModal(
                "Do you really want to remove all items from cart?", tone="error"
            )
        ):
            return

        result = await cart.clear()
        while result.failed:
            retry = await self.app.push_screen_wait(
                DialogModal(
                    "Cart cleared, but some items could not be removed from the store.",
                    primary_text="Retry",
                    secondary_text="Ignore",
                    tone="warning",
                    detail=", ".join(o.product_id for o in result.failed),
                )
            )
            if not retry:
                break
            result = await cart.retry_deletes(result)
        if not result.success:
            self.notify(result.error or "Failed to clear cart", severity="error")
        self.render_cart()

    @on(Button.Pressed, "#btn-checkout")
    @work(exclusive=True, group="cart")
    async def handle_checkout(self) -> None:
        state = self.app.state
        if not state.cart.current_items():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if state.user.is_guest:
            if await self.app.push_screen_wait(
                DialogModal(
                    "Please log in to complete your purchase",
                    primary_text="Log in",
                    secondary_text="Cancel",
                )
            ):
                self.app.login_flow()
            return

        order = await self.app.push_screen_wait(CheckoutModal(state.new_checkout()))
        if order is not None:
            self.notify(f"Order placed. Your order number is {order.id}.")
        self.render_cart()
