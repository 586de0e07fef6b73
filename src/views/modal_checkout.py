from typing import Dict, Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    ContentSwitcher,
    Input,
    Label,
    LoadingIndicator,
    MarkdownViewer,
    RadioButton,
    RadioSet,
)

from state.checkout import CheckoutSession, CheckoutStage, CheckoutStatus
from store.models import Order
from utils.pure import (
    format_card_number,
    format_expiry_date,
    format_phone_number,
    format_pincode,
    format_price,
    generate_markdown_table,
)
from utils.validators import validate_field

DELIVERY_INPUTS = [
    ("fullName", "Full Name", "Asha Rao"),
    ("phoneNumber", "Phone Number", "9876543210"),
    ("email", "Email", "user@example.com"),
    ("addressLine1", "Address Line 1", "House no, street"),
    ("addressLine2", "Address Line 2 (optional)", "Landmark"),
    ("city", "City", "Pune"),
    ("state", "State", "Maharashtra"),
    ("pincode", "Pincode", "411001"),
]

CARD_INPUTS = [
    ("cardNumber", "Card Number", "1234 5678 9012 3456"),
    ("cardHolder", "Card Holder", "Name on card"),
    ("expiryDate", "Expiry", "MM/YY"),
    ("cvv", "CVV", "123"),
]

FORMATTERS = {
    "phoneNumber": format_phone_number,
    "pincode": format_pincode,
    "cardNumber": format_card_number,
    "expiryDate": format_expiry_date,
}


def _field_inputs(fields) -> ComposeResult:
    for name, label, placeholder in fields:
        yield Label(label)
        yield Input(
            placeholder=placeholder,
            id=f"input-{name}",
            password=name == "cvv",
        )
        yield Label("", id=f"error-{name}", classes="field-error")


class CheckoutModal(ModalScreen[Optional[Order]]):
    """
    Two-step checkout over a CheckoutSession: delivery address, then payment.
    Dismisses with the confirmed Order, or None if the user backs out.
    """

    def __init__(self, session: CheckoutSession):
        super().__init__()
        self.session = session
        self._order: Optional[Order] = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-checkout"):
            with ContentSwitcher(initial="step-delivery", id="switcher-checkout"):
                with VerticalScroll(id="step-delivery"):
                    yield Label("Delivery Address", classes="step-title")
                    yield from _field_inputs(DELIVERY_INPUTS)
                    with Horizontal(classes="step-btns"):
                        yield Button("Go Back", id="btn-quit")
                        yield Button("Continue", id="btn-to-payment", variant="primary")

                with VerticalScroll(id="step-payment"):
                    yield Label("Payment Method", classes="step-title")
                    with RadioSet(id="radio-payment"):
                        yield RadioButton("UPI", value=True, id="radio-upi")
                        yield RadioButton("Credit / Debit Card", id="radio-card")
                    with Vertical(id="div-upi"):
                        yield from _field_inputs([("upiId", "UPI ID", "name@bank")])
                    with Vertical(id="div-card"):
                        yield from _field_inputs(CARD_INPUTS)
                    with Horizontal(classes="step-btns"):
                        yield Button("Back", id="btn-to-delivery")
                        yield Button("Place Order", id="btn-submit", variant="primary")

                with Container(id="step-processing"):
                    yield Label("Processing payment...", classes="step-title")
                    yield LoadingIndicator()

                with VerticalScroll(id="step-confirmed"):
                    yield MarkdownViewer("", id="md-confirmation", show_table_of_contents=False)
                    yield Button("Done", id="btn-done", variant="success")

            yield MarkdownViewer("", id="md-summary", show_table_of_contents=False)

    async def on_mount(self):
        form = await self.session.prefill()
        for name, value in form.items():
            for field_input in self.query(f"#input-{name}").results(Input):
                field_input.value = value
        self.query_one("#div-card").display = False
        await self._render_summary()
        self.query_one("#input-fullName").focus()

    async def _render_summary(self) -> None:
        cart = self.app.state.cart
        rows = [
            [i.product_name, format_price(i.price), i.quantity, format_price(i.line_total)]
            for i in cart.current_items()
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(
            ["Product", "Unit Price", "Qty", "Total"], rows, ["l", "r", "c", "r"]
        )
        t = self.session.totals()
        md += "\n\n" + generate_markdown_table(
            None,
            [
                ["Subtotal", format_price(t.subtotal)],
                ["Shipping", "FREE" if not t.shipping else format_price(t.shipping)],
                ["GST (18%)", format_price(t.tax)],
                ["**Total**", f"**{format_price(t.total)}**"],
            ],
            ["l", "r"],
        )
        await self.query_one("#md-summary", MarkdownViewer).document.update(md)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape" and self.session.stage is not CheckoutStage.PROCESSING:
            self.dismiss(self._order)

    # ---------------------------
    # Field editing
    # ---------------------------

    @on(Input.Changed)
    def handle_field_changed(self, event: Input.Changed) -> None:
        name = event.input.id.removeprefix("input-")
        formatter = FORMATTERS.get(name)
        if formatter:
            formatted = formatter(event.value)
            if formatted != event.value:
                # setting value fires another Changed with the formatted text
                event.input.value = formatted
                return
        self.session.update({name: event.value})
        if name in self.session.errors:
            self._show_errors({name: validate_field(name, event.value) or ""})

    @on(Input.Blurred)
    def handle_field_blurred(self, event: Input.Blurred) -> None:
        name = event.input.id.removeprefix("input-")
        self._show_errors({name: validate_field(name, event.value) or ""})

    def _show_errors(self, errors: Dict[str, str]) -> None:
        for name, message in errors.items():
            for label in self.query(f"#error-{name}").results(Label):
                label.update(message)
            for field_input in self.query(f"#input-{name}").results(Input):
                field_input.set_class(bool(message), "-invalid")
            if message:
                self.session.errors[name] = message
            else:
                self.session.errors.pop(name, None)

    @on(RadioSet.Changed, "#radio-payment")
    def handle_payment_method(self, event: RadioSet.Changed) -> None:
        method = event.pressed.id.removeprefix("radio-")
        self.session.select_payment_method(method)
        self.query_one("#div-upi").display = method == "upi"
        self.query_one("#div-card").display = method == "card"

    # ---------------------------
    # Steps
    # ---------------------------

    @on(Button.Pressed, "#btn-to-payment")
    def handle_to_payment(self) -> None:
        errors = self.session.submit_delivery()
        if errors:
            self._show_errors(errors)
            self.notify("Please fix the highlighted fields.", severity="error")
            return
        self.query_one(ContentSwitcher).current = "step-payment"
        self.query_one("#radio-payment").focus()

    @on(Button.Pressed, "#btn-to-delivery")
    def handle_to_delivery(self) -> None:
        self.session.back_to_delivery()
        self.query_one(ContentSwitcher).current = "step-delivery"

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self) -> None:
        switcher = self.query_one(ContentSwitcher)
        switcher.current = "step-processing"
        outcome = await self.session.place_order()

        if outcome.status is CheckoutStatus.CONFIRMED:
            self._order = outcome.order
            await self._render_confirmation(outcome.order, outcome.saved_remotely)
            switcher.current = "step-confirmed"
            self.query_one("#btn-done").focus()
            return

        if outcome.status is CheckoutStatus.INVALID:
            self._show_errors(outcome.errors)
            delivery_failed = self.session.delivery_errors()
            self.session.stage = (
                CheckoutStage.COLLECTING_DELIVERY
                if delivery_failed
                else CheckoutStage.COLLECTING_PAYMENT
            )
            switcher.current = "step-delivery" if delivery_failed else "step-payment"
        elif outcome.status in (CheckoutStatus.EMPTY_CART, CheckoutStatus.LOGIN_REQUIRED):
            self.notify(outcome.message, severity="error")
            self.dismiss(None)
            return
        else:
            switcher.current = "step-payment"
        self.notify(outcome.message, severity="error")

    async def _render_confirmation(self, order: Order, saved_remotely: bool) -> None:
        address = order.delivery_address
        rows = [[i.product_name, i.quantity, format_price(i.total)] for i in order.items]
        md = (
            "### Order Confirmed!\n\n"
            f"**Order ID:** {order.id}  \n"
            f"**Total Paid:** {format_price(order.total)}  \n"
            f"**Payment:** {order.payment_method.upper()}  \n"
            f"**Estimated Delivery:** {order.estimated_delivery[:10]}\n\n"
            f"Delivering to {address.full_name}, {address.address_line1}, "
            f"{address.city}, {address.state} - {address.pincode}\n\n"
        )
        md += generate_markdown_table(["Product", "Qty", "Total"], rows, ["l", "c", "r"])
        if not saved_remotely:
            md += "\n\n_The store is offline; this order is saved on this device._"
        await self.query_one("#md-confirmation", MarkdownViewer).document.update(md)

    @on(Button.Pressed, "#btn-done")
    def handle_done(self):
        self.dismiss(self._order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
