from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from store.models import Order
from utils.constants import CANCELLABLE_ORDER_STATUSES, ORDER_STATUSES
from utils.errors import InvalidInput, NotFound, RemoteUnavailable
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal


class OrdersScreen(BaseScreen):
    """
    Past orders of the logged in user, newest first. Orders that have not
    shipped yet can be cancelled.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("up,down", "noop", "Browse Orders", show=True, key_display="↑↓"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._selected: Order | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Cancel Order", id="btn-cancel-order", variant="error")
            yield Label("", id="label-orders-source")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order ID", "Date", "Items", "Status", "Total")

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        order_id = event.row_key.value
        self._selected = next((o for o in self._orders if o.id == order_id), None)
        self._render_detail(self._selected)

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        state = self.app.state
        if state.user.is_guest:
            self._orders = []
            self.query_one("#label-orders-source", Label).update(
                "Log in to see your orders."
            )
        else:
            self._orders = await state.orders.list_orders(state.user)
            source = "saved on this device" if state.orders.source == "local" else ""
            self.query_one("#label-orders-source", Label).update(
                f"{len(self._orders)} order(s) {source}".strip()
            )

        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(
                o.id,
                o.order_date[:10],
                sum(i.quantity for i in o.items),
                ORDER_STATUSES.get(o.status, o.status.title()),
                format_price(o.total),
                key=o.id,
            )
        if self._orders:
            table.move_cursor(row=0)
        self._selected = self._orders[0] if self._orders else None
        self._render_detail(self._selected)

    def _render_detail(self, order: Order | None) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### Select an order to view its details.")
            return

        address = order.delivery_address
        header = (
            f"### Order {order.id}\n"
            f"Status: {ORDER_STATUSES.get(order.status, order.status.title())}  \n"
            f"Placed: {order.order_date[:16].replace('T', ' ')}  \n"
            f"Estimated delivery: {order.estimated_delivery[:10]}  \n"
            f"Ship to: {address.full_name}, {address.address_line1}, "
            f"{address.city} - {address.pincode}\n\n"
        )
        rows = [
            [i.product_name, i.quantity, format_price(i.price), format_price(i.total)]
            for i in order.items
        ]
        items_md = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
        )
        footer = (
            f"\n\nSubtotal {format_price(order.subtotal)}, "
            f"shipping {format_price(order.shipping)}, GST {format_price(order.tax)}  \n"
            f"**Grand Total:** {format_price(order.total)} "
            f"paid by {order.payment_method.upper()}"
        )
        viewer.document.update(header + items_md + footer)

    @on(Button.Pressed, "#btn-cancel-order")
    @work(exclusive=True)
    async def handle_cancel(self) -> None:
        order = self._selected
        if order is None:
            self.notify("Select an order first.", severity="warning")
            return
        if order.status not in CANCELLABLE_ORDER_STATUSES:
            self.notify(
                f"This order is {order.status} and can no longer be cancelled.",
                severity="warning",
            )
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(f"Cancel order {order.id}?", tone="error")
        ):
            return

        state = self.app.state
        try:
            await state.orders.cancel(state.user, order.id)
        except (InvalidInput, NotFound) as e:
            self.notify(str(e), severity="error")
        except RemoteUnavailable:
            self.notify(
                "Could not reach the store to cancel. Please try again later.",
                severity="error",
            )
        else:
            self.notify(f"Order {order.id} cancelled.")
        self._load_orders()
