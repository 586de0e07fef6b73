from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer, Select

from store.models import Order
from utils.constants import ORDER_STATUSES
from utils.errors import InvalidInput, PermissionDenied, RemoteUnavailable
from utils.pure import format_price, generate_markdown_table
from views.base_screen import AdminScreen


class AdminOrdersScreen(AdminScreen):
    """
    Every customer order, newest first, with a status filter. The
    highlighted order's status can be changed.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-filters"):
            yield Label("Show", classes="inline-label")
            yield Select(
                [("All Orders", "all")] + [(v, k) for k, v in ORDER_STATUSES.items()],
                value="all",
                allow_blank=False,
                id="select-order-filter",
            )
            yield Label("", id="label-orders-source")
        with Vertical():
            yield DataTable(id="table-admin-orders")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Select(
                [(v, k) for k, v in ORDER_STATUSES.items()],
                allow_blank=True,
                prompt="New status",
                id="select-order-status",
            )
            yield Button("Update Status", id="btn-update-status", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order ID", "Date", "Customer", "Items", "Status", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(Select.Changed, "#select-order-filter")
    @on(ScreenResume)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self._render_detail(self._selected(event.row_key.value))

    def _selected(self, order_id: Optional[str] = None) -> Optional[Order]:
        if order_id is None:
            table = self.query_one(DataTable)
            if not self._orders or table.cursor_row is None:
                return None
            order_id = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        return next((o for o in self._orders if o.id == order_id), None)

    @work(exclusive=True, group="admin-orders")
    async def _load_orders(self) -> None:
        status = self.query_one("#select-order-filter", Select).value
        try:
            self._orders = await self.app.state.admin.list_orders(status)
        except PermissionDenied:
            return
        except RemoteUnavailable as e:
            self.notify(f"Could not load orders: {e}", severity="error")
            return

        self.query_one("#label-orders-source", Label).update(f"{len(self._orders)} order(s)")
        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(
                o.id,
                o.order_date[:10],
                o.user_name or o.user_email or o.user_id,
                sum(i.quantity for i in o.items),
                ORDER_STATUSES.get(o.status, o.status.title()),
                format_price(o.total),
                key=o.id,
            )
        if self._orders:
            table.move_cursor(row=0)
        self._render_detail(self._orders[0] if self._orders else None)

    def _render_detail(self, order: Optional[Order]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order is None:
            viewer.document.update("### No order selected.")
            return
        address = order.delivery_address
        rows = [[i.product_name, i.quantity, format_price(i.total)] for i in order.items]
        viewer.document.update(
            f"### Order {order.id} ({ORDER_STATUSES.get(order.status, order.status)})\n"
            f"Customer: {order.user_name} <{order.user_email}>  \n"
            f"Ship to: {address.full_name}, {address.phone_number}, {address.address_line1}, "
            f"{address.city} - {address.pincode}\n\n"
            + generate_markdown_table(["Product", "Qty", "Total"], rows, ["l", "r", "r"])
            + f"\n\n**Grand Total:** {format_price(order.total)} by {order.payment_method.upper()}"
        )

    @on(Button.Pressed, "#btn-update-status")
    @work(exclusive=True)
    async def handle_update_status(self) -> None:
        order = self._selected()
        new_status = self.query_one("#select-order-status", Select).value
        if order is None:
            self.notify("Select an order first.", severity="warning")
            return
        if new_status is Select.BLANK or new_status == order.status:
            self.notify("Nothing to update.", severity="warning")
            return

        try:
            await self.app.state.admin.update_order_status(order.id, new_status)
        except (InvalidInput, PermissionDenied, RemoteUnavailable) as e:
            self.notify(f"Update failed: {e}", severity="error")
            return
        self.notify(f"Order {order.id} marked {ORDER_STATUSES[new_status]}.")
        self._load_orders()
