from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select

from store.models import Booking
from utils.constants import BOOKING_STATUSES, SERVICE_TYPES
from utils.errors import InvalidInput, PermissionDenied, RemoteUnavailable
from views.base_screen import AdminScreen
from views.modal_dialog import ConfirmDialogModal


class AdminBookingsScreen(AdminScreen):
    """
    Service visit requests from customers. Search by name, service or id,
    filter by status, change a status or delete a booking.
    """

    def __init__(self) -> None:
        super().__init__()
        self._bookings: List[Booking] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-filters"):
            yield Input(id="input-booking-search", placeholder="Search name, service or id...")
            yield Select(
                [("All Bookings", "all")] + [(v, k) for k, v in BOOKING_STATUSES.items()],
                value="all",
                allow_blank=False,
                id="select-booking-filter",
            )
        yield DataTable(id="table-bookings")
        yield Label("", id="label-booking-message")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Select(
                [(v, k) for k, v in BOOKING_STATUSES.items()],
                allow_blank=True,
                prompt="New status",
                id="select-booking-status",
            )
            yield Button("Update Status", id="btn-update-status", variant="success")
            yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Date", "Name", "Phone", "Service", "Status")

    @on(Button.Pressed, "#btn-refresh")
    @on(Input.Changed, "#input-booking-search")
    @on(Select.Changed, "#select-booking-filter")
    @on(ScreenResume)
    def handle_refresh(self):
        self._load_bookings()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        booking = self._selected()
        message = booking.message if booking and booking.message else ""
        self.query_one("#label-booking-message", Label).update(message)

    def _selected(self) -> Optional[Booking]:
        table = self.query_one(DataTable)
        if not self._bookings or table.cursor_row is None:
            return None
        booking_id = table.coordinate_to_cell_key(table.cursor_coordinate).row_key.value
        return next((b for b in self._bookings if b.id == booking_id), None)

    @work(exclusive=True, group="admin-bookings")
    async def _load_bookings(self) -> None:
        status = self.query_one("#select-booking-filter", Select).value
        search = self.query_one("#input-booking-search", Input).value
        try:
            self._bookings = await self.app.state.bookings.list_bookings(status, search)
        except PermissionDenied:
            return
        except RemoteUnavailable as e:
            self.notify(f"Could not load bookings: {e}", severity="error")
            return

        table = self.query_one(DataTable)
        table.clear()
        for b in self._bookings:
            table.add_row(
                b.id,
                b.date[:10],
                b.name,
                b.phone,
                SERVICE_TYPES.get(b.service, b.service),
                BOOKING_STATUSES.get(b.status, b.status.title()),
                key=b.id,
            )

    @on(Button.Pressed, "#btn-update-status")
    @work(exclusive=True)
    async def handle_update_status(self) -> None:
        booking = self._selected()
        new_status = self.query_one("#select-booking-status", Select).value
        if booking is None:
            self.notify("Select a booking first.", severity="warning")
            return
        if new_status is Select.BLANK or new_status == booking.status:
            self.notify("Nothing to update.", severity="warning")
            return

        try:
            await self.app.state.bookings.update_status(booking.id, new_status)
        except (InvalidInput, PermissionDenied, RemoteUnavailable) as e:
            self.notify(f"Update failed: {e}", severity="error")
            return
        self.notify(f"Booking {booking.id} marked {BOOKING_STATUSES[new_status]}.")
        self._load_bookings()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        booking = self._selected()
        if booking is None:
            self.notify("Select a booking first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(f"Delete booking {booking.id} for {booking.name}?", tone="error")
        ):
            return

        try:
            await self.app.state.bookings.delete(booking.id)
        except (PermissionDenied, RemoteUnavailable) as e:
            self.notify(f"Delete failed: {e}", severity="error")
            return
        self.notify("Booking deleted.")
        self._load_bookings()
