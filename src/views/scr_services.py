from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, Select

from utils.constants import BOOKING_STATUSES, SERVICE_TYPES
from utils.errors import RemoteUnavailable, ValidationFailed
from utils.pure import format_phone_number
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

FIELDS = ("name", "phone", "service")


class ServicesScreen(BaseScreen):
    """
    Book an installation, maintenance or repair visit. Logged in users
    also see the visits they booked before.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-booking"):
            yield Label("Name")
            yield Input(placeholder="Asha Rao", id="input-name")
            yield Label("", id="error-name", classes="field-error")
            yield Label("Phone Number")
            yield Input(placeholder="9876543210", id="input-phone")
            yield Label("", id="error-phone", classes="field-error")
            yield Label("Service")
            yield Select(
                [(label, key) for key, label in SERVICE_TYPES.items()],
                prompt="Select a service",
                id="select-service",
            )
            yield Label("", id="error-service", classes="field-error")
            yield Label("Message (optional)")
            yield Input(placeholder="Preferred time, address details...", id="input-message")
            with Horizontal(classes="step-btns"):
                yield Button("Book Service", id="btn-book", variant="primary")
        yield Label("My Bookings", classes="step-title")
        yield DataTable(id="table-my-bookings")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_columns("Date", "Service", "Status")
        self.query_one("#input-name", Input).focus()

    @on(Input.Changed, "#input-phone")
    def handle_phone_changed(self, event: Input.Changed) -> None:
        formatted = format_phone_number(event.value)
        if formatted != event.value:
            event.input.value = formatted

    @on(ScreenResume)
    def handle_resume(self) -> None:
        name_input = self.query_one("#input-name", Input)
        user = self.app.state.user
        if not name_input.value and not user.is_guest:
            name_input.value = user.display_name
        self._load_bookings()

    @work(exclusive=True, group="my-bookings")
    async def _load_bookings(self) -> None:
        table = self.query_one(DataTable)
        try:
            bookings = await self.app.state.bookings.my_bookings()
        except RemoteUnavailable:
            bookings = []
        table.clear()
        for b in bookings:
            table.add_row(
                b.date[:10],
                SERVICE_TYPES.get(b.service, b.service),
                BOOKING_STATUSES.get(b.status, b.status.title()),
            )

    def _show_errors(self, errors) -> None:
        for name in FIELDS:
            self.query_one(f"#error-{name}", Label).update(errors.get(name, ""))
        for name in ("name", "phone"):
            self.query_one(f"#input-{name}", Input).set_class(name in errors, "-invalid")

    @on(Button.Pressed, "#btn-book")
    @work(exclusive=True)
    async def handle_book(self) -> None:
        service = self.query_one("#select-service", Select).value
        form = {
            "name": self.query_one("#input-name", Input).value,
            "phone": self.query_one("#input-phone", Input).value,
            "service": "" if service is Select.BLANK else service,
            "message": self.query_one("#input-message", Input).value,
        }
        try:
            booking = await self.app.state.bookings.book(form)
        except ValidationFailed as e:
            self._show_errors(e.errors)
            return
        except RemoteUnavailable:
            self.notify(
                "Failed to submit booking. Please try again or contact us directly.",
                severity="error",
            )
            return

        self._show_errors({})
        self.query_one("#input-message", Input).value = ""
        await self.app.push_screen_wait(
            DialogModal(
                "Booking received!",
                tone="positive",
                detail=f"We will call {booking.phone} to confirm your "
                f"{SERVICE_TYPES[booking.service].lower()} visit.",
            )
        )
        self._load_bookings()
