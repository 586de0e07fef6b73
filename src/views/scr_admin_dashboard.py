from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from utils.constants import ORDER_STATUSES
from utils.errors import PermissionDenied, RemoteUnavailable
from utils.pure import format_price, generate_markdown_table
from views.base_screen import AdminScreen


class AdminDashboardScreen(AdminScreen):
    """
    Store overview: product, order and user counts, revenue, and orders by status.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        try:
            summary = await self.app.state.admin.dashboard()
        except PermissionDenied:
            return
        except RemoteUnavailable as e:
            await self.query_one("#md-dashboard", MarkdownViewer).document.update(
                f"### Dashboard unavailable\n\nCould not reach the store server: {e}"
            )
            return

        overview_md = (
            "### Store Overview\n\n"
            f"- Products: {summary.products}\n"
            f"- Orders: {summary.orders}\n"
            f"- Registered Users: {summary.users}\n"
            f"- Open Orders: {summary.open_orders}\n"
            f"- Revenue (excluding cancelled): {format_price(summary.revenue)}\n\n"
        )
        rows = [
            [label, summary.status_counts.get(status, 0)]
            for status, label in ORDER_STATUSES.items()
        ]
        status_md = "### Orders by Status\n\n" + generate_markdown_table(
            ["Status", "Orders"], rows, ["l", "r"]
        )
        await self.query_one("#md-dashboard", MarkdownViewer).document.update(
            overview_md + status_md
        )
