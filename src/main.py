from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from state.session import AppState
from utils.logger import get_logger
from utils.messages import (
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from views.scr_admin_bookings import AdminBookingsScreen
from views.scr_admin_dashboard import AdminDashboardScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen
from views.scr_products import ProductsScreen
from views.scr_services import ServicesScreen
from views.scr_water_test import WaterTestScreen

_logger = get_logger(__name__)


class AquaPureApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "products": ProductsScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "water_test": WaterTestScreen,
        "services": ServicesScreen,
        "admin_dashboard": AdminDashboardScreen,
        "admin_products": AdminProductsScreen,
        "admin_orders": AdminOrdersScreen,
        "admin_bookings": AdminBookingsScreen,
    }

    MENU = {
        "products": "Shop Purifiers",
        "cart": "Cart",
        "orders": "My Orders",
        "water_test": "Water Quality Test",
        "services": "Book a Service",
    }

    ADMIN_MENU = {
        "admin_dashboard": "Dashboard",
        "admin_products": "Manage Products",
        "admin_orders": "Manage Orders",
        "admin_bookings": "Service Bookings",
    }

    CSS_PATH = ["views/styles/app.tcss"]

    state: AppState

    def __init__(self, state: Optional[AppState] = None):
        super().__init__()
        self.state = state or AppState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLoginMessage)
    def handle_user_login(self, message: UserLoginMessage):
        if message.identity.is_guest:
            self.notify("Browsing as guest.")
        else:
            self.notify(f"Hello {message.identity.display_name}!")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.identity.logout()
        self.notify("Logout successful.")
        self.login_flow()

    @on(ModeSwitchedMessage)
    async def handle_mode_switched(self, message: ModeSwitchedMessage):
        _logger.debug(f"Mode {message.old_mode} -> {message.new_mode}")
        await self.switch_mode(message.new_mode)

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.close()
        self.exit()

    @work
    async def login_flow(self):
        await self.push_screen_wait(LoginScreen())

    @work
    async def main_flow(self):
        user = await self.state.start()
        _logger.info(f"Session started for {user.display_name}")
        if user.is_guest:
            await self.push_screen_wait(LoginScreen())
        await self.switch_mode("admin_dashboard" if self.state.is_admin else "products")


def run() -> None:
    AquaPureApp().run()


if __name__ == "__main__":
    run()
