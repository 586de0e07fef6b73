from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import ModeSwitchedMessage, UserLogoutMessage
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import ConfirmDialogModal, QuitDialogModal
from views.modal_resize import ResizeScreenPromptModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.refresh_user()

    async def refresh_user(self) -> None:
        """Re-render the user table, cart summary and menu for the current identity."""
        state = self.app.state
        user = state.user
        table_rows = [
            ["Name", user.display_name],
            ["Email", user.email or "-"],
            ["Role", user.role or "guest"],
            ["Cart", f"{state.cart.item_count()} item(s), {format_price(state.cart.total())}"],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

        btn = self.query_one("#btn-logout", Button)
        if user.is_guest:
            btn.label, btn.variant = "Log in", "primary"
        else:
            btn.label, btn.variant = "Log out", "error"

        # admins also get the management screens
        menu = dict(self.app.MENU)
        if state.is_admin:
            menu.update(self.app.ADMIN_MENU)
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in menu.items()]
        )
        self.highlight_item(self.init_mode)

    def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))

    @on(Button.Pressed, "#btn-logout")
    @work
    async def handle_logout(self):
        if self.app.state.user.is_guest:
            self.app.login_flow()
            return

        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Are you sure you want to log out?")
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    MIN_WIDTH = 80
    MIN_HEIGHT = 24

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "AquaPure",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        :return:
        """

        # sub title from the menu entry this screen is registered under
        self.app.title = "AquaPure Water Purifiers"
        self.sub_title = header_sub_title
        menu = {**self.app.MENU, **self.app.ADMIN_MENU}
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in menu:
                self.sub_title = menu[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        if event.size.width < self.MIN_WIDTH or event.size.height < self.MIN_HEIGHT:
            self.app.push_screen(ResizeScreenPromptModal(self.MIN_WIDTH, self.MIN_HEIGHT))

    @on(ScreenResume)
    async def handle_screen_resume(self):
        # identity or cart may have changed while another screen was on top
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_user()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())


class AdminScreen(BaseScreen):
    """
    Base for the management screens. Anyone without the admin role who
    lands here (e.g. after logging in as someone else) is sent to the shop.
    """

    @on(ScreenResume)
    def handle_admin_guard(self) -> None:
        if not self.app.state.is_admin:
            self.notify("Admin access required.", severity="error")
            self.post_message(ModeSwitchedMessage(self.app.current_mode, "products"))
