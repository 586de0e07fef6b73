from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import DataTable, Input, Label, Select

from state.catalog import filter_products
from utils.constants import CATEGORIES, SORT_OPTIONS
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_product import ProductDetailModal


class ProductsScreen(BaseScreen):
    """
    Product browser: search box, category and sort pickers, results table.
    Enter on a row opens the product detail.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-filters"):
            yield Input(id="input-search", placeholder="Search water purifiers...")
            yield Select(
                [(label, key) for key, label in CATEGORIES.items()],
                value="all",
                allow_blank=False,
                id="select-category",
            )
            yield Select(
                [(label, key) for key, label in SORT_OPTIONS.items()],
                value="featured",
                allow_blank=False,
                id="select-sort",
            )
        yield DataTable(id="table-products")
        yield Label("", id="label-catalog-source")

    async def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Rating", "Stock", "In Cart")

        self.load_catalog()
        self.query_one("#input-search").focus()

    def action_noop(self) -> None:
        pass

    @work(exclusive=True, group="catalog")
    async def load_catalog(self) -> None:
        catalog = self.app.state.catalog
        await catalog.load()
        if catalog.source != "remote":
            self.notify(
                "Store is offline, showing saved products.", severity="warning"
            )
        self.query_one("#label-catalog-source", Label).update(
            f"{len(catalog.products)} products ({catalog.source})"
        )
        self.update_results()

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    @on(ScreenResume)
    def handle_filters_changed(self) -> None:
        self.update_results()

    def update_results(self) -> None:
        state = self.app.state
        products = filter_products(
            state.catalog.products,
            category=self.query_one("#select-category", Select).value,
            search=self.query_one("#input-search", Input).value,
            sort_by=self.query_one("#select-sort", Select).value,
        )

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            stock = "-" if p.stock is None else str(p.stock)
            table.add_row(
                p.name,
                CATEGORIES.get(p.category, p.category),
                format_price(p.price),
                f"{p.rating:.1f}",
                stock if p.in_stock else "Out of stock",
                state.cart.quantity_of(p.id) or "",
                key=p.id,
            )

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        product = self.app.state.catalog.find(event.row_key.value)
        if product is None:
            return
        if await self.app.push_screen_wait(ProductDetailModal(product)):
            self.update_results()
