from __future__ import annotations

from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, OptionList, Select
from textual.widgets.option_list import Option

from state.catalog import filter_products
from store.models import Product
from utils.constants import CATEGORIES
from utils.errors import PermissionDenied, RemoteUnavailable, ValidationFailed
from utils.pure import format_price, generate_markdown_table
from views.base_screen import AdminScreen
from views.modal_dialog import ConfirmDialogModal

TEXT_FIELDS = ("name", "price", "discount", "stock", "rating", "description", "features")


class AdminProductsScreen(AdminScreen):
    """
    Search the catalog, pick a product to edit, or start a new one.
    """

    current_id: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-admin-search", placeholder="Search products to edit...")
            yield OptionList(id="optlist-prods")
            with Horizontal(id="hort-admin-product"):
                yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
                with VerticalScroll(id="vert-product-form"):
                    yield Label("Name")
                    yield Input(id="input-name")
                    yield Label("Category")
                    yield Select(
                        [(label, key) for key, label in CATEGORIES.items() if key != "all"],
                        value="ro",
                        allow_blank=False,
                        id="select-product-category",
                    )
                    with Horizontal(classes="form-row"):
                        with Vertical():
                            yield Label("List Price (₹)")
                            yield Input(
                                id="input-price",
                                type="number",
                                validators=[Number(minimum=0.0)],
                            )
                        with Vertical():
                            yield Label("Discount (%)")
                            yield Input(
                                id="input-discount",
                                placeholder="0",
                                type="number",
                                validators=[Number(minimum=0.0, maximum=100.0)],
                            )
                    with Horizontal(classes="form-row"):
                        with Vertical():
                            yield Label("Stock")
                            yield Input(
                                id="input-stock",
                                type="integer",
                                validators=[Number(minimum=0)],
                            )
                        with Vertical():
                            yield Label("Rating")
                            yield Input(
                                id="input-rating",
                                placeholder="0",
                                type="number",
                                validators=[Number(minimum=0.0, maximum=5.0)],
                            )
                    yield Label("Description")
                    yield Input(id="input-description")
                    yield Label("Features (comma separated)")
                    yield Input(id="input-features")
            with Horizontal(id="hort-controls"):
                yield Button("New Product", id="btn-new")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        self.query_one("#input-admin-search", Input).focus()
        self.query_one("#optlist-prods").add_class("hidden")
        self.render_product(None)

    @on(ScreenResume)
    @work(exclusive=True, group="catalog")
    async def handle_reload(self) -> None:
        await self.app.state.catalog.load()

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-admin-search":
            self.query_one("#optlist-prods").remove_class("hidden")
            self.update_optlist(message.value)

    def on_option_list_option_selected(self, message: OptionList.OptionSelected):
        product = self.app.state.catalog.find(message.option.id)
        self.query_one("#optlist-prods").add_class("hidden")
        if product is None:
            self.notify("Product is no longer in the catalog.", severity="warning")
            return
        self.render_product(product)

    def update_optlist(self, query: str) -> None:
        """
        fill option list with search results
        """
        results = filter_products(self.app.state.catalog.products, search=query, sort_by="name")
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options([Option(f"{p.id} {p.name}", id=p.id) for p in results])

    def render_product(self, product: Optional[Product]) -> None:
        self.current_id = product.id if product else None
        viewer = self.query_one("#md-prod", MarkdownViewer)
        if product is None:
            viewer.document.update("### New Product\n\nFill in the form and press Save.")
            values: Dict[str, str] = {name: "" for name in TEXT_FIELDS}
        else:
            rows = [
                ["ID", product.id],
                ["Category", CATEGORIES.get(product.category, product.category)],
                ["Price", format_price(product.price)],
                ["List Price", format_price(product.original_price or product.price)],
                ["Stock", "-" if product.stock is None else product.stock],
                ["Rating", f"{product.rating:.1f} ({product.reviews} reviews)"],
            ]
            viewer.document.update(
                f"### Product Detail: {product.name}\n\n"
                + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
            )
            # prefill inputs with current values for convenience
            list_price = product.original_price or product.price
            discount = round((1 - product.price / list_price) * 100, 2) if list_price else 0
            values = {
                "name": product.name,
                "price": f"{list_price:g}",
                "discount": f"{discount:g}" if discount > 0 else "",
                "stock": "" if product.stock is None else str(product.stock),
                "rating": f"{product.rating:g}",
                "description": product.description,
                "features": ", ".join(product.features),
            }
            if product.category in CATEGORIES and product.category != "all":
                self.query_one("#select-product-category", Select).value = product.category

        for name, value in values.items():
            field_input = self.query_one(f"#input-{name}", Input)
            field_input.value = value
            field_input.remove_class("-invalid")

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.render_product(None)
        self.query_one("#input-name", Input).focus()

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        form = {name: self.query_one(f"#input-{name}", Input).value for name in TEXT_FIELDS}
        form["category"] = self.query_one("#select-product-category", Select).value

        try:
            product = await self.app.state.admin.save_product(form, self.current_id)
        except ValidationFailed as e:
            for name in TEXT_FIELDS:
                self.query_one(f"#input-{name}", Input).set_class(name in e.errors, "-invalid")
            self.notify("\n".join(e.errors.values()), severity="error")
            return
        except (PermissionDenied, RemoteUnavailable) as e:
            self.notify(f"Save failed: {e}", severity="error")
            return

        self.notify(f"Saved {product.name}.")
        self.render_product(product)

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True)
    async def handle_delete(self) -> None:
        if self.current_id is None:
            self.notify("Select a product to delete.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            ConfirmDialogModal(f"Delete product {self.current_id}?", tone="error")
        ):
            return

        try:
            await self.app.state.admin.delete_product(self.current_id)
        except (PermissionDenied, RemoteUnavailable) as e:
            self.notify(f"Delete failed: {e}", severity="error")
            return
        self.notify("Product deleted.")
        self.render_product(None)
