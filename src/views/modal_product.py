from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer

from store.models import Product
from utils.constants import CATEGORIES
from utils.pure import format_price, generate_markdown_table


class ProductDetailModal(ModalScreen[bool]):
    """
    Product detail with an Add to Cart button.
    Returns True if the cart changed, False if not.
    """

    def __init__(self, product: Product) -> None:
        super().__init__()
        self._product = product

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="vert-prod-actions"):
                yield Label("", id="label-in-cart")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        p = self._product
        rows = [
            ["Price", format_price(p.price)],
            ["Category", CATEGORIES.get(p.category, p.category)],
            ["Rating", f"{p.rating:.1f} ({p.reviews} reviews)"],
            ["Stock", "-" if p.stock is None else p.stock],
        ]
        if p.original_price:
            rows.insert(1, ["MRP", format_price(p.original_price)])
        md = f"### {p.name}\n\n{p.description}\n\n"
        md += generate_markdown_table(["Attribute", "Value"], rows)
        if p.features:
            md += "\n\n#### Features\n\n" + "\n".join(f"- {f}" for f in p.features)
        await self.query_one(MarkdownViewer).document.update(md)

        # out of stock products never reach the cart
        if not p.in_stock:
            btn = self.query_one("#btn-addcart", Button)
            btn.label = "Out of Stock"
            btn.disabled = True
            btn.variant = "warning"

        self._show_in_cart()
        self.query_one("#btn-quit").focus()

    def _show_in_cart(self) -> None:
        qty = self.app.state.cart.quantity_of(self._product.id)
        self.query_one("#label-in-cart", Label).update(
            f"In your cart: {qty}" if qty else "Not in your cart yet"
        )

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        if not self._product.in_stock:
            self.notify("This product is out of stock.", severity="warning")
            return

        result = await self.app.state.cart.add(self._product)
        if result.success:
            self.notify(f"{self._product.name} added to cart.")
        elif result.data is not None:
            self.notify(
                "Added to cart. It will sync when the store is reachable.",
                severity="warning",
            )
        else:
            self.notify(result.error or "Failed to add to cart", severity="error")
            return
        self.dismiss(True)
