from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.validation import Number
from textual.widgets import Button, Input, Label, Markdown

from state.catalog import recommend_purifier
from utils.errors import InvalidInput
from views.base_screen import BaseScreen

BAND_TITLES = {
    "low": "Low TDS",
    "medium": "Medium TDS",
    "high": "High TDS",
    "veryHigh": "Very High TDS",
}


class WaterTestScreen(BaseScreen):
    """
    Enter a TDS reading (ppm) and get the purifier types suited to it.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("TDS reading of your water (ppm)")
        with Horizontal(id="hort-tds"):
            yield Input(
                placeholder="350",
                id="input-tds",
                type="integer",
                validators=[Number(minimum=0)],
            )
            yield Button("Recommend", id="btn-recommend", variant="primary")
        yield Markdown("", id="md-recommendation")

    def on_mount(self):
        self.query_one("#input-tds").focus()

    @on(Input.Submitted, "#input-tds")
    @on(Button.Pressed, "#btn-recommend")
    async def handle_recommend(self) -> None:
        value = self.query_one("#input-tds", Input).value.strip()
        try:
            rec = recommend_purifier(int(value))
        except (ValueError, InvalidInput):
            self.notify("Enter a TDS value of 0 or more.", severity="error")
            return

        md = f"### {BAND_TITLES[rec['band']]} ({rec['range']})\n\n{rec['description']}\n\n"
        md += "\n".join(f"- {p}" for p in rec["purifiers"])
        await self.query_one("#md-recommendation", Markdown).update(md)
