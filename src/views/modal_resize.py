from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Resize
from textual.screen import ModalScreen
from textual.widgets import Label


class ResizeScreenPromptModal(ModalScreen[bool]):
    """
    Covers the screen while the terminal is smaller than the layout needs.
    Dismisses itself once the terminal is large enough again.
    """

    def __init__(self, min_width: int = 80, min_height: int = 24) -> None:
        super().__init__()
        self.min_width = min_width
        self.min_height = min_height

    def compose(self) -> ComposeResult:
        with Container(id="div-resize"):
            yield Label(self._caption(*self.app.size), id="prompt")

    def _caption(self, width: int, height: int) -> str:
        return (
            f"Terminal is {width}x{height}.\n"
            f"Resize to at least {self.min_width}x{self.min_height}."
        )

    def on_resize(self, event: Resize) -> None:
        width, height = event.size
        if width >= self.min_width and height >= self.min_height:
            self.dismiss(True)
        else:
            self.query_one("#prompt", Label).update(self._caption(width, height))
