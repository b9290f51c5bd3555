"""Modal screens for path prompts and the help dialog."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class HelpScreen(ModalScreen[None]):
    """Read-only help dialog listing the active keybindings."""

    BINDINGS = [
        Binding("escape", "close", "Close", show=False),
        Binding("q", "close", "Close", show=False),
    ]

    CSS = """
    HelpScreen {
        align: center middle;
    }

    #help-dialog {
        width: 80;
        max-width: 120;
        max-height: 28;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #help-body {
        height: auto;
    }

    #help-actions {
        dock: bottom;
        height: 3;
        align: right middle;
    }
    """

    def __init__(self, text: str) -> None:
        super().__init__()
        self._text = text

    def compose(self) -> ComposeResult:
        with Container(id="help-dialog"):
            yield Static(self._text, id="help-body")
            with Container(id="help-actions"):
                yield Button("OK", id="help-ok", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#help-ok", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)


class PathPromptScreen(ModalScreen[str | None]):
    """Modal screen asking for one or more filesystem paths.

    Dismisses with the raw input (possibly empty) on Enter, or ``None`` when
    cancelled with Escape.
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    CSS = """
    PathPromptScreen {
        align: center middle;
    }

    #path-prompt-dialog {
        width: 80;
        height: auto;
        padding: 1 2;
        border: round $panel;
        background: $surface;
    }

    #path-prompt-title {
        padding-bottom: 1;
        text-style: bold;
    }

    #path-prompt-input {
        width: 100%;
        margin-bottom: 1;
    }

    #path-prompt-help {
        color: $text-muted;
    }
    """

    def __init__(self, title: str, placeholder: str = "", help_text: str = "") -> None:
        super().__init__()
        self._title = title
        self._placeholder = placeholder
        self._help_text = help_text or "Enter to confirm | Esc to cancel"

    def compose(self) -> ComposeResult:
        with Container(id="path-prompt-dialog"):
            yield Static(self._title, id="path-prompt-title")
            yield Input(placeholder=self._placeholder, id="path-prompt-input")
            yield Static(self._help_text, id="path-prompt-help")

    def on_mount(self) -> None:
        self.query_one("#path-prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "path-prompt-input":
            return
        event.stop()
        self.dismiss(event.value.strip())

    def action_cancel(self) -> None:
        self.dismiss(None)
