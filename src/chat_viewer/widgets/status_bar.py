"""Status bar widget for chat and media load status."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Label, Static


class StatusBar(Static):
    """Render compact load status information.

    Segments (left to right):
        Loaded 120 messages  |  Loaded 14 media files  |  Senders: 3
    An error line appears underneath only while the last action failed.
    """

    DEFAULT_CSS = """
    StatusBar {
        height: auto;
    }
    StatusBar #status_row {
        layout: horizontal;
        height: 1;
    }
    StatusBar Label {
        margin-right: 1;
    }
    StatusBar #status_error {
        color: $error;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose child labels for each status segment."""
        with Horizontal(id="status_row"):
            yield Label("No chat loaded", id="status_chat")
            yield Label("|", id="status_sep1")
            yield Label("No media loaded", id="status_media")
            yield Label("|", id="status_sep2")
            yield Label("Senders: 0", id="status_senders")
        yield Label("", id="status_error")

    def on_mount(self) -> None:
        """Cache label references once after the DOM is ready."""
        self._lbl_chat = self.query_one("#status_chat", Label)
        self._lbl_media = self.query_one("#status_media", Label)
        self._lbl_senders = self.query_one("#status_senders", Label)
        self._lbl_error = self.query_one("#status_error", Label)
        self._lbl_error.display = False

    def set_status(
        self,
        *,
        chat: str,
        media: str,
        sender_count: int = 0,
        error: str | None = None,
    ) -> None:
        """Update all status segment labels."""
        self._lbl_chat.update(chat)
        self._lbl_media.update(media)
        self._lbl_senders.update(f"Senders: {sender_count}")
        self._lbl_error.update(error or "")
        self._lbl_error.display = bool(error)
