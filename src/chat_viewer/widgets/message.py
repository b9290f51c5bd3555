"""Message bubble widget for chat log rendering."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Static

from ..media import Attachment, MediaKind, MediaStatus
from ..renderer import DisplayEntry

_KIND_ICONS: dict[MediaKind, str] = {
    MediaKind.IMAGE: "🖼",
    MediaKind.VIDEO: "🎞",
    MediaKind.AUDIO: "🔊",
    MediaKind.FILE: "📄",
}


def attachment_label(attachment: Attachment) -> Text:
    """Return the one-line media indicator for an attachment state."""
    if attachment.status is MediaStatus.MISSING:
        return Text("📎 Media not available", style="dim")
    if attachment.status is MediaStatus.LOADING:
        return Text("Loading media...", style="dim italic")
    if attachment.status is MediaStatus.FAILED:
        return Text(f"Failed to load media: {attachment.filename}", style="bold red")
    icon = _KIND_ICONS.get(attachment.kind, _KIND_ICONS[MediaKind.FILE])
    detail = attachment.detail or attachment.kind.value
    return Text(f"{icon} {detail}")


class MessageBubble(Vertical):
    """Render a single chat message with sender, text, attachment, and timestamp."""

    DEFAULT_CSS = """
    MessageBubble {
        height: auto;
    }
    MessageBubble > #sender-block {
        padding: 0;
    }
    MessageBubble > #content-block {
        height: auto;
    }
    MessageBubble > #attachment-name {
        color: $text-muted;
        margin-top: 1;
    }
    MessageBubble > #attachment-block {
        height: auto;
    }
    MessageBubble > #timestamp-block {
        color: $text-muted;
        margin-top: 1;
    }
    MessageBubble.message-local > #timestamp-block {
        text-align: right;
    }
    """

    def __init__(
        self,
        entry: DisplayEntry,
        show_timestamp: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self.entry = entry
        self.attachment = entry.attachment
        self.show_timestamp = show_timestamp
        self.add_class("message-local" if entry.is_local else "message-remote")
        self._attachment_widget: Static | None = None

    @property
    def position(self) -> int:
        return self.entry.position

    def _compose_sender(self) -> Text:
        return Text(self.entry.sender, style=f"bold {self.entry.color}")

    def compose(self) -> ComposeResult:
        """Compose sender header (remote only), body, attachment, and timestamp."""
        if not self.entry.is_local:
            yield Static(self._compose_sender(), id="sender-block")
        if self.entry.text:
            yield Static(Text(self.entry.text), id="content-block")
        if self.attachment is not None:
            yield Static(
                Text(self.attachment.filename), id="attachment-name"
            )
            self._attachment_widget = Static(
                attachment_label(self.attachment), id="attachment-block"
            )
            yield self._attachment_widget
        if self.show_timestamp:
            yield Static(Text(self.entry.timestamp), id="timestamp-block")

    def set_attachment(self, attachment: Attachment) -> None:
        """Swap in a newer state of this message's attachment and rerender it."""
        self.attachment = attachment
        self.set_class(attachment.status is MediaStatus.FAILED, "media-failed")
        if self._attachment_widget is not None:
            self._attachment_widget.update(attachment_label(attachment))
