"""Composition of parsed messages into render-ready display entries.

The renderer joins the three session stores (messages, media registry, sender
colors) into one :class:`DisplayEntry` per message. It also owns the
auto-follow rule used by the scrolling conversation view.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .colors import SenderColorMap
from .media import Attachment, MediaRegistry, resolve_attachment, strip_attachment_marker
from .parser import MessageRecord


@dataclass(frozen=True)
class DisplayEntry:
    """Everything a message bubble needs to draw one message."""

    position: int
    timestamp: str
    sender: str
    text: str
    color: str
    is_local: bool = False
    attachment: Attachment | None = None


def is_local_sender(sender: str, local_sender: str) -> bool:
    """Return True when ``sender`` is the configured local participant."""
    wanted = local_sender.strip().casefold()
    if not wanted:
        return False
    return sender.strip().casefold() == wanted


class MessageRenderer:
    """Build display entries from session state.

    Responsibilities:
    - Resolving attachments lazily, one registry lookup per message
    - Assigning sender colors in render order
    - Stripping attachment markers from displayed text
    - Flagging messages sent by the local participant
    """

    def __init__(self, local_sender: str = "") -> None:
        self.local_sender = local_sender

    def build_entry(
        self,
        position: int,
        message: MessageRecord,
        registry: MediaRegistry,
        colors: SenderColorMap,
    ) -> DisplayEntry:
        attachment = resolve_attachment(message.content, registry)
        text = (
            strip_attachment_marker(message.content)
            if attachment is not None
            else message.content
        )
        return DisplayEntry(
            position=position,
            timestamp=message.timestamp,
            sender=message.sender,
            text=text,
            color=colors.color_for(message.sender),
            is_local=is_local_sender(message.sender, self.local_sender),
            attachment=attachment,
        )

    def build_entries(
        self,
        messages: Sequence[MessageRecord],
        registry: MediaRegistry,
        colors: SenderColorMap,
        start: int = 0,
    ) -> list[DisplayEntry]:
        """Render ``messages[start:]`` into entries, preserving positions."""
        return [
            self.build_entry(position, messages[position], registry, colors)
            for position in range(start, len(messages))
        ]


class AutoFollow:
    """Track whether the viewport should stay pinned to the newest message.

    Following is on while the view is within ``threshold`` rows of the
    bottom; a user scroll away turns it off until they return.
    """

    def __init__(self, threshold: int = 1) -> None:
        self.threshold = max(0, threshold)
        self.following = True

    def observe(self, scroll_y: float, max_scroll_y: float) -> bool:
        """Update the flag from the current scroll offsets and return it."""
        self.following = (max_scroll_y - scroll_y) <= self.threshold
        return self.following

    def should_scroll_on_append(self) -> bool:
        return self.following

    def reset(self) -> None:
        self.following = True
