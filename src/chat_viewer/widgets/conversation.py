"""Scrollable chat log view with auto-follow."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from textual.containers import VerticalScroll

from ..renderer import AutoFollow, DisplayEntry
from .message import MessageBubble


class ChatLogView(VerticalScroll):
    """A scrollable container that hosts message bubbles.

    New bubbles scroll the view to the bottom only while :attr:`auto_follow`
    says the user is already at (or near) the bottom.
    """

    def __init__(
        self,
        auto_follow_threshold: int = 1,
        show_timestamps: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.auto_follow = AutoFollow(auto_follow_threshold)
        self.show_timestamps = show_timestamps
        self._bubbles: dict[int, MessageBubble] = {}

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        self.auto_follow.observe(new_value, self.max_scroll_y)

    @property
    def bubble_count(self) -> int:
        return len(self._bubbles)

    def bubble_at(self, position: int) -> MessageBubble | None:
        return self._bubbles.get(position)

    async def add_entries(self, entries: Sequence[DisplayEntry]) -> list[MessageBubble]:
        """Mount one bubble per entry and follow the bottom when pinned."""
        if not entries:
            return []
        bubbles = [
            MessageBubble(entry, show_timestamp=self.show_timestamps)
            for entry in entries
        ]
        await self.mount_all(bubbles)
        for bubble in bubbles:
            self._bubbles[bubble.position] = bubble
        if self.auto_follow.should_scroll_on_append():
            self.scroll_end(animate=False)
        return bubbles

    async def clear_entries(self) -> None:
        """Remove every bubble and re-pin the view to the bottom."""
        self._bubbles.clear()
        await self.remove_children()
        self.auto_follow.reset()

    def scroll_to_latest(self) -> None:
        """Jump to the newest message and resume following."""
        self.auto_follow.reset()
        self.scroll_end(animate=False)
