"""Session-scoped state for one viewing session.

:class:`ChatSession` owns the parsed message list, the media registry, and
the sender color map, and exposes the three user actions (load chat, upload
media, clear chat). Actions never raise: failures become status text.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import logging
from pathlib import Path

from .colors import DEFAULT_PALETTE, SenderColorMap
from .media import MediaRegistry, expand_media_paths
from .parser import ChatParser, MessageRecord
from .renderer import DisplayEntry, MessageRenderer

LOGGER = logging.getLogger(__name__)

CHAT_STATUS_INITIAL = "No chat loaded"
MEDIA_STATUS_INITIAL = "No media loaded"


@dataclass
class SessionStatus:
    """User-visible status line contents."""

    chat: str = CHAT_STATUS_INITIAL
    media: str = MEDIA_STATUS_INITIAL
    error: str | None = None

    def reset(self) -> None:
        self.chat = CHAT_STATUS_INITIAL
        self.media = MEDIA_STATUS_INITIAL
        self.error = None

    def summary(self) -> str:
        return f"{self.chat} | {self.media}"


class ChatSession:
    """Explicit owner of all mutable viewer state."""

    def __init__(
        self,
        parser: ChatParser | None = None,
        renderer: MessageRenderer | None = None,
        palette: Iterable[str] = DEFAULT_PALETTE,
    ) -> None:
        self.parser = parser or ChatParser()
        self.renderer = renderer or MessageRenderer()
        self.messages: list[MessageRecord] = []
        self.registry = MediaRegistry()
        self.colors = SenderColorMap(palette)
        self.status = SessionStatus()
        self.source: Path | None = None

    def load_chat(self, path: str | Path | None) -> int:
        """Replace the current messages with those parsed from ``path``.

        Returns the number of parsed messages, or 0 on failure.
        """
        if path is None or not str(path).strip():
            self.status.chat = "No chat file selected"
            return 0

        self.status.chat = "Loading chat..."
        target = Path(path).expanduser()
        try:
            messages = self.parser.parse_file(target)
        except Exception:  # noqa: BLE001 - surfaced as status, chat stays usable.
            LOGGER.exception(
                "session.chat.load_failed",
                extra={"event": "session.chat.load_failed", "path": str(target)},
            )
            self.status.chat = "Error parsing chat file"
            self.status.error = "Failed to parse chat file. Please try again."
            return 0

        self._replace_messages(messages)
        self.source = target
        LOGGER.info(
            "session.chat.loaded",
            extra={
                "event": "session.chat.loaded",
                "path": str(target),
                "messages": len(messages),
            },
        )
        return len(messages)

    def load_chat_text(self, text: str) -> int:
        """Replace the current messages with those parsed from ``text``."""
        self.status.chat = "Loading chat..."
        try:
            messages = self.parser.parse(text)
        except Exception:  # noqa: BLE001 - surfaced as status, chat stays usable.
            LOGGER.exception(
                "session.chat.parse_failed",
                extra={"event": "session.chat.parse_failed"},
            )
            self.status.chat = "Error parsing chat file"
            self.status.error = "Failed to parse chat file. Please try again."
            return 0
        self._replace_messages(messages)
        self.source = None
        return len(messages)

    def _replace_messages(self, messages: list[MessageRecord]) -> None:
        self.messages = messages
        self.colors.reset()
        self.status.chat = f"Loaded {len(messages)} messages"
        self.status.error = None

    def upload_media(self, paths: Iterable[str | Path] | None) -> int:
        """Register media files (directories expand to their files).

        Returns the number of registered files, or 0 when nothing was
        selected or registration failed.
        """
        selected = [p for p in (paths or []) if str(p).strip()]
        if not selected:
            self.status.media = "No media files selected"
            return 0

        try:
            files = expand_media_paths(selected)
            if not files:
                self.status.media = "No media files selected"
                return 0
            self.status.media = f"Loading {len(files)} media files..."
            handles = self.registry.register_many(files)
        except Exception:  # noqa: BLE001 - surfaced as status, chat stays usable.
            LOGGER.exception(
                "session.media.load_failed",
                extra={"event": "session.media.load_failed"},
            )
            self.status.media = "Error loading media files"
            self.status.error = "Failed to load media files. Please try again."
            return 0

        self.status.media = f"Loaded {len(handles)} media files"
        self.status.error = None
        LOGGER.info(
            "session.media.loaded",
            extra={
                "event": "session.media.loaded",
                "count": len(handles),
                "registry_size": len(self.registry),
            },
        )
        return len(handles)

    def clear(self) -> int:
        """Release every media handle and drop all parsed state.

        Returns the number of media handles released.
        """
        released = self.registry.release_all()
        self.messages = []
        self.colors.reset()
        self.status.reset()
        self.source = None
        LOGGER.info(
            "session.cleared",
            extra={"event": "session.cleared", "released_handles": released},
        )
        return released

    def entries(self, start: int = 0) -> list[DisplayEntry]:
        """Render-ready entries for ``messages[start:]``."""
        return self.renderer.build_entries(
            self.messages, self.registry, self.colors, start=start
        )
