"""Main Textual application for browsing exported chat logs."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import logging
import shlex
import sys
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Header

from .config import load_config
from .logging_utils import configure_logging
from .media import Attachment, MediaStatus, probe_media, resolve_attachment
from .parser import ChatParser
from .renderer import MessageRenderer
from .screens import HelpScreen, PathPromptScreen
from .session import ChatSession
from .state import ViewerState, ViewerStateManager
from .task_manager import TaskManager
from .widgets.conversation import ChatLogView
from .widgets.message import MessageBubble
from .widgets.status_bar import StatusBar

LOGGER = logging.getLogger(__name__)


def split_path_input(raw: str | None) -> list[str]:
    """Split prompt input into paths, honouring shell-style quoting."""
    if not raw or not raw.strip():
        return []
    try:
        return shlex.split(raw)
    except ValueError:
        return raw.split()


class ChatViewerApp(App[None]):
    """Terminal viewer for exported chat logs and their media."""

    CSS = """
    Screen {
        layout: vertical;
        background: $background;
    }

    #app-root {
        layout: vertical;
        width: 100%;
        height: 1fr;
        background: $background;
    }

    Header {
        border-bottom: solid $panel;
        background: $surface;
    }

    Footer {
        border-top: solid $panel;
        background: $surface;
    }

    #conversation {
        height: 1fr;
        padding: 1;
    }

    #status_bar {
        height: auto;
        padding: 0 1;
        border-top: solid $panel;
        background: $surface;
    }

    MessageBubble {
        width: 70%;
        margin: 1 0;
        padding: 1 2;
        border: round $panel;
    }

    .message-local {
        margin: 1 0 1 12;
    }

    .message-remote {
        background: $surface;
    }

    .media-failed {
        border: round $error;
    }
    """

    DEFAULT_ACTION_DESCRIPTIONS: dict[str, str] = {
        "load_chat": "Load Chat",
        "upload_media": "Upload Media",
        "clear_chat": "Clear",
        "quit": "Quit",
        "scroll_up": "Scroll Up",
        "scroll_down": "Scroll Down",
        "scroll_end": "Latest",
        "command_palette": "Help",
    }

    def __init__(
        self,
        chat_path: str | None = None,
        media_paths: Sequence[str] | None = None,
        config: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.window_title = str(self.config["app"]["title"])
        configure_logging(self.config["logging"])
        LOGGER.info(
            "app.python",
            extra={
                "event": "app.python",
                "executable": sys.executable,
                "version": sys.version.split()[0],
            },
        )

        chat_cfg = self.config["chat"]
        ui_cfg = self.config["ui"]
        self.session = ChatSession(
            parser=ChatParser(str(chat_cfg["grammar"])),
            renderer=MessageRenderer(local_sender=str(chat_cfg["local_sender"])),
            palette=list(ui_cfg["sender_palette"]),
        )
        self.state = ViewerStateManager()
        self._task_manager = TaskManager()
        self._initial_chat_path = chat_path
        self._initial_media_paths = list(media_paths or [])

        media_cfg = self.config["media"]
        self._probe_enabled = bool(media_cfg["probe_media"])
        self._max_probe_bytes = int(media_cfg["max_probe_bytes"])

        # Cached widget references, populated in on_mount() after compose().
        self._w_conversation: ChatLogView | None = None
        self._w_status: StatusBar | None = None

        self._binding_specs = self._binding_specs_from_config(self.config)
        super().__init__()

    @classmethod
    def _binding_specs_from_config(
        cls, config: dict[str, dict[str, Any]]
    ) -> list[Binding]:
        keybinds = config.get("keybinds", {})
        bindings: list[Binding] = []
        for action_name in cls.DEFAULT_ACTION_DESCRIPTIONS:
            binding_key = keybinds.get(action_name)
            if isinstance(binding_key, str) and binding_key.strip():
                bindings.append(
                    Binding(
                        key=binding_key.strip(),
                        action=action_name,
                        description=cls.DEFAULT_ACTION_DESCRIPTIONS[action_name],
                        show=True,
                    )
                )
        return bindings

    def compose(self) -> ComposeResult:
        """Compose app widgets."""
        ui_cfg = self.config["ui"]
        yield Header()
        with Container(id="app-root"):
            yield ChatLogView(
                auto_follow_threshold=int(ui_cfg["auto_follow_threshold"]),
                show_timestamps=bool(ui_cfg["show_timestamps"]),
                id="conversation",
            )
            yield StatusBar(id="status_bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Register runtime keybindings and load any files given on the command line."""
        self.title = self.window_title
        self.sub_title = self.session.status.summary()
        for binding in self._binding_specs:
            self.bind(
                binding.key,
                binding.action,
                description=binding.description,
                show=binding.show,
                key_display=binding.key_display,
            )

        self._w_conversation = self.query_one(ChatLogView)
        self._w_status = self.query_one("#status_bar", StatusBar)
        self._apply_theme()
        self._update_status_bar()

        if self._initial_media_paths:
            await self.upload_media(self._initial_media_paths)
        if self._initial_chat_path:
            await self.load_chat(self._initial_chat_path)

    def _apply_theme(self) -> None:
        """Apply configured colors to the root container and local bubbles."""
        ui_cfg = self.config["ui"]
        try:
            root = self.query_one("#app-root", Container)
            root.styles.background = str(ui_cfg["background_color"])
        except Exception:  # noqa: BLE001 - cosmetic only.
            LOGGER.debug("app.theme.skipped", extra={"event": "app.theme.skipped"})

    def _style_bubble(self, bubble: MessageBubble) -> None:
        if bubble.entry.is_local:
            bubble.styles.background = str(self.config["ui"]["local_message_color"])

    @property
    def conversation(self) -> ChatLogView:
        return self._w_conversation or self.query_one(ChatLogView)

    def _update_status_bar(self) -> None:
        status = self.session.status
        if self._w_status is not None:
            self._w_status.set_status(
                chat=status.chat,
                media=status.media,
                sender_count=len(self.session.colors),
                error=status.error,
            )
        self.sub_title = status.summary()

    async def _render_session(self) -> None:
        """Rebuild every bubble from session state and start media probes."""
        await self._task_manager.cancel_all()
        view = self.conversation
        await view.clear_entries()
        entries = self.session.entries()
        bubbles = await view.add_entries(entries)
        for bubble in bubbles:
            self._style_bubble(bubble)
            if bubble.attachment is not None:
                self._start_probe(bubble, bubble.attachment)
        LOGGER.debug(
            "app.render.completed",
            extra={
                "event": "app.render.completed",
                "entries": len(entries),
                "probes": self._task_manager.pending,
            },
        )

    def _start_probe(self, bubble: MessageBubble, attachment: Attachment) -> None:
        if attachment.handle is None or not self._probe_enabled:
            return
        bubble.set_attachment(attachment.with_status(MediaStatus.LOADING))
        self._task_manager.spawn(
            self._probe_attachment(bubble, attachment),
            name=f"probe:{bubble.position}",
        )

    async def _refresh_attachments(self) -> None:
        """Re-resolve attachments on mounted bubbles, keeping the scroll position."""
        await self._task_manager.cancel_all()
        view = self.conversation
        for position, message in enumerate(self.session.messages):
            bubble = view.bubble_at(position)
            if bubble is None or bubble.attachment is None:
                continue
            attachment = resolve_attachment(message.content, self.session.registry)
            if attachment is None:
                continue
            bubble.set_attachment(attachment)
            self._start_probe(bubble, attachment)

    async def _probe_attachment(self, bubble: MessageBubble, attachment: Attachment) -> None:
        handle = attachment.handle
        if handle is None:
            return
        result = await asyncio.to_thread(
            probe_media, handle, max_bytes=self._max_probe_bytes
        )
        bubble.set_attachment(attachment.with_status(result.status, result.detail))
        if result.status is MediaStatus.FAILED:
            LOGGER.warning(
                "app.media.failed",
                extra={
                    "event": "app.media.failed",
                    "name": attachment.filename,
                    "reason": result.detail,
                },
            )

    async def _run_exclusive(
        self, state: ViewerState, label: str, action: Callable[[], Awaitable[None]]
    ) -> None:
        """Run ``action`` while holding ``state``; refuse if another action runs."""
        if not await self.state.begin(state):
            self.sub_title = f"Busy: cannot {label} right now."
            return
        try:
            await action()
        except Exception:  # noqa: BLE001 - the app must stay usable.
            LOGGER.exception(
                "app.action.failed",
                extra={"event": "app.action.failed", "action": label},
            )
            self.session.status.error = f"Unexpected error while trying to {label}."
        finally:
            await self.state.finish()
            self._update_status_bar()

    async def load_chat(self, path: str | None) -> None:
        """Parse ``path`` into the session and re-render the chat."""

        async def _load() -> None:
            before = self.session.messages
            self.session.load_chat(path)
            if self.session.messages is not before:
                await self._render_session()

        await self._run_exclusive(ViewerState.LOADING_CHAT, "load the chat", _load)

    async def upload_media(self, paths: Sequence[str]) -> None:
        """Register media files and re-render so attachments resolve."""

        async def _upload() -> None:
            if not self.session.upload_media(paths) or not self.session.messages:
                return
            if self.conversation.bubble_count:
                await self._refresh_attachments()
            else:
                await self._render_session()

        await self._run_exclusive(ViewerState.LOADING_MEDIA, "load media", _upload)

    async def clear_chat(self) -> None:
        """Release all media and drop every message."""

        async def _clear() -> None:
            await self._task_manager.cancel_all()
            self.session.clear()
            await self.conversation.clear_entries()

        await self._run_exclusive(ViewerState.CLEARING, "clear the chat", _clear)

    async def _on_chat_path_selected(self, raw: str | None) -> None:
        paths = split_path_input(raw)
        await self.load_chat(paths[0] if paths else None)

    async def _on_media_paths_selected(self, raw: str | None) -> None:
        await self.upload_media(split_path_input(raw))

    async def action_load_chat(self) -> None:
        """Prompt for a chat export file."""
        await self.push_screen(
            PathPromptScreen(
                "Load chat export",
                placeholder="~/Downloads/_chat.txt",
            ),
            callback=self._on_chat_path_selected,
        )

    async def action_upload_media(self) -> None:
        """Prompt for media files or a directory of media."""
        await self.push_screen(
            PathPromptScreen(
                "Upload media",
                placeholder="~/Downloads/export/  or  photo.jpg voice.opus",
                help_text="Files or directories, space separated | Esc to cancel",
            ),
            callback=self._on_media_paths_selected,
        )

    async def action_clear_chat(self) -> None:
        await self.clear_chat()

    async def action_command_palette(self) -> None:
        """Show the keybinding help."""
        lines = ["Keybind actions:", ""]
        for binding in self._binding_specs:
            lines.append(
                f"{binding.key.upper()} - {binding.description} ({binding.action})"
            )
        lines.append("")
        lines.append(self.session.status.summary())
        await self.push_screen(HelpScreen("\n".join(lines)))

    def action_scroll_up(self) -> None:
        """Scroll conversation up."""
        self.conversation.scroll_relative(y=-10, animate=False)

    def action_scroll_down(self) -> None:
        """Scroll conversation down."""
        self.conversation.scroll_relative(y=10, animate=False)

    def action_scroll_end(self) -> None:
        """Jump to the newest message and resume auto-follow."""
        self.conversation.scroll_to_latest()

    async def action_quit(self) -> None:
        """Exit the app."""
        self.exit()

    async def on_unmount(self) -> None:
        """Cancel probes and release media handles during shutdown."""
        await self._task_manager.cancel_all()
        self.session.registry.release_all()
