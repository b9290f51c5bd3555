"""Runtime-style tests for the real Textual app class."""

from __future__ import annotations

from copy import deepcopy
import logging
import tempfile
from pathlib import Path
import unittest

from PIL import Image

from chat_viewer.config import DEFAULT_CONFIG
from chat_viewer.media import MediaStatus
from chat_viewer.session import CHAT_STATUS_INITIAL, MEDIA_STATUS_INITIAL
from chat_viewer.state import ViewerState

try:
    from textual.widgets import Input

    from chat_viewer.app import ChatViewerApp, split_path_input
    from chat_viewer.screens import HelpScreen, PathPromptScreen
except ModuleNotFoundError:
    Input = None  # type: ignore[assignment]
    ChatViewerApp = None  # type: ignore[assignment]
    HelpScreen = None  # type: ignore[assignment]
    PathPromptScreen = None  # type: ignore[assignment]
    split_path_input = None  # type: ignore[assignment]

CHAT = "\n".join(
    [
        "[2024-01-01 10:00:00] Alice: Hello",
        "Not a valid line",
        "[2024-01-01 10:01:00] Bob: Look <attached: dot.PNG>",
        "[2024-01-01 10:02:00] Me: <attached: broken.jpg>",
    ]
)


@unittest.skipIf(split_path_input is None, "textual is not installed")
class SplitPathInputTests(unittest.TestCase):
    """Validate how prompt input is split into paths."""

    def test_empty_input(self) -> None:
        assert split_path_input is not None
        self.assertEqual(split_path_input(None), [])
        self.assertEqual(split_path_input("   "), [])

    def test_quoted_paths_keep_spaces(self) -> None:
        assert split_path_input is not None
        self.assertEqual(
            split_path_input('"My Photos/a.jpg" b.jpg'), ["My Photos/a.jpg", "b.jpg"]
        )

    def test_unbalanced_quote_falls_back_to_whitespace(self) -> None:
        assert split_path_input is not None
        self.assertEqual(split_path_input('"a.jpg b.jpg'), ['"a.jpg', "b.jpg"])


@unittest.skipIf(ChatViewerApp is None, "textual is not installed")
class AppRuntimeTests(unittest.IsolatedAsyncioTestCase):
    """Exercise the load, upload, and clear actions against the real app."""

    def setUp(self) -> None:
        root = logging.getLogger()
        self._original_level = root.level
        self._original_handlers = list(root.handlers)

        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)
        self.chat_path = self.root / "_chat.txt"
        self.chat_path.write_text(CHAT, encoding="utf-8")
        self.image_path = self.root / "dot.png"
        Image.new("RGB", (4, 3), color=(0, 128, 255)).save(self.image_path, "PNG")
        self.broken_path = self.root / "broken.jpg"
        self.broken_path.write_bytes(b"not really a jpeg")

    def tearDown(self) -> None:
        root = logging.getLogger()
        root.setLevel(self._original_level)
        root.handlers.clear()
        root.handlers.extend(self._original_handlers)

    def _build_app(self, **kwargs: object) -> ChatViewerApp:
        assert ChatViewerApp is not None
        config = deepcopy(DEFAULT_CONFIG)
        config["logging"]["structured"] = False
        config["chat"]["local_sender"] = "me"
        return ChatViewerApp(config=config, **kwargs)  # type: ignore[arg-type]

    async def _wait_for_probes(self, app: ChatViewerApp, pilot: object) -> None:
        for _ in range(100):
            if app._task_manager.pending == 0:
                break
            await pilot.pause(0.02)  # type: ignore[attr-defined]
        await pilot.pause()  # type: ignore[attr-defined]

    async def test_load_chat_renders_bubbles_and_status(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app.load_chat(str(self.chat_path))
            self.assertEqual(app.conversation.bubble_count, 3)
            self.assertEqual(app.session.status.chat, "Loaded 3 messages")
            self.assertIn("Loaded 3 messages", app.sub_title)
            self.assertTrue(await app.state.is_idle())

    async def test_attachments_without_media_are_missing(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app.load_chat(str(self.chat_path))
            bubble = app.conversation.bubble_at(1)
            assert bubble is not None and bubble.attachment is not None
            self.assertIs(bubble.attachment.status, MediaStatus.MISSING)

    async def test_uploaded_media_is_probed(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await app.load_chat(str(self.chat_path))
            await app.upload_media([str(self.image_path), str(self.broken_path)])
            await self._wait_for_probes(app, pilot)

            image_bubble = app.conversation.bubble_at(1)
            assert image_bubble is not None and image_bubble.attachment is not None
            self.assertIs(image_bubble.attachment.status, MediaStatus.AVAILABLE)
            self.assertIn("4x3", image_bubble.attachment.detail)

            broken_bubble = app.conversation.bubble_at(2)
            assert broken_bubble is not None and broken_bubble.attachment is not None
            self.assertIs(broken_bubble.attachment.status, MediaStatus.FAILED)
            self.assertIn("media-failed", broken_bubble.classes)

            self.assertEqual(app.session.status.media, "Loaded 2 media files")

    async def test_local_sender_bubble_is_styled_local(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app.load_chat(str(self.chat_path))
            local = app.conversation.bubble_at(2)
            remote = app.conversation.bubble_at(0)
            assert local is not None and remote is not None
            self.assertIn("message-local", local.classes)
            self.assertIn("message-remote", remote.classes)

    async def test_clear_chat_releases_media_and_resets(self) -> None:
        app = self._build_app()
        async with app.run_test() as pilot:
            await app.upload_media([str(self.image_path)])
            await app.load_chat(str(self.chat_path))
            await self._wait_for_probes(app, pilot)
            handle = app.session.registry.get("dot.png")
            assert handle is not None

            await app.clear_chat()

            self.assertTrue(handle.released)
            self.assertEqual(app.conversation.bubble_count, 0)
            self.assertEqual(app.session.status.chat, CHAT_STATUS_INITIAL)
            self.assertEqual(app.session.status.media, MEDIA_STATUS_INITIAL)

    async def test_missing_chat_file_reports_error(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app.load_chat(str(self.root / "nope.txt"))
            self.assertEqual(app.session.status.chat, "Error parsing chat file")
            self.assertEqual(app.conversation.bubble_count, 0)

    async def test_busy_state_refuses_second_action(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app.state.transition_to(ViewerState.LOADING_MEDIA)
            await app.load_chat(str(self.chat_path))
            self.assertTrue(app.sub_title.startswith("Busy"))
            self.assertEqual(app.session.messages, [])
            self.assertEqual(await app.state.get_state(), ViewerState.LOADING_MEDIA)

    async def test_empty_prompt_means_no_selection(self) -> None:
        app = self._build_app()
        async with app.run_test():
            await app._on_chat_path_selected("")
            self.assertEqual(app.session.status.chat, "No chat file selected")
            await app._on_media_paths_selected(None)
            self.assertEqual(app.session.status.media, "No media files selected")

    async def test_initial_paths_are_loaded_on_mount(self) -> None:
        app = self._build_app(
            chat_path=str(self.chat_path), media_paths=[str(self.image_path)]
        )
        async with app.run_test() as pilot:
            for _ in range(50):
                if app.conversation.bubble_count:
                    break
                await pilot.pause(0.02)
            self.assertEqual(app.conversation.bubble_count, 3)
            self.assertIn("dot.png", app.session.registry)

    async def test_load_chat_prompt_submits_path(self) -> None:
        assert Input is not None and PathPromptScreen is not None
        app = self._build_app()
        async with app.run_test() as pilot:
            await app.action_load_chat()
            await pilot.pause()
            self.assertIsInstance(app.screen, PathPromptScreen)
            app.screen.query_one("#path-prompt-input", Input).value = str(
                self.chat_path
            )
            await pilot.press("enter")
            for _ in range(50):
                if app.conversation.bubble_count:
                    break
                await pilot.pause(0.02)
            self.assertEqual(app.conversation.bubble_count, 3)

    async def test_upload_keeps_scroll_position_and_follow_state(self) -> None:
        lines = [f"[10:{i:02d}] Alice: message {i}" for i in range(60)]
        lines[5] = "[10:05] Bob: look <attached: dot.png>"
        long_chat = self.root / "long.txt"
        long_chat.write_text("\n".join(lines), encoding="utf-8")

        app = self._build_app()
        async with app.run_test() as pilot:
            await app.load_chat(str(long_chat))
            view = app.conversation
            await pilot.pause()
            self.assertGreater(view.max_scroll_y, 0)
            view.scroll_end(animate=False)
            await pilot.pause()
            view.scroll_home(animate=False)
            await pilot.pause()
            self.assertEqual(view.scroll_y, 0)
            self.assertFalse(view.auto_follow.following)
            bubble = view.bubble_at(5)

            await app.upload_media([str(self.image_path)])
            await self._wait_for_probes(app, pilot)

            self.assertEqual(view.scroll_y, 0)
            self.assertFalse(view.auto_follow.following)
            self.assertIs(view.bubble_at(5), bubble)
            assert bubble is not None and bubble.attachment is not None
            self.assertIs(bubble.attachment.status, MediaStatus.AVAILABLE)

    async def test_prompt_and_help_close_on_escape(self) -> None:
        assert PathPromptScreen is not None and HelpScreen is not None
        app = self._build_app()
        async with app.run_test() as pilot:
            await app.action_command_palette()
            await pilot.pause()
            self.assertIsInstance(app.screen, HelpScreen)
            await pilot.press("escape")
            await pilot.pause()
            self.assertNotIsInstance(app.screen, HelpScreen)

            await app.action_load_chat()
            await pilot.pause()
            self.assertIsInstance(app.screen, PathPromptScreen)
            await pilot.press("escape")
            for _ in range(50):
                if app.session.status.chat == "No chat file selected":
                    break
                await pilot.pause(0.02)
            self.assertNotIsInstance(app.screen, PathPromptScreen)
            self.assertEqual(app.session.status.chat, "No chat file selected")

    async def test_scroll_end_resumes_auto_follow(self) -> None:
        app = self._build_app()
        async with app.run_test():
            app.conversation.auto_follow.following = False
            app.action_scroll_end()
            self.assertTrue(app.conversation.auto_follow.following)

    def test_keybinds_come_from_config(self) -> None:
        assert ChatViewerApp is not None
        config = deepcopy(DEFAULT_CONFIG)
        config["logging"]["structured"] = False
        config["keybinds"]["load_chat"] = "f2"
        app = ChatViewerApp(config=config)
        keys = {binding.action: binding.key for binding in app._binding_specs}
        self.assertEqual(keys["load_chat"], "f2")
        self.assertEqual(keys["upload_media"], DEFAULT_CONFIG["keybinds"]["upload_media"])


if __name__ == "__main__":
    unittest.main()
