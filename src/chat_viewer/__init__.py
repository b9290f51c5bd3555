"""Top-level package for chat-export-viewer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .app import ChatViewerApp
    from .colors import SenderColorMap
    from .config import ensure_config_dir, load_config
    from .exceptions import (
        ChatParseError,
        ChatViewerError,
        ConfigValidationError,
        MediaLoadError,
    )
    from .media import MediaRegistry, resolve_attachment
    from .parser import ChatParser, MessageRecord, parse_chat
    from .renderer import DisplayEntry, MessageRenderer
    from .session import ChatSession

__all__ = [
    "ChatParseError",
    "ChatParser",
    "ChatSession",
    "ChatViewerApp",
    "ChatViewerError",
    "ConfigValidationError",
    "DisplayEntry",
    "MediaLoadError",
    "MediaRegistry",
    "MessageRecord",
    "MessageRenderer",
    "SenderColorMap",
    "ensure_config_dir",
    "load_config",
    "parse_chat",
    "resolve_attachment",
]

_LAZY_EXPORTS: dict[str, str] = {
    "ChatViewerApp": ".app",
    "SenderColorMap": ".colors",
    "ensure_config_dir": ".config",
    "load_config": ".config",
    "ChatParseError": ".exceptions",
    "ChatViewerError": ".exceptions",
    "ConfigValidationError": ".exceptions",
    "MediaLoadError": ".exceptions",
    "MediaRegistry": ".media",
    "resolve_attachment": ".media",
    "ChatParser": ".parser",
    "MessageRecord": ".parser",
    "parse_chat": ".parser",
    "DisplayEntry": ".renderer",
    "MessageRenderer": ".renderer",
    "ChatSession": ".session",
}


def __getattr__(name: str) -> Any:
    """Lazily import symbols to keep the Textual UI optional at import time."""
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module_name, __name__), name)
