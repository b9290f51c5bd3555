"""Domain exception hierarchy for the chat export viewer."""

from __future__ import annotations


class ChatViewerError(RuntimeError):
    """Base class for all domain-level viewer errors."""


class ChatParseError(ChatViewerError):
    """Raised when a chat export cannot be read or parsed as a whole."""


class MediaLoadError(ChatViewerError):
    """Raised when the bytes behind a media handle cannot be loaded."""


class ConfigValidationError(ChatViewerError):
    """Raised when configuration cannot be validated safely."""
