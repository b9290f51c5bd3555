"""Widget exports for chat_viewer UI."""

from .conversation import ChatLogView
from .message import MessageBubble
from .status_bar import StatusBar

__all__ = ["ChatLogView", "MessageBubble", "StatusBar"]
