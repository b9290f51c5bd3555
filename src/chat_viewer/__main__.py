"""CLI entrypoint for chat-viewer."""

from __future__ import annotations

import argparse
from importlib import metadata
from typing import Sequence

from .app import ChatViewerApp
from .config import ensure_config_dir


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-viewer", description="Browse exported chat logs with their media"
    )
    parser.add_argument(
        "chat_file",
        nargs="?",
        help="Chat export (.txt) to load on startup",
    )
    parser.add_argument(
        "--media",
        nargs="+",
        default=[],
        metavar="PATH",
        help="Media files or directories to register on startup",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Ensure configuration exists, handle CLI flags, and run the TUI."""

    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.version:
        try:
            version = metadata.version("chat-export-viewer")
        except metadata.PackageNotFoundError:
            version = "0.0.0"
        print(f"chat-viewer {version}")
        return

    ensure_config_dir()
    app = ChatViewerApp(chat_path=args.chat_file, media_paths=args.media)
    app.run()


if __name__ == "__main__":
    main()
