"""Attachment detection, media registry, and media probing.

Message content references media through an ``<attached: FILENAME>`` marker.
Filenames are normalized (trimmed, lowercased) and looked up in a
:class:`MediaRegistry` populated from the user's uploaded media files.
Registry entries are :class:`MediaHandle` objects that must be released when
superseded or when the chat is cleared.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import Enum
import logging
from pathlib import Path
import re
from typing import BinaryIO

from PIL import Image

from .exceptions import MediaLoadError

LOGGER = logging.getLogger(__name__)

ATTACHMENT_PATTERN = re.compile(r"<attached:\s*([^>]+)>")


class MediaKind(str, Enum):
    """Display category of an attachment."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"


class MediaStatus(str, Enum):
    """Render-time state of an attachment."""

    AVAILABLE = "available"
    MISSING = "missing"
    LOADING = "loading"
    FAILED = "failed"


MEDIA_EXTENSIONS: dict[str, MediaKind] = {
    ".jpg": MediaKind.IMAGE,
    ".jpeg": MediaKind.IMAGE,
    ".png": MediaKind.IMAGE,
    ".gif": MediaKind.IMAGE,
    ".webp": MediaKind.IMAGE,
    ".mp4": MediaKind.VIDEO,
    ".webm": MediaKind.VIDEO,
    ".mov": MediaKind.VIDEO,
    ".mp3": MediaKind.AUDIO,
    ".ogg": MediaKind.AUDIO,
    ".m4a": MediaKind.AUDIO,
    ".wav": MediaKind.AUDIO,
    ".opus": MediaKind.AUDIO,
}


def normalize_filename(name: str) -> str:
    """Registry key for a filename: surrounding whitespace removed, lowercased."""
    return name.strip().lower()


def classify_media(filename: str | None) -> MediaKind:
    """Map a filename's extension onto a :class:`MediaKind`."""
    if not filename:
        return MediaKind.FILE
    suffix = Path(normalize_filename(filename)).suffix
    return MEDIA_EXTENSIONS.get(suffix, MediaKind.FILE)


def has_attachment(content: str) -> bool:
    return ATTACHMENT_PATTERN.search(content) is not None


def find_attachment(content: str) -> str | None:
    """Return the normalized filename of the first attachment marker, if any."""
    match = ATTACHMENT_PATTERN.search(content)
    if match is None:
        return None
    return normalize_filename(match.group(1))


def strip_attachment_marker(content: str) -> str:
    """Remove the resolved (first) attachment marker from displayed text.

    Any later markers are left in place so their filenames stay visible.
    """
    return ATTACHMENT_PATTERN.sub("", content, count=1).strip()


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


@dataclass
class MediaHandle:
    """Display-ready reference to one uploaded media file."""

    name: str
    path: Path
    kind: MediaKind
    released: bool = False

    def release(self) -> None:
        """Invalidate the handle; later reads raise :class:`MediaLoadError`."""
        self.released = True

    def _ensure_live(self) -> None:
        if self.released:
            raise MediaLoadError(f"Media handle released: {self.name}")

    def size(self) -> int:
        self._ensure_live()
        try:
            return self.path.stat().st_size
        except OSError as exc:
            raise MediaLoadError(f"Unable to read {self.name}: {exc}") from exc

    def open(self) -> BinaryIO:
        """Open the underlying bytes for reading."""
        self._ensure_live()
        try:
            return self.path.open("rb")
        except OSError as exc:
            raise MediaLoadError(f"Unable to open {self.name}: {exc}") from exc


class MediaRegistry:
    """Lowercase filename to :class:`MediaHandle` mapping for one session."""

    def __init__(self) -> None:
        self._handles: dict[str, MediaHandle] = {}

    def register(self, path: str | Path) -> MediaHandle:
        """Acquire a handle for ``path``, superseding any same-named entry."""
        resolved = Path(path).expanduser()
        key = normalize_filename(resolved.name)
        handle = MediaHandle(name=key, path=resolved, kind=classify_media(key))
        previous = self._handles.get(key)
        if previous is not None:
            previous.release()
            LOGGER.debug(
                "media.handle.superseded",
                extra={"event": "media.handle.superseded", "name": key},
            )
        self._handles[key] = handle
        return handle

    def register_many(self, paths: Iterable[str | Path]) -> list[MediaHandle]:
        return [self.register(path) for path in paths]

    def get(self, name: str) -> MediaHandle | None:
        return self._handles.get(normalize_filename(name))

    def release_all(self) -> int:
        """Release and drop every handle; return how many were released."""
        handles = list(self._handles.values())
        for handle in handles:
            handle.release()
        self._handles.clear()
        return len(handles)

    def names(self) -> list[str]:
        return list(self._handles)

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_filename(name) in self._handles

    def __iter__(self) -> Iterator[MediaHandle]:
        return iter(list(self._handles.values()))


def expand_media_paths(paths: Iterable[str | Path]) -> list[Path]:
    """Expand directories to the regular files directly inside them."""
    expanded: list[Path] = []
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            expanded.extend(
                sorted(child for child in path.iterdir() if child.is_file())
            )
        else:
            expanded.append(path)
    return expanded


@dataclass(frozen=True)
class Attachment:
    """Attachment facet of a rendered message."""

    filename: str
    kind: MediaKind
    handle: MediaHandle | None
    status: MediaStatus
    detail: str = ""

    @property
    def available(self) -> bool:
        """True when the referenced file was uploaded to the registry."""
        return self.handle is not None

    def with_status(self, status: MediaStatus, detail: str = "") -> Attachment:
        return replace(self, status=status, detail=detail)


def resolve_attachment(content: str, registry: MediaRegistry) -> Attachment | None:
    """Resolve the attachment marker in ``content`` against ``registry``.

    Returns ``None`` when there is no marker. A marker whose file was never
    uploaded resolves to a ``MISSING`` attachment rather than an error.
    """
    filename = find_attachment(content)
    if filename is None:
        return None
    handle = registry.get(filename)
    if handle is None:
        return Attachment(
            filename=filename,
            kind=classify_media(filename),
            handle=None,
            status=MediaStatus.MISSING,
        )
    return Attachment(
        filename=filename,
        kind=handle.kind,
        handle=handle,
        status=MediaStatus.AVAILABLE,
    )


@dataclass(frozen=True)
class MediaProbe:
    """Outcome of loading the bytes behind a handle."""

    status: MediaStatus
    detail: str


def probe_media(handle: MediaHandle, *, max_bytes: int = 50 * 1024 * 1024) -> MediaProbe:
    """Check that a handle's bytes can be loaded for display.

    Images are decoded with Pillow; other kinds only need to be readable.
    Failures are reported in the result and never raised.
    """
    try:
        size = handle.size()
        if size > max_bytes:
            return MediaProbe(
                MediaStatus.FAILED,
                f"{handle.name} too large ({_format_size(size)})",
            )
        with handle.open() as stream:
            if handle.kind is MediaKind.IMAGE:
                with Image.open(stream) as image:
                    width, height = image.size
                    image_format = image.format or "image"
                    image.verify()
                return MediaProbe(
                    MediaStatus.AVAILABLE,
                    f"{image_format} {width}x{height}, {_format_size(size)}",
                )
            stream.read(1)
        return MediaProbe(
            MediaStatus.AVAILABLE, f"{handle.kind.value}, {_format_size(size)}"
        )
    except Exception as exc:  # noqa: BLE001 - failure is scoped to this attachment.
        LOGGER.debug(
            "media.probe.failed",
            extra={
                "event": "media.probe.failed",
                "name": handle.name,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        return MediaProbe(MediaStatus.FAILED, str(exc))
