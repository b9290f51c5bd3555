"""Per-session sender color assignment."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

DEFAULT_PALETTE: tuple[str, ...] = (
    "#7aa2f7",
    "#9ece6a",
    "#e0af68",
    "#f7768e",
    "#bb9af7",
    "#7dcfff",
    "#ff9e64",
    "#73daca",
    "#c0caf5",
    "#db4b4b",
)


class SenderColorMap:
    """Assign each distinct sender a stable color from a fixed palette.

    Senders receive the first palette color nobody holds yet. Once every
    color is taken, assignment wraps around by map size so colors repeat.
    """

    def __init__(self, palette: Iterable[str] = DEFAULT_PALETTE) -> None:
        self.palette: tuple[str, ...] = tuple(palette)
        if not self.palette:
            raise ValueError("Sender palette must contain at least one color.")
        self._colors: dict[str, str] = {}

    def color_for(self, sender: str) -> str:
        """Return the sender's color, assigning one on first sight."""
        existing = self._colors.get(sender)
        if existing is not None:
            return existing

        used = set(self._colors.values())
        color = next((c for c in self.palette if c not in used), None)
        if color is None:
            color = self.palette[len(self._colors) % len(self.palette)]
        self._colors[sender] = color
        return color

    def get(self, sender: str) -> str | None:
        """Return an already assigned color without assigning a new one."""
        return self._colors.get(sender)

    def reset(self) -> None:
        """Forget every assignment (used when the chat is cleared or replaced)."""
        self._colors.clear()

    def as_dict(self) -> dict[str, str]:
        return dict(self._colors)

    def __len__(self) -> int:
        return len(self._colors)

    def __contains__(self, sender: object) -> bool:
        return sender in self._colors

    def __iter__(self) -> Iterator[str]:
        return iter(self._colors)
