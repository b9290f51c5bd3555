"""Line-oriented parser for exported chat logs.

Each non-blank line goes through two extraction steps: a timestamp prefix,
then a ``sender:`` prefix. A line that fails either step produces no record;
only the aggregate number of parsed messages is reported to the user.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
import re

from .exceptions import ChatParseError

LOGGER = logging.getLogger(__name__)


class TimestampGrammar(str, Enum):
    """Accepted timestamp prefix conventions."""

    STRICT = "strict"
    LENIENT = "lenient"


TIMESTAMP_PATTERNS: dict[TimestampGrammar, re.Pattern[str]] = {
    # [2024-01-01 10:00:00] Alice: Hello
    TimestampGrammar.STRICT: re.compile(r"^\[(.+?)\]\s*"),
    # 01/01/2024, 10:00 - Alice: Hello  (brackets optional, dash required)
    TimestampGrammar.LENIENT: re.compile(r"^\[?(.+?)\]?\s*-\s*"),
}

SENDER_PATTERN = re.compile(r"^([^:]+):\s*")


@dataclass(frozen=True)
class MessageRecord:
    """One parsed chat message."""

    timestamp: str
    sender: str
    content: str


def parse_timestamp(
    line: str, grammar: TimestampGrammar = TimestampGrammar.STRICT
) -> tuple[str, str] | None:
    """Split ``line`` into ``(timestamp, rest)`` or return ``None``."""
    match = TIMESTAMP_PATTERNS[grammar].match(line)
    if match is None:
        return None
    return match.group(1), line[match.end() :]


def parse_sender(rest: str) -> tuple[str, str] | None:
    """Split the post-timestamp remainder into ``(sender, content)``.

    Only the first colon delimits the sender, so content may contain colons.
    """
    match = SENDER_PATTERN.match(rest)
    if match is None:
        return None
    sender = match.group(1).strip()
    if not sender:
        return None
    return sender, rest[match.end() :]


def split_lines(text: str) -> list[str]:
    """Split on newlines only; other Unicode line breaks stay in the content."""
    return [line.removesuffix("\r") for line in text.split("\n")]


def parse_line(
    line: str, grammar: TimestampGrammar = TimestampGrammar.STRICT
) -> MessageRecord | None:
    """Parse a single line; ``None`` means the line is dropped."""
    if not line.strip():
        return None
    timestamp_data = parse_timestamp(line, grammar)
    if timestamp_data is None:
        return None
    timestamp, rest = timestamp_data
    sender_data = parse_sender(rest)
    if sender_data is None:
        return None
    sender, content = sender_data
    return MessageRecord(timestamp=timestamp, sender=sender, content=content)


def parse_chat(
    text: str, grammar: TimestampGrammar = TimestampGrammar.STRICT
) -> list[MessageRecord]:
    """Parse a whole export in file order, silently skipping unmatched lines."""
    records: list[MessageRecord] = []
    for line in split_lines(text):
        record = parse_line(line, grammar)
        if record is not None:
            records.append(record)
    return records


class ChatParser:
    """Parser bound to one timestamp grammar."""

    def __init__(self, grammar: TimestampGrammar | str = TimestampGrammar.STRICT) -> None:
        self.grammar = TimestampGrammar(grammar)

    def parse(self, text: str) -> list[MessageRecord]:
        """Parse chat text into ordered message records."""
        return parse_chat(text, self.grammar)

    def parse_file(self, path: str | Path) -> list[MessageRecord]:
        """Read a UTF-8 export from disk and parse it.

        Raises :class:`ChatParseError` when the file cannot be read.
        """
        target = Path(path).expanduser()
        try:
            text = target.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as exc:
            raise ChatParseError(f"Unable to read chat file {target}: {exc}") from exc
        records = self.parse(text)
        candidates = sum(1 for line in split_lines(text) if line.strip())
        LOGGER.debug(
            "parser.file.parsed",
            extra={
                "event": "parser.file.parsed",
                "path": str(target),
                "grammar": self.grammar.value,
                "parsed": len(records),
                "skipped": candidates - len(records),
            },
        )
        return records
