"""Configuration loading and validation for the chat export viewer."""

from __future__ import annotations

from copy import deepcopy
import logging
from pathlib import Path
import re
import tomllib
from typing import Any

from platformdirs import user_config_path
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .colors import DEFAULT_PALETTE
from .exceptions import ConfigValidationError
from .parser import TimestampGrammar

LOGGER = logging.getLogger(__name__)

APP_NAME = "chatviewer"

CONFIG_DIR = user_config_path(APP_NAME)
CONFIG_PATH = CONFIG_DIR / "config.toml"

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _normalize_hex(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not HEX_COLOR_PATTERN.match(normalized):
        raise ValueError("Color must use #RGB or #RRGGBB format.")
    return normalized


class AppConfig(BaseModel):
    """Application metadata and terminal integration options."""

    model_config = ConfigDict(populate_by_name=True)
    title: str = "Chat Viewer"
    window_class: str = Field(default="chatviewer", alias="class")

    @field_validator("title", "window_class", mode="before")
    @classmethod
    def _validate_non_empty_string(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Expected a string value.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("String value must not be empty.")
        return normalized


class ChatConfig(BaseModel):
    """How exported chat lines are parsed and whose messages count as local."""

    grammar: TimestampGrammar = TimestampGrammar.STRICT
    local_sender: str = ""

    @field_validator("grammar", mode="before")
    @classmethod
    def _normalize_grammar(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("local_sender", mode="before")
    @classmethod
    def _normalize_local_sender(cls, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("local_sender must be a string.")
        return value.strip()


class UIConfig(BaseModel):
    """Visual settings for Textual rendering."""

    background_color: str = "#1a1b26"
    local_message_color: str = "#2f4f3a"
    sender_palette: list[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE))
    show_timestamps: bool = True
    auto_follow_threshold: int = Field(default=1, ge=0, le=50)

    @field_validator("background_color", "local_message_color", mode="before")
    @classmethod
    def _validate_hex_color(cls, value: Any) -> str:
        return _normalize_hex(value)

    @field_validator("sender_palette", mode="before")
    @classmethod
    def _validate_palette(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("sender_palette must be a list of colors.")
        palette = [_normalize_hex(item) for item in value]
        if not palette:
            raise ValueError("sender_palette must contain at least one color.")
        return palette


class MediaConfig(BaseModel):
    """Media probing behaviour for registered attachments."""

    probe_media: bool = True
    max_probe_bytes: int = Field(default=50 * 1024 * 1024, ge=1024, le=2**34)


class KeybindsConfig(BaseModel):
    """Keyboard action mapping."""

    load_chat: str = "ctrl+o"
    upload_media: str = "ctrl+u"
    clear_chat: str = "ctrl+l"
    quit: str = "ctrl+q"
    scroll_up: str = "ctrl+k"
    scroll_down: str = "ctrl+j"
    scroll_end: str = "ctrl+g"
    command_palette: str = "ctrl+p"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Keybind must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("Keybind must not be empty.")
        return normalized


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/chatviewer/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("log_file_path must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("log_file_path must not be empty.")
        return normalized


class Config(BaseModel):
    """Root configuration model for all sections."""

    model_config = ConfigDict(populate_by_name=True)
    app: AppConfig = AppConfig()
    chat: ChatConfig = ChatConfig()
    ui: UIConfig = UIConfig()
    media: MediaConfig = MediaConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    logging: LoggingConfig = LoggingConfig()


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump(
    by_alias=True, mode="json"
)


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Create the config directory if needed; failures are only logged."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning(
            "config.dir.unavailable",
            extra={
                "event": "config.dir.unavailable",
                "path": str(directory),
                "error": str(exc),
            },
        )
    return directory


def _merge_sections(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Overlay user sections onto defaults, merging nested tables key by key."""
    merged = deepcopy(defaults)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge_sections(current, value)
        else:
            merged[key] = value
    return merged


def _read_user_config(path: Path) -> dict[str, Any]:
    """Return the TOML tables at ``path``; a missing or broken file yields ``{}``."""
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        LOGGER.warning(
            "config.file.unreadable",
            extra={
                "event": "config.file.unreadable",
                "path": str(path),
                "error": str(exc),
            },
        )
        return {}


def _validated(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged settings; any invalid value restores the full defaults."""
    try:
        return Config.model_validate(raw).model_dump(by_alias=True, mode="json")
    except ValidationError as exc:
        LOGGER.warning(
            "config.invalid",
            extra={"event": "config.invalid", "errors": exc.error_count()},
        )
        return deepcopy(DEFAULT_CONFIG)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """Load ``config.toml`` (or ``config_path``) layered over the defaults."""
    user_tables = _read_user_config(config_path or CONFIG_PATH)
    return _validated(_merge_sections(DEFAULT_CONFIG, user_tables))
