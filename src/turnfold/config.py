"""Configuration management for Turnfold."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field, ValidationError, field_validator

from turnfold.exceptions import ConfigError

_LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
_LOG_RECORD_KEYS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


def _parse_log_level(level: str) -> int:
    normalized = level.strip().lower()
    if normalized in _LOG_LEVELS:
        return _LOG_LEVELS[normalized]
    valid = ", ".join(sorted({k for k in _LOG_LEVELS if k != "warn"}))
    raise ValueError(f"Invalid log level: {level}. Valid: {valid}")


def _coerce_log_levels(levels: dict[str, str]) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for name, level in levels.items():
        _parse_log_level(level)
        normalized[name] = level.strip().lower()
    return normalized


def _iter_log_levels(
    default_level: str,
    per_component: dict[str, str],
) -> Iterable[int]:
    yield _parse_log_level(default_level)
    for level in per_component.values():
        yield _parse_log_level(level)


class _StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _LOG_RECORD_KEYS
        }
        for key, value in extras.items():
            if isinstance(value, (str, int, float, bool)) or value is None:
                payload[key] = value
            else:
                payload[key] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_info"] = record.stack_info
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(config: "TurnfoldConfig") -> None:
    """Configure structured logging for CLI usage."""
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler: logging.Handler
    if config.log_file:
        handler = logging.FileHandler(config.log_file)
    else:
        handler = logging.StreamHandler()
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(_StructuredFormatter())
    root_logger.addHandler(handler)

    min_level = min(_iter_log_levels(config.log_level, config.log_levels))
    root_logger.setLevel(min_level)

    for name, level in config.log_levels.items():
        logging.getLogger(name).setLevel(_parse_log_level(level))


class TurnfoldConfig(BaseModel):
    """Main configuration for grouped display."""

    grouping_enabled: bool = Field(
        default=True,
        description="Fold each turn's fragments into collapsible wrapper groups",
    )
    spinner_interval: float = Field(
        default=0.1,
        gt=0.0,
        le=5.0,
        description="Seconds between spinner frames",
    )
    label_max_chars: int = Field(
        default=72,
        ge=8,
        description="Caption length before it is truncated with an ellipsis",
    )
    child_indent: str = Field(
        default="  ",
        description="Line prefix applied to expanded children",
    )
    ascii_icons: bool = Field(
        default=False,
        description="Use ASCII icons instead of Unicode",
    )

    log_level: str = Field(default="warning", description="Log level")
    log_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-component log levels (e.g., {'turnfold.spinner': 'debug'})",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (structured JSON)",
    )

    @field_validator("child_indent")
    @classmethod
    def _validate_child_indent(cls, value: str) -> str:
        if "\n" in value:
            raise ValueError("child_indent must not contain line breaks")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        _parse_log_level(value)
        return value.strip().lower()

    @field_validator("log_levels")
    @classmethod
    def _validate_log_levels(cls, value: dict[str, str]) -> dict[str, str]:
        return _coerce_log_levels(value)

    @classmethod
    def from_file(cls, path: str | Path) -> "TurnfoldConfig":
        """Load configuration from TOML file."""
        import tomllib

        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Malformed config file: {exc}", {"path": str(path)}) from exc

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}", {"path": str(path)}) from exc

    @classmethod
    def default_path(cls) -> Path:
        """Get default config file path."""
        return Path.home() / ".config" / "turnfold" / "config.toml"
