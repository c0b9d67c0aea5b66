"""Configuration management for fieldchecks using Pydantic models."""

import json
from enum import Enum
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import CheckError, ErrorClass

CONFIG_FILE_NAME = ".fieldchecks.json"


class Mode(str, Enum):
    """Aggregation modes."""
    FIRST = "first"
    ALL = "all"


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"


class CheckerConfig(BaseModel):
    """Runtime configuration of a checker."""
    mode: Mode = Mode.FIRST
    classes: ErrorClass = ErrorClass.ERROR
    # Receives deprecation advisories; None routes them to the logger
    observer: Callable[[CheckError], None] | None = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARNING

    model_config = ConfigDict(use_enum_values=True)


class FieldchecksConfig(BaseModel):
    """Complete file configuration model."""
    mode: Mode = Mode.ALL
    warnings: bool = False
    fail_on_warnings: bool = Field(alias="failOnWarnings", default=False)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @property
    def classes(self) -> ErrorClass:
        return ErrorClass.ALL if self.warnings else ErrorClass.ERROR

    def to_checker_config(self, observer: Callable[[CheckError], None] | None = None) -> CheckerConfig:
        """Build the runtime configuration described by this file."""
        return CheckerConfig(mode=self.mode, classes=self.classes, observer=observer)


def load_config(config_path: str | Path | None = None) -> FieldchecksConfig:
    """Read ``.fieldchecks.json``; a missing file means default settings.

    Without ``config_path`` the nearest file found by ``find_config_file``
    is used. Unreadable or invalid settings raise ``ValueError``.
    """
    path = Path(config_path) if config_path is not None else find_config_file()
    if path is None or not path.exists():
        return create_default_config()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file {path}: {e}")
    except OSError as e:
        raise ValueError(f"Failed to load config from {path}: {e}")

    try:
        return FieldchecksConfig.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Failed to load config from {path}: {e}")


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Nearest ``.fieldchecks.json`` in ``start_dir`` (default: cwd) or its parents."""
    start = Path(start_dir or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate
    return None


def create_default_config() -> FieldchecksConfig:
    """Create default configuration."""
    return FieldchecksConfig()
