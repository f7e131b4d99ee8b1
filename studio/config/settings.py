import os
import threading
from contextlib import contextmanager
from enum import Enum
from logging import DEBUG, ERROR, INFO, WARNING
from pathlib import Path

from pydantic.dataclasses import dataclass


APP_NAME = "studio"

WORKSPACE_ENV_VAR = "STUDIO_WORKSPACE"

DEFAULT_WORKSPACE_PATH = "~/Documents/studio"

DEFAULT_LOG_DIR = "~/.local/studio/logs"

POST_EXT = "md"

PROJECT_SIDECAR_NAME = ".project.yml"

DEFAULT_POST_TITLE = "Untitled Post"

DEFAULT_SLUG = "untitled"

DEFAULT_PROJECT_NAME = "Untitled Project"

DEFAULT_POST_RECIPE = ["Title", "Date", "Related", "Image"]


class LogLevel(Enum):
    debug = DEBUG
    info = INFO
    warning = WARNING
    message = WARNING  # Same as warning, just for important console messages.
    error = ERROR

    @classmethod
    def parse(cls, level_str: str):
        canon_name = level_str.strip().lower()
        if canon_name == "warn":
            canon_name = "warning"
        try:
            return cls[canon_name]
        except KeyError:
            raise ValueError(
                f"Invalid log level: `{level_str}`. Valid options are: {', '.join(f'`{name}`' for name in cls.__members__)}"
            )

    def __str__(self):
        return self.name


def default_workspace_root() -> Path:
    """
    The workspace root from the environment, or the default location in the user's
    Documents folder.
    """
    return Path(os.environ.get(WORKSPACE_ENV_VAR) or DEFAULT_WORKSPACE_PATH).expanduser()


@dataclass
class Settings:
    workspace_root: Path
    """The directory holding all project directories."""

    log_dir: Path
    """Where log files go. Kept outside the workspace so setup never writes into it."""

    console_log_level: LogLevel
    """The log level for console-based logging."""

    file_log_level: LogLevel
    """The log level for file-based logging."""


# Initial default settings.
_settings = Settings(
    workspace_root=default_workspace_root(),
    log_dir=Path(DEFAULT_LOG_DIR).expanduser(),
    console_log_level=LogLevel.warning,
    file_log_level=LogLevel.info,
)


def global_settings() -> Settings:
    """
    Read access to global settings.
    """
    return _settings


_settings_lock = threading.RLock()


@contextmanager
def update_global_settings():
    """
    Context manager for thread-safe updates to global settings.
    """
    with _settings_lock:
        yield _settings


## Tests


def test_log_level_parse():
    import pytest

    assert LogLevel.parse(" WARN ") == LogLevel.warning
    assert LogLevel.parse("debug") == LogLevel.debug
    with pytest.raises(ValueError):
        LogLevel.parse("loud")


def test_default_workspace_root(monkeypatch):
    monkeypatch.setenv(WORKSPACE_ENV_VAR, "/tmp/elsewhere")
    assert default_workspace_root() == Path("/tmp/elsewhere")

    monkeypatch.delenv(WORKSPACE_ENV_VAR)
    assert default_workspace_root() == Path(DEFAULT_WORKSPACE_PATH).expanduser()
