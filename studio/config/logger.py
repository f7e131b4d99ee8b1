import logging
import os
import threading
from functools import cache
from logging import Formatter
from pathlib import Path
from typing import Optional

from rich import reconfigure
from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from studio.config.settings import APP_NAME, global_settings, LogLevel
from studio.config.text_styles import EMOJI_ERROR, EMOJI_WARN, RICH_STYLES, StudioHighlighter

LOG_FILE_NAME = f"{APP_NAME}.log"

_log_lock = threading.RLock()

_file_handler: Optional[logging.FileHandler] = None
_console_handler: Optional[RichHandler] = None


def log_dir() -> Path:
    return global_settings().log_dir


def log_file_path() -> Path:
    return log_dir() / LOG_FILE_NAME


@cache
def get_highlighter():
    return StudioHighlighter()


@cache
def get_theme():
    return Theme(RICH_STYLES)


def logging_setup():
    """
    Set up or reset logging setup. Call at initial run and again if the log directory
    changes. Replaces previous handlers on the root logger.
    """
    global _file_handler, _console_handler

    with _log_lock:
        reconfigure(theme=get_theme(), highlighter=get_highlighter())

        os.makedirs(log_dir(), exist_ok=True)

        # Verbose logging to file, important logging to console.
        _file_handler = logging.FileHandler(log_file_path(), encoding="utf-8")
        _file_handler.setLevel(global_settings().file_log_level.value)
        _file_handler.setFormatter(Formatter("%(asctime)s %(levelname).1s %(name)s - %(message)s"))

        # Log output goes to stderr, keeping stdout for command results.
        _console_handler = RichHandler(
            console=Console(stderr=True, theme=get_theme(), highlighter=get_highlighter()),
            level=global_settings().console_log_level.value,
            show_time=False,
            show_path=False,
            show_level=False,
            highlighter=get_highlighter(),
            markup=False,
        )
        _console_handler.setLevel(global_settings().console_log_level.value)
        _console_handler.setFormatter(Formatter("%(message)s"))

        root = logging.getLogger()
        root.setLevel(min(_file_handler.level, _console_handler.level))
        # Remove any existing handlers.
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        root.addHandler(_console_handler)
        root.addHandler(_file_handler)


def prefix(line, emoji: str = "", warn_emoji: str = ""):
    emojis = f"{warn_emoji}{emoji}".strip()
    return " ".join(filter(None, [emojis, str(line)]))


def prefix_args(args, emoji: str = "", warn_emoji: str = ""):
    if len(args) > 0:
        args = (prefix(args[0], emoji, warn_emoji),) + args[1:]
    return args


class CustomLogger:
    """
    Custom logger to be clearer about user messages.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, *args, **kwargs):
        self.logger.debug(*args, **kwargs)

    def info(self, *args, **kwargs):
        self.logger.info(*args, **kwargs)

    def message(self, *args, **kwargs):
        self.logger.warning(*args, **kwargs)

    def warning(self, *args, **kwargs):
        self.logger.warning(*prefix_args(args, warn_emoji=EMOJI_WARN), **kwargs)

    def error(self, *args, **kwargs):
        self.logger.error(*prefix_args(args, warn_emoji=EMOJI_ERROR), **kwargs)

    def log(self, level: LogLevel, *args, **kwargs):
        getattr(self, level.name)(*args, **kwargs)

    # Fallback for other attributes/methods.
    def __getattr__(self, attr):
        return getattr(self.logger, attr)


def get_logger(name: str):
    return CustomLogger(name)


def reset_log_dir(new_log_dir: Path):
    """
    Move logging to a different directory, if it has changed.
    """
    from studio.config.settings import update_global_settings

    with _log_lock:
        if new_log_dir != log_dir():
            get_logger(__name__).info("Resetting log dir: %s", new_log_dir)
            with update_global_settings() as settings:
                settings.log_dir = new_log_dir
        logging_setup()


## Tests


def test_custom_logger_prefixes(caplog):
    log = get_logger("studio.test")
    with caplog.at_level(logging.DEBUG, logger="studio.test"):
        log.info("plain %s", "info")
        log.warning("careful")
        log.error("broken")
        log.message("saved")

    messages = [r.getMessage() for r in caplog.records]
    assert messages == ["plain info", f"{EMOJI_WARN} careful", f"{EMOJI_ERROR} broken", "saved"]
    assert caplog.records[3].levelno == logging.WARNING
