"""
Settings that define the visual appearance of text outputs.
"""

import re

from rich.highlighter import RegexHighlighter, _combine_regex

## Colors

COLOR_EMPH = "bright_green"

COLOR_HINT = "italic dim"

## Emojis

EMOJI_WARN = "△"

EMOJI_ERROR = EMOJI_WARN + EMOJI_WARN

EMOJI_SAVED = "⩣"

EMOJI_CALL_BEGIN = "≫"

EMOJI_CALL_END = "≪"

EMOJI_TIMING = "⏱"


RICH_STYLES = {
    "studio.warn": "bold bright_red",
    "studio.saved": "bold blue",
    "studio.timing": "dim",
    "studio.log_call": "dim magenta",
    "studio.path": "cyan",
}


class StudioHighlighter(RegexHighlighter):
    """
    Highlighter for log lines: emojis and store paths.
    """

    base_style = "studio."
    highlights = [
        _combine_regex(
            f"(?P<warn>{re.escape(EMOJI_WARN)}|{re.escape(EMOJI_ERROR)})",
            f"(?P<saved>{re.escape(EMOJI_SAVED)})",
            f"(?P<timing>{re.escape(EMOJI_TIMING)})",
            f"(?P<log_call>{re.escape(EMOJI_CALL_BEGIN)}|{re.escape(EMOJI_CALL_END)})",
        ),
        r"(?P<path>\B/[\w./-]+\.md\b)",
    ]
