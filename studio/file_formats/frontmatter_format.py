"""
POST FRONTMATTER

Posts are Markdown files that may start with a small metadata block in the
common Jekyll style:

---
title: "Hello World"
date: 2024-05-01
---

Body text...

The block is only recognized at the very start of the text, and both
delimiters must be alone on their own lines. Lines inside the block are
`key: value` pairs. Values may be wrapped in double or single quotes, which
are removed on reading. Nothing is escaped or unescaped beyond that, so a
title containing quote characters is stored as-is.

This is deliberately not a YAML parser. The only operations the store needs
are reading the title and replacing it while keeping every other byte of the
file (other metadata lines, line endings, and the body) unchanged, so the
block is handled as a list of lines with a two-state scan.

If the opening delimiter is present but the closing one is missing, the text
is treated as having no frontmatter at all. Strict callers can ask for a
`MalformedContent` error instead.
"""

import re
from datetime import date
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from studio.config.logger import get_logger
from studio.config.settings import DEFAULT_POST_TITLE
from studio.errors import MalformedContent

log = get_logger(__name__)


DELIMITER = "---"

TITLE_KEY = "title"

DATE_KEY = "date"

_heading_pattern = re.compile(r"^#[ \t]+(.*)$")

_line_breaks = re.compile(r"[\r\n]+")


class _ScanState(Enum):
    outside = "outside"
    inside = "inside"


class FrontmatterBlock(NamedTuple):
    """
    A well-formed frontmatter block split out of a post's text. Lines keep their
    line endings, so `opening + "".join(lines) + closing + body` is the original text.
    """

    opening: str
    lines: List[str]
    closing: str
    body: str

    def render(self) -> str:
        return self.opening + "".join(self.lines) + self.closing + self.body


def _split_lines(text: str) -> List[str]:
    """
    Split on `\\n` only, keeping line endings. Unlike `str.splitlines()` this never
    treats other Unicode separators as line breaks.
    """
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _line_ending(line: str, default: str = "\n") -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    elif line.endswith("\n"):
        return "\n"
    return default


def _is_delimiter(line: str) -> bool:
    return line.strip() == DELIMITER


def split_frontmatter(content: str, strict: bool = False) -> Optional[FrontmatterBlock]:
    """
    Split a well-formed frontmatter block from the text, or return None if there isn't one.
    An opening delimiter with no closing delimiter is malformed: with `strict` this raises
    `MalformedContent`, otherwise it's treated as no frontmatter.
    """
    if not content.startswith(DELIMITER):
        return None

    lines = _split_lines(content)
    state = _ScanState.outside
    opening = ""
    metadata: List[str] = []

    for i, line in enumerate(lines):
        if state is _ScanState.outside:
            if i == 0 and _is_delimiter(line) and line.endswith("\n"):
                opening = line
                state = _ScanState.inside
                continue
            return None
        else:
            if _is_delimiter(line):
                return FrontmatterBlock(opening, metadata, line, "".join(lines[i + 1 :]))
            metadata.append(line)

    if state is _ScanState.inside:
        if strict:
            raise MalformedContent(
                f"Delimiter `{DELIMITER}` for end of frontmatter not found "
                f"({len(metadata)} lines scanned)"
            )
        log.debug("Unterminated frontmatter block, reading text as plain body")

    return None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_field(line: str) -> Optional[Tuple[str, str]]:
    """
    Parse a `key: value` metadata line into its key and unquoted value.

    'title: "Hello"' -> ("title", "Hello")
    "date: 2024-05-01" -> ("date", "2024-05-01")
    """
    stripped = line.strip()
    key, sep, raw_value = stripped.partition(":")
    if not sep or not key.strip():
        return None
    return key.strip(), _unquote(raw_value.strip())


def _field_value(lines: List[str], key: str) -> Optional[str]:
    for line in lines:
        field = parse_field(line)
        if field and field[0] == key:
            return field[1]
    return None


def first_heading(body: str) -> Optional[str]:
    """
    Text of the first top-level `# ` heading line, if any. `##` and deeper headings
    don't count.
    """
    for line in _split_lines(body):
        match = _heading_pattern.match(line.strip())
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_title(content: str) -> str:
    """
    The title of a post: the frontmatter `title` if there is one, then the first `# `
    heading of the body, then the default "Untitled Post".
    """
    block = split_frontmatter(content)
    if block:
        title = _field_value(block.lines, TITLE_KEY)
        if title:
            return title
        body = block.body
    else:
        body = content

    return first_heading(body) or DEFAULT_POST_TITLE


def title_line(title: str) -> str:
    # The format is line-oriented so a title can't span lines.
    return f'{TITLE_KEY}: "{_line_breaks.sub(" ", title)}"'


def with_title(content: str, new_title: str, today: Optional[date] = None) -> str:
    """
    Return the text with its frontmatter title set to `new_title`.

    With a well-formed block, only the first `title` line is replaced (or a new one is
    added at the top of the block); every other line and the body stay byte for byte
    the same. Without one, a new block with the title and today's date is put in front
    of the text, separated by a blank line. Applying the same title twice gives the
    same text.
    """
    block = split_frontmatter(content)
    if block:
        new_lines = list(block.lines)
        for i, line in enumerate(new_lines):
            field = parse_field(line)
            if field and field[0] == TITLE_KEY:
                new_lines[i] = title_line(new_title) + _line_ending(
                    line, _line_ending(block.opening)
                )
                break
        else:
            new_lines.insert(0, title_line(new_title) + _line_ending(block.opening))
        return block._replace(lines=new_lines).render()

    today = today or date.today()
    return (
        f"{DELIMITER}\n"
        f"{title_line(new_title)}\n"
        f"{DATE_KEY}: {today.isoformat()}\n"
        f"{DELIMITER}\n"
        "\n"
        f"{content}"
    )


## Tests


def test_extract_title_from_frontmatter():
    text = '---\ntitle: "Hello World"\ndate: 2024-05-01\n---\n\nBody'
    assert extract_title(text) == "Hello World"
    assert extract_title("---\ntitle: Plain Title\n---\n") == "Plain Title"
    assert extract_title("---\ntitle: 'Single'\n---\n") == "Single"
    assert extract_title("---\r\ntitle: \"Windows\"\r\n---\r\nBody\r\n") == "Windows"
    # Only the first title counts.
    assert extract_title('---\ntitle: "One"\ntitle: "Two"\n---\n') == "One"
    # A key that merely starts with "title" is a different key.
    assert extract_title("---\ntitles: nope\n---\n# Heading\n") == "Heading"


def test_extract_title_fallbacks():
    # No frontmatter: first top-level heading.
    assert extract_title("Intro\n## Sub\n# Main Heading  \nMore") == "Main Heading"
    # Frontmatter without a title: heading in the body.
    assert extract_title("---\ndate: 2024-05-01\n---\n# From Body\n") == "From Body"
    # Empty title value falls through too.
    assert extract_title('---\ntitle: ""\n---\n# Heading\n') == "Heading"
    # Unterminated frontmatter: the whole text is the body.
    assert extract_title('---\ntitle: "Never Closed"\n# Fallback\n') == "Fallback"
    assert extract_title('---\ntitle: "Never Closed"\n') == DEFAULT_POST_TITLE
    assert extract_title("") == DEFAULT_POST_TITLE
    assert extract_title("just text\n##not a heading\n#also not") == DEFAULT_POST_TITLE


def test_split_frontmatter():
    import pytest

    text = "---\ntitle: x\nother: y\n---\nbody\n"
    block = split_frontmatter(text)
    assert block
    assert block.lines == ["title: x\n", "other: y\n"]
    assert block.body == "body\n"
    assert block.render() == text

    assert split_frontmatter("no frontmatter") is None
    assert split_frontmatter("----\nnot: a block\n----\n") is None
    assert split_frontmatter("---") is None

    assert split_frontmatter("---\ntitle: x\n") is None
    with pytest.raises(MalformedContent):
        split_frontmatter("---\ntitle: x\n", strict=True)


def test_parse_field():
    assert parse_field('title: "Hello"\n') == ("title", "Hello")
    assert parse_field("  date:   2024-05-01  ") == ("date", "2024-05-01")
    assert parse_field("url: https://example.com/a") == ("url", "https://example.com/a")
    assert parse_field("no separator") is None
    assert parse_field(": no key") is None


def test_with_title_new_block():
    result = with_title("Body text\n", "Hello World", today=date(2024, 5, 1))
    assert result == '---\ntitle: "Hello World"\ndate: 2024-05-01\n---\n\nBody text\n'

    result = with_title("", "Empty", today=date(2024, 5, 1))
    assert result == '---\ntitle: "Empty"\ndate: 2024-05-01\n---\n\n'


def test_with_title_preserves_other_lines():
    original = '---\nlayout: post\ntitle: "Old"\ntags: [a, b]\n---\n\n# Old\n\nBody\n'
    result = with_title(original, "New")
    assert result == '---\nlayout: post\ntitle: "New"\ntags: [a, b]\n---\n\n# Old\n\nBody\n'

    # No title line yet: one is added at the top of the block.
    result = with_title("---\ndate: 2024-05-01\n---\nBody", "Added")
    assert result == '---\ntitle: "Added"\ndate: 2024-05-01\n---\nBody'

    # Line endings are kept.
    result = with_title('---\r\ntitle: "Old"\r\n---\r\nBody\r\n', "New")
    assert result == '---\r\ntitle: "New"\r\n---\r\nBody\r\n'


def test_with_title_malformed_block():
    malformed = '---\ntitle: "Never Closed"\nBody\n'
    result = with_title(malformed, "Fixed", today=date(2024, 5, 1))
    assert result.endswith("\n\n" + malformed)
    assert extract_title(result) == "Fixed"


def test_with_title_round_trip_and_idempotence():
    contents = [
        "",
        "Plain body\n",
        "# Heading only",
        '---\ntitle: "Old"\ndate: 2024-05-01\n---\n\nBody\n',
        "---\nauthor: someone\n---\n",
        "---\r\nlayout: post\r\n---\r\n\r\nWindows body\r\n",
        "---\nnot closed\n",
    ]
    titles = [
        "Hello World",
        "Title: with a colon",
        'He said "hi"',
        "'quoted'",
        "  padded  ",
        "Ünïcödé ✓",
        "---",
        "# not a heading",
    ]
    for content in contents:
        for title in titles:
            once = with_title(content, title)
            assert extract_title(once) == title, (content, title)
            assert with_title(once, title) == once, (content, title)


def test_with_title_folds_line_breaks():
    result = with_title("", "Two\nLines", today=date(2024, 5, 1))
    assert extract_title(result) == "Two Lines"
    assert result.count("\n") == 5
