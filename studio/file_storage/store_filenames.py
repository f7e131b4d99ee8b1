"""
Naming conventions for the store: how display names and titles become folder names
and post slugs, and how slugs map to filenames.
"""

import re
from pathlib import Path
from typing import Any, Optional

from slugify import slugify

from studio.config.settings import DEFAULT_SLUG, POST_EXT
from studio.errors import InvalidName

MAX_SLUG_LEN = 80

def sanitize(raw: Any) -> str:
    """
    Map an arbitrary display name or title to a filesystem-safe identifier of lowercase
    letters, digits, and single hyphens. Accented and other non-ASCII letters are
    transliterated. Falls back to `untitled` if nothing usable remains. Never raises.

    "My Project!" -> "my-project"
    "Alpha 2.0" -> "alpha-2-0"
    "  " -> "untitled"
    """
    if raw is None:
        return DEFAULT_SLUG
    slug = slugify(str(raw), max_length=MAX_SLUG_LEN, separator="-", lowercase=True)
    slug = slug.strip("-")
    return slug or DEFAULT_SLUG


def check_identifier(name: str, what: str = "name") -> str:
    """
    Check that a folder name or slug given by a caller names something directly inside
    its parent directory. Names that aren't in sanitized form are allowed (so files
    created by hand can still be opened) but anything that could reach outside the
    workspace is rejected.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidName(f"A {what} is required")
    if "/" in name or "\\" in name or "\0" in name or name.startswith("."):
        raise InvalidName(f"Invalid {what}: `{name}`")
    return name


def join_suffix(base_slug: str, ext: str = POST_EXT) -> str:
    return f"{base_slug}.{ext.lstrip('.')}"


def split_suffix(filename: str | Path, ext: str = POST_EXT) -> Optional[str]:
    """
    Slug for a post filename, or None if the file doesn't have the post extension.

    "hello-world.md" -> "hello-world"
    "notes.txt" -> None
    """
    name = Path(filename).name
    suffix = "." + ext.lstrip(".")
    if name.endswith(suffix) and len(name) > len(suffix):
        return name[: -len(suffix)]
    return None


_partial_file_pattern = re.compile(r".*\.partial(\.[a-z0-9]+)?$")


def skippable_file(filename: str) -> bool:
    """
    Check if a file or directory should be skipped when listing the store.
    This skips dotfiles (like the project sidecar), `__pycache__`, and partially
    written temporary files (`<name><uid>.partial`, or `<name>.partial.<uid>`).
    """
    return len(filename) > 1 and (
        filename.startswith(".")
        or filename.startswith("__")
        or bool(_partial_file_pattern.match(filename))
    )


## Tests


def test_sanitize():
    assert sanitize("My Project!") == "my-project"
    assert sanitize("Hello World") == "hello-world"
    assert sanitize("Alpha 2.0") == "alpha-2-0"
    assert sanitize("  --Leading and trailing--  ") == "leading-and-trailing"
    assert sanitize("under_score and   spaces") == "under-score-and-spaces"
    assert sanitize("Café Déjà Vu") == "cafe-deja-vu"
    assert sanitize("") == "untitled"
    assert sanitize("!!!") == "untitled"
    assert sanitize(None) == "untitled"
    assert sanitize(42) == "42"
    assert len(sanitize("word " * 100)) <= MAX_SLUG_LEN


def test_sanitize_charset():
    identifier_pattern = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
    samples = [
        "My Project!",
        "ÜBER cool/../../etc",
        "\t\n",
        "日本語のタイトル",
        "emoji 🎉 party",
        "a--b__c..d",
        "CON",
    ]
    for raw in samples:
        result = sanitize(raw)
        assert result, raw
        assert identifier_pattern.match(result), (raw, result)
        assert sanitize(raw) == result


def test_check_identifier():
    import pytest

    assert check_identifier("my-project") == "my-project"
    assert check_identifier("My Notes") == "My Notes"
    for bad in ["", "  ", "../etc", "a/b", "a\\b", ".hidden", "..", "a\0b"]:
        with pytest.raises(InvalidName):
            check_identifier(bad)


def test_split_suffix():
    assert split_suffix("hello-world.md") == "hello-world"
    assert split_suffix(Path("/x/y/hello.md")) == "hello"
    assert split_suffix("notes.txt") is None
    assert split_suffix(".md") is None
    assert join_suffix("hello-world") == "hello-world.md"


def test_skippable_file():
    assert skippable_file(".project.yml")
    assert skippable_file("__pycache__")
    assert skippable_file("post.md.partial.a1b2")
    assert skippable_file("getting-started.mdu0z42cp2bcvrz.partial")
    assert not skippable_file("partial.md")
    assert not skippable_file("post.md")
    assert not skippable_file("my-project")
