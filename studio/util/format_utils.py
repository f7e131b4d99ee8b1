import shlex
from pathlib import Path

import regex


def single_line(text: str) -> str:
    """
    Convert newlines and other whitespace to spaces.
    """
    return regex.sub(r"\s+", " ", str(text)).strip()


def fmt_path(path: str | Path, resolve: bool = True) -> str:
    """
    Format a path or filename for display. This quotes it if it contains whitespace.

    :param resolve: If true paths are resolved. If they are within the current working
    directory, they are formatted as relative. Otherwise, they are formatted as absolute.
    """
    if resolve:
        path = Path(path).resolve()
        cwd = Path.cwd().resolve()
        if path.is_relative_to(cwd):
            path = path.relative_to(cwd)
    else:
        path = Path(path)

    return shlex.quote(str(path))


## Tests


def test_single_line():
    assert single_line("  a\n b\t\tc \r\n") == "a b c"
    assert single_line("") == ""


def test_fmt_path():
    assert fmt_path("/tmp/some dir/post.md", resolve=False) == "'/tmp/some dir/post.md'"
    assert fmt_path("notes/post.md", resolve=False) == "notes/post.md"

