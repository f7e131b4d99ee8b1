"""
Main entry point for the studio command line.

Runs one store command per process: `studio <command> [JSON-args]`. The result is
printed to stdout as a JSON envelope, and the exit status is non-zero on failure.
"""

import json
import sys
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from studio.config.logger import get_logger
from studio.config.setup import setup
from studio.config.text_styles import COLOR_EMPH, COLOR_HINT
from studio.version import get_version_name

log = get_logger(__name__)

console = Console()


def print_help():
    from studio.commands import store_commands  # noqa: F401 (registers commands)
    from studio.commands.command_registry import all_commands

    console.print(f"{get_version_name()}\n")
    console.print("Usage: studio <command> [JSON-args]\n", markup=False)
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style=COLOR_EMPH)
    table.add_column(style=COLOR_HINT)
    for name, func in all_commands().items():
        doc = (func.__doc__ or "").strip().splitlines()
        table.add_row(name, doc[0] if doc else "")
    console.print(table)
    example_args = json.dumps({"project_folder_name": "welcome", "requested_title": "Hi"})
    console.print(f"\nExample: studio create_post '{example_args}'", markup=False)


def parse_args(argv: List[str]) -> Tuple[str, Optional[Dict[str, Any]]]:
    # Do our own arg parsing since everything except these options is a command.
    if argv == ["--version"]:
        print(get_version_name())
        sys.exit(0)
    elif argv == ["--help"] or not argv:
        print_help()
        sys.exit(0)
    elif argv[0].startswith("-"):
        print(f"Unrecognized option: {argv[0]}", file=sys.stderr)
        sys.exit(2)
    elif len(argv) > 2:
        print("Expected a command and at most one JSON argument", file=sys.stderr)
        sys.exit(2)

    name = argv[0]
    args = None
    if len(argv) == 2:
        try:
            args = json.loads(argv[1])
        except json.JSONDecodeError as e:
            print(f"Arguments are not valid JSON: {e}", file=sys.stderr)
            sys.exit(2)
    return name, args


def main():
    name, args = parse_args(sys.argv[1:])

    setup()

    from studio.commands.store_commands import run_command

    log.debug("Running command: %s %s", name, args)
    envelope = run_command(name, args)
    console.print_json(data=envelope)
    sys.exit(0 if envelope["ok"] else 1)


if __name__ == "__main__":
    main()


## Tests


def test_parse_args(capsys):
    import pytest

    assert parse_args(["list_projects"]) == ("list_projects", None)
    assert parse_args(["read_post", '{"project_folder_name": "a", "slug": "b"}']) == (
        "read_post",
        {"project_folder_name": "a", "slug": "b"},
    )

    for bad in (["--nope"], ["read_post", "{not json"], ["a", "b", "c"]):
        with pytest.raises(SystemExit) as exc_info:
            parse_args(bad)
        assert exc_info.value.code == 2

    with pytest.raises(SystemExit) as exc_info:
        parse_args(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.startswith("studio ")
