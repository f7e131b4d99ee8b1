from typing import Any, Callable, Dict

from studio.config.logger import get_logger
from studio.errors import InvalidInput

log = get_logger(__name__)


CommandFunction = Callable[..., Any]

_commands: Dict[str, CommandFunction] = {}


def studio_command(func: CommandFunction) -> CommandFunction:
    _commands[func.__name__] = func
    return func


def all_commands() -> Dict[str, CommandFunction]:
    """
    All commands, sorted by name.
    """
    return dict(sorted(_commands.items()))


def look_up_command(name: str) -> CommandFunction:
    cmd = _commands.get(name)
    if not cmd:
        raise InvalidInput(f"Command `{name}` not found")
    return cmd


## Tests


def test_look_up_command():
    import pytest

    @studio_command
    def _test_echo(value: str) -> str:
        return value

    assert look_up_command("_test_echo")("hi") == "hi"
    assert "_test_echo" in all_commands()
    with pytest.raises(InvalidInput):
        look_up_command("no_such_command")

    del _commands["_test_echo"]
