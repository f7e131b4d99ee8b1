from typing import Any, List, Optional

from studio.errors import InvalidInput


def check_str(value: Any, what: str) -> str:
    """
    Fluent check that an argument from a caller is a string.
    """
    if not isinstance(value, str):
        raise InvalidInput(f"Expected text for {what}, got {type(value).__name__}: {value!r}")
    return value


def check_optional_str(value: Any, what: str) -> Optional[str]:
    return None if value is None else check_str(value, what)


def check_str_list(value: Any, what: str) -> List[str]:
    """
    Fluent check that an argument is a list of strings. A single string is not accepted,
    since it would otherwise be read as a list of characters.
    """
    if not isinstance(value, list):
        raise InvalidInput(f"Expected a list for {what}, got {type(value).__name__}: {value!r}")
    return [check_str(item, f"items of {what}") for item in value]


## Tests


def test_checks():
    import pytest

    assert check_str("x", "title") == "x"
    assert check_optional_str(None, "title") is None
    assert check_str_list(["a", "b"], "recipe") == ["a", "b"]

    for bad in (None, 5, ["x"]):
        with pytest.raises(InvalidInput):
            check_str(bad, "title")
    for bad in ("abc", ("a",), ["a", 1]):
        with pytest.raises(InvalidInput):
            check_str_list(bad, "recipe")
