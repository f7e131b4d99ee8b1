from typing import AbstractSet, Optional

from studio.errors import NameConflict

DEFAULT_TEMPLATE = "{name}-{suffix}"


def uniquify(
    name: str,
    existing: AbstractSet[str],
    max_tries: Optional[int] = None,
    template: str = DEFAULT_TEMPLATE,
) -> str:
    """
    Return a name that is the same as the input whenever possible, or with a numeric suffix
    (`name-1`, `name-2`, ...) added to ensure it is not among the existing names.

    Only `max_tries` suffixes are tried. The default of `len(existing) + 1` always finds a
    free name, since at most `len(existing)` of the candidates can be taken. Raises
    `NameConflict` if the tries run out.
    """
    if "{name}" not in template or "{suffix}" not in template:
        raise ValueError(f"Template must contain placeholders for name and suffix: {template}")

    if name not in existing:
        return name

    if max_tries is None:
        max_tries = len(existing) + 1

    for suffix in range(1, max_tries + 1):
        candidate = template.format(name=name, suffix=suffix)
        if candidate not in existing:
            return candidate

    raise NameConflict(f"Could not find a unique name for `{name}` after {max_tries} tries")


## Tests


def test_uniquify():
    import pytest

    assert uniquify("foo", set()) == "foo"
    assert uniquify("foo", {"bar"}) == "foo"
    assert uniquify("foo", {"foo"}) == "foo-1"
    assert uniquify("foo", {"foo", "foo-1", "foo-2"}) == "foo-3"
    # Gaps are filled first.
    assert uniquify("foo", {"foo", "foo-2"}) == "foo-1"

    assert uniquify("foo", {"foo"}, template="{name}_{suffix}") == "foo_1"

    with pytest.raises(NameConflict):
        uniquify("foo", {"foo", "foo-1", "foo-2"}, max_tries=2)

    with pytest.raises(ValueError):
        uniquify("foo", {"foo"}, template="{name}")


def test_uniquify_never_returns_existing():
    # Worst case: every candidate the default search could try is taken but one.
    existing = {"a"} | {f"a-{i}" for i in range(1, 50)} | {f"x-{i}" for i in range(50)}
    result = uniquify("a", existing)
    assert result not in existing
    assert result == "a-50"
