"""
Unified hierarchy of error types. These inherit from standard errors like
ValueError, FileNotFoundError, and OSError but are more fine-grained.

Each class has a `kind`, the stable name reported to callers of the command
surface so the presentation layer can show an actionable message.
"""

from typing import Tuple, Type


class StudioError(ValueError):
    """Base class for studio runtime errors."""

    kind = "Error"


class UnexpectedError(StudioError):
    """For unexpected errors or runtime check failures."""

    kind = "UnexpectedError"


class SelfExplanatoryError(StudioError):
    """Common errors that arise from 'normal' problems that are largely self-explanatory,
    i.e., no stack trace should be necessary when reporting to the user."""

    kind = "Error"


class InvalidInput(SelfExplanatoryError):
    """Raised when the wrong kind of input is given to a command."""

    kind = "InvalidInput"


class InvalidName(InvalidInput):
    """Raised when a folder name or slug could point outside the workspace."""

    kind = "InvalidName"


class NameConflict(InvalidInput):
    """Raised when no usable unique identifier could be found for a name."""

    kind = "NameConflict"


class NotFound(InvalidInput, FileNotFoundError):
    """Raised when a referenced project or post does not exist."""

    kind = "NotFound"


class StorageError(SelfExplanatoryError, OSError):
    """
    An I/O failure in the underlying filesystem (permissions, disk full, etc.).
    Always raised from the original `OSError`.
    """

    kind = "StorageError"


class CreateFailed(StorageError):
    kind = "CreateFailed"


class WriteFailed(StorageError):
    kind = "WriteFailed"


class RenameFailed(StorageError):
    kind = "RenameFailed"


class DeleteFailed(StorageError):
    kind = "DeleteFailed"


class ContentError(SelfExplanatoryError):
    """Raised when content is not appropriate for an operation."""

    kind = "ContentError"


class MalformedContent(ContentError):
    """Raised when a frontmatter block or sidecar file can't be parsed."""

    kind = "MalformedContent"


class SetupError(SelfExplanatoryError):
    """Raised when the workspace can't be set up. Needs manual intervention
    (usually checking permissions on the workspace location)."""

    kind = "SetupError"


NONFATAL_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    SelfExplanatoryError,
    FileNotFoundError,
    IOError,
)
"""Exceptions that are not fatal and usually don't merit a full stack trace."""


def is_fatal(exception: Exception) -> bool:
    for e in NONFATAL_EXCEPTIONS:
        if isinstance(exception, e):
            return False
    return True


def error_kind(exception: Exception) -> str:
    """
    The kind name to report for any exception, falling back to the class name for
    errors outside this hierarchy.
    """
    if isinstance(exception, StudioError):
        return exception.kind
    return type(exception).__name__


## Tests


def test_error_kinds():
    assert error_kind(NotFound("missing")) == "NotFound"
    assert error_kind(RenameFailed("busy")) == "RenameFailed"
    assert error_kind(KeyError("x")) == "KeyError"

    assert isinstance(NotFound("x"), FileNotFoundError)
    assert isinstance(WriteFailed("x"), OSError)
    assert isinstance(NameConflict("x"), ValueError)


def test_is_fatal():
    assert not is_fatal(NotFound("x"))
    assert not is_fatal(DeleteFailed("x"))
    assert not is_fatal(PermissionError("x"))
    assert is_fatal(KeyError("x"))
