from __future__ import annotations


class MarktreeError(Exception):
    """Base class for errors raised by marktree readers and writers."""


class FormatError(MarktreeError, ValueError):
    """Input is not a document of the expected bookmark format."""


class InvalidArgumentError(MarktreeError, TypeError):
    """A required argument was missing (None)."""


def require(value, name: str):
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None")
    return value
