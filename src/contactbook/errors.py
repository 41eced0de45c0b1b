"""Error taxonomy shared by the models, the repository and the codec."""

from __future__ import annotations


class ContactBookError(Exception):
    """Base class for every error raised by contactbook."""


class NullValueError(ContactBookError, TypeError):
    """A required argument was not supplied (``None``)."""


class InvalidArgumentError(ContactBookError, ValueError):
    """A supplied value breaks a domain rule."""


class InvalidStateError(ContactBookError, RuntimeError):
    """A past-only operation was attempted on a meeting still in the future."""


class PersistenceError(ContactBookError):
    """The data file could not be decoded."""


def require(**values: object) -> None:
    """Raise NullValueError naming the first argument that is None."""
    for name, value in values.items():
        if value is None:
            raise NullValueError(f"{name} must not be None")
