"""contactbook — contacts and meetings for a single user.

Layout of the data directory:
    ~/.contactbook/
    ├── contacts.xml          # Full state, rewritten on every flush
    ├── contactbook.toml      # Optional configuration
    └── cards/
        └── people/           # Markdown contact cards (export)
"""

from contactbook.errors import (
    ContactBookError,
    InvalidArgumentError,
    InvalidStateError,
    NullValueError,
    PersistenceError,
)
from contactbook.models import Contact, Meeting, booking_key
from contactbook.store import ContactBook

__all__ = [
    "Contact",
    "ContactBook",
    "ContactBookError",
    "InvalidArgumentError",
    "InvalidStateError",
    "Meeting",
    "NullValueError",
    "PersistenceError",
    "booking_key",
]
