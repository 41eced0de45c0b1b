"""Contact and meeting entities.

A meeting is a single type tagged with its kind (``"future"`` or ``"past"``).
Only past meetings carry notes. Moving a meeting from future to past builds a
new value (see ``contactbook.timeline``); the kind of an existing value never
changes.

Entities compare by identity. List deduplication uses ``booking_key`` instead,
so two bookings with the same date and participants stay distinct in the store.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Literal

from contactbook.errors import InvalidArgumentError, InvalidStateError, require

MeetingKind = Literal["future", "past"]

# Characters outside the XML 1.0 Char production (control chars, lone surrogates).
_UNSTORABLE = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def check_text(**values: str | None) -> None:
    """Raise InvalidArgumentError if a value holds characters the data file cannot store."""
    for name, value in values.items():
        if value is not None and _UNSTORABLE.search(value):
            raise InvalidArgumentError(f"{name} contains unsupported control characters")


def join_notes(existing: str, addition: str) -> str:
    """Append ``addition`` to ``existing``, newline-separated unless empty."""
    if existing:
        return f"{existing}\n{addition}"
    return addition


@dataclass(eq=False)
class Contact:
    """A named person with free-text notes."""

    id: int
    name: str
    notes: str = ""

    def __post_init__(self) -> None:
        require(id=self.id, name=self.name, notes=self.notes)
        check_text(name=self.name, notes=self.notes)
        if self.id <= 0:
            raise InvalidArgumentError("id must be greater than 0")

    def add_notes(self, note: str) -> None:
        require(note=note)
        check_text(note=note)
        self.notes = join_notes(self.notes, note)


@dataclass(eq=False)
class Meeting:
    """A scheduled (future) or elapsed (past) meeting."""

    id: int
    date: datetime
    contacts: frozenset[Contact]
    kind: MeetingKind = "future"
    notes: str | None = None

    def __post_init__(self) -> None:
        require(id=self.id, date=self.date, contacts=self.contacts)
        if self.id <= 0:
            raise InvalidArgumentError("id must be greater than 0")
        self.contacts = frozenset(self.contacts)
        if not self.contacts:
            raise InvalidArgumentError("contacts must not be empty")
        if self.kind == "past":
            require(notes=self.notes)
            check_text(notes=self.notes)
        elif self.kind == "future":
            self.notes = None
        else:
            raise InvalidArgumentError(f"unknown meeting kind: {self.kind!r}")

    @property
    def is_past(self) -> bool:
        return self.kind == "past"

    @property
    def is_future(self) -> bool:
        return self.kind == "future"

    @property
    def contact_ids(self) -> frozenset[int]:
        return frozenset(c.id for c in self.contacts)

    def add_notes(self, notes: str) -> None:
        """Append notes to a past meeting."""
        require(notes=notes)
        check_text(notes=notes)
        if not self.is_past:
            raise InvalidStateError(f"meeting {self.id} has not taken place yet")
        self.notes = join_notes(self.notes or "", notes)


def future_meeting(id: int, date: datetime, contacts: Iterable[Contact]) -> Meeting:
    require(contacts=contacts)
    return Meeting(id, date, frozenset(contacts), kind="future")


def past_meeting(
    id: int, date: datetime, contacts: Iterable[Contact], notes: str
) -> Meeting:
    require(contacts=contacts, notes=notes)
    return Meeting(id, date, frozenset(contacts), kind="past", notes=notes)


def booking_key(meeting: Meeting) -> tuple[datetime, frozenset[int]]:
    """Value used to collapse duplicate bookings in list queries (id excluded)."""
    return (meeting.date, meeting.contact_ids)
