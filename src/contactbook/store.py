"""ContactBook — the in-memory authority for contacts and meetings.

All state lives on one ContactBook instance: the contact map, the future and
past meeting maps (an id is in exactly one of them) and the id counters.
Reads that depend on the future/past split reclassify elapsed meetings first,
against a clock that is read fresh on every call.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from contactbook import persistence, timeline
from contactbook.errors import InvalidArgumentError, InvalidStateError, require
from contactbook.ids import IdAllocator
from contactbook.models import (
    Contact,
    Meeting,
    booking_key,
    check_text,
    future_meeting,
    past_meeting,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ContactRef = Contact | int


class ContactBook:
    """Contacts and meetings for a single user, optionally backed by a file."""

    def __init__(
        self, data_file: Path | None = None, clock: Clock = datetime.now
    ) -> None:
        self.data_file = data_file
        self._clock = clock
        self._ids = IdAllocator()
        self._contacts: dict[int, Contact] = {}
        self._future: dict[int, Meeting] = {}
        self._past: dict[int, Meeting] = {}
        if data_file is not None:
            self.load()

    # ── Snapshots ─────────────────────────────────────────────

    @property
    def contacts(self) -> list[Contact]:
        return [self._contacts[cid] for cid in sorted(self._contacts)]

    @property
    def future_meetings(self) -> list[Meeting]:
        self._reclassify()
        return [self._future[mid] for mid in sorted(self._future)]

    @property
    def past_meetings(self) -> list[Meeting]:
        self._reclassify()
        return [self._past[mid] for mid in sorted(self._past)]

    @property
    def last_meeting_id(self) -> int:
        """Id of the most recently created meeting, 0 if none."""
        return self._ids.last_meeting_id

    # ── Contacts ──────────────────────────────────────────────

    def add_contact(self, name: str, notes: str) -> int:
        """Create a contact and return its id."""
        require(name=name, notes=notes)
        if not name or not notes:
            raise InvalidArgumentError("name and notes must not be empty")
        check_text(name=name, notes=notes)
        contact = Contact(self._ids.next_contact_id(), name, notes)
        self._contacts[contact.id] = contact
        logger.info("Added contact %d: %s", contact.id, name)
        return contact.id

    def get_contact(self, contact_id: int) -> Contact:
        contact = self._contacts.get(contact_id)
        if contact is None:
            raise InvalidArgumentError(f"unknown contact id {contact_id}")
        return contact

    def add_contact_notes(self, contact_id: int, notes: str) -> Contact:
        require(notes=notes)
        contact = self.get_contact(contact_id)
        contact.add_notes(notes)
        return contact

    def get_contacts(self, *ids: int) -> set[Contact]:
        """Contacts with the given ids. Unknown ids are skipped.

        Raises InvalidArgumentError when no id is given or none matches.
        """
        found = {self._contacts[i] for i in ids if i in self._contacts}
        if not found:
            raise InvalidArgumentError("no ids given or no matching contact")
        return found

    def search_contacts(self, name: str) -> set[Contact]:
        """Contacts whose name contains ``name``, ignoring case. "" matches all."""
        require(name=name)
        needle = name.lower()
        return {c for c in self._contacts.values() if needle in c.name.lower()}

    # ── Meetings: creation ────────────────────────────────────

    def add_future_meeting(self, contacts: Iterable[ContactRef], date: datetime) -> int:
        """Schedule a meeting strictly after now and return its id."""
        require(contacts=contacts, date=date)
        date = _whole_seconds(date)
        participants = self._resolve_participants(contacts)
        if not date > self._clock():
            raise InvalidArgumentError("date must be in the future")
        meeting = future_meeting(self._ids.next_meeting_id(), date, participants)
        self._future[meeting.id] = meeting
        logger.info("Scheduled meeting %d on %s", meeting.id, date)
        return meeting.id

    def add_past_meeting(
        self, contacts: Iterable[ContactRef], date: datetime, notes: str
    ) -> int:
        """Record a meeting held strictly before now and return its id."""
        require(contacts=contacts, date=date, notes=notes)
        check_text(notes=notes)
        date = _whole_seconds(date)
        participants = self._resolve_participants(contacts)
        if not date < self._clock():
            raise InvalidArgumentError("date must be in the past")
        meeting = past_meeting(self._ids.next_meeting_id(), date, participants, notes)
        self._past[meeting.id] = meeting
        logger.info("Recorded past meeting %d on %s", meeting.id, date)
        return meeting.id

    def _resolve_participants(self, refs: Iterable[ContactRef]) -> set[Contact]:
        participants: set[Contact] = set()
        for ref in refs:
            require(contact=ref)
            contact_id = ref.id if isinstance(ref, Contact) else ref
            contact = self._contacts.get(contact_id)
            if contact is None or (isinstance(ref, Contact) and ref is not contact):
                raise InvalidArgumentError(f"unknown contact {contact_id}")
            participants.add(contact)
        if not participants:
            raise InvalidArgumentError("contacts must not be empty")
        return participants

    # ── Meetings: lookup ──────────────────────────────────────

    def get_meeting(self, meeting_id: int) -> Meeting | None:
        self._reclassify()
        return self._future.get(meeting_id) or self._past.get(meeting_id)

    def get_future_meeting(self, meeting_id: int) -> Meeting | None:
        """The future meeting with this id, None if unknown.

        Raises InvalidArgumentError if the id names a past meeting.
        """
        self._reclassify()
        if meeting_id in self._past:
            raise InvalidArgumentError(f"meeting {meeting_id} is in the past")
        return self._future.get(meeting_id)

    def get_past_meeting(self, meeting_id: int) -> Meeting | None:
        """The past meeting with this id, None if unknown.

        Raises InvalidArgumentError if the id names a future meeting.
        """
        self._reclassify()
        if meeting_id in self._future:
            raise InvalidArgumentError(f"meeting {meeting_id} is in the future")
        return self._past.get(meeting_id)

    def add_meeting_notes(self, meeting_id: int, notes: str) -> Meeting:
        """Attach notes to a meeting that has taken place.

        A future meeting whose date has elapsed becomes a past meeting carrying
        ``notes`` under the same id.
        """
        require(notes=notes)
        check_text(notes=notes)
        meeting = self._past.get(meeting_id)
        if meeting is not None:
            meeting.add_notes(notes)
            return meeting

        meeting = self._future.get(meeting_id)
        if meeting is None:
            raise InvalidArgumentError(f"unknown meeting id {meeting_id}")
        if timeline.classify(meeting, self._clock()) == "future":
            raise InvalidStateError(f"meeting {meeting_id} has not taken place yet")

        del self._future[meeting_id]
        converted = timeline.to_past(meeting, notes)
        self._past[meeting_id] = converted
        logger.info("Meeting %d converted to past with notes", meeting_id)
        return converted

    # ── Meetings: lists ───────────────────────────────────────

    def get_future_meeting_list(self, contact: ContactRef) -> list[Meeting]:
        """Future meetings with ``contact``, by date, duplicate bookings collapsed."""
        target = self._known_contact(contact)
        self._reclassify()
        return _by_date_unique(self._future.values(), target)

    def get_past_meeting_list_for(self, contact: ContactRef) -> list[Meeting]:
        """Past meetings with ``contact``, by date, duplicate bookings collapsed."""
        target = self._known_contact(contact)
        self._reclassify()
        return _by_date_unique(self._past.values(), target)

    def get_meeting_list_on(self, date: datetime) -> list[Meeting]:
        """Meetings at exactly ``date``, ordered by id.

        Past meetings are searched when ``date`` is before now, future ones
        otherwise.
        """
        require(date=date)
        self._reclassify()
        source = self._past if date < self._clock() else self._future
        return [source[mid] for mid in sorted(source) if source[mid].date == date]

    def _known_contact(self, ref: ContactRef) -> Contact:
        require(contact=ref)
        contact_id = ref.id if isinstance(ref, Contact) else ref
        contact = self._contacts.get(contact_id)
        if contact is None:
            raise InvalidArgumentError(f"unknown contact {contact_id}")
        return contact

    def _reclassify(self) -> None:
        timeline.reclassify(self._future, self._past, self._clock())

    # ── Persistence ───────────────────────────────────────────

    def flush(self) -> bool:
        """Write all data to ``data_file``. Failures are logged, never raised."""
        if self.data_file is None:
            logger.warning("No data file configured; nothing flushed")
            return False
        self._reclassify()
        state = persistence.BookState(
            contacts=self._contacts, future=self._future, past=self._past
        )
        # Written beside the target and renamed over it, so a failed save
        # leaves the previous file intact.
        staging = self.data_file.with_name(self.data_file.name + ".tmp")
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with staging.open("wb") as fp:
                persistence.dump(state, fp)
            staging.replace(self.data_file)
        except Exception:
            staging.unlink(missing_ok=True)
            logger.warning("Failed to flush contact book to %s", self.data_file, exc_info=True)
            return False
        logger.info(
            "Flushed %d contact(s) and %d meeting(s) to %s",
            len(self._contacts),
            len(self._future) + len(self._past),
            self.data_file,
        )
        return True

    def load(self) -> bool:
        """Replace in-memory state with ``data_file``'s content.

        Returns False, leaving state untouched, if the file is missing or
        unreadable.
        """
        if self.data_file is None or not self.data_file.exists():
            logger.info("No data file at %s; starting empty", self.data_file)
            return False
        try:
            with self.data_file.open("rb") as fp:
                state = persistence.parse(fp, self._clock())
        except Exception:
            logger.warning("Failed to load contact book from %s", self.data_file, exc_info=True)
            return False

        self._contacts = state.contacts
        self._future = state.future
        self._past = state.past
        self._ids.observe_contact_id(state.max_contact_id)
        self._ids.observe_meeting_id(state.max_meeting_id)
        logger.info(
            "Loaded %d contact(s), %d future and %d past meeting(s) from %s",
            len(self._contacts),
            len(self._future),
            len(self._past),
            self.data_file,
        )
        return True


def _whole_seconds(date: datetime) -> datetime:
    """Dates are kept at the precision the data file stores."""
    return date.replace(microsecond=0)


def _by_date_unique(meetings: Iterable[Meeting], contact: Contact) -> list[Meeting]:
    """Meetings with ``contact`` sorted by (date, id), one per booking key."""
    seen: set[tuple] = set()
    result: list[Meeting] = []
    for meeting in sorted(meetings, key=lambda m: (m.date, m.id)):
        if contact not in meeting.contacts:
            continue
        key = booking_key(meeting)
        if key in seen:
            continue
        seen.add(key)
        result.append(meeting)
    return result
