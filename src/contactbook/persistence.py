"""XML codec for the full contact book state.

Document layout:

    <ContactManager>
      <Contacts>
        <Contact id="1"><Name>..</Name><Notes>..</Notes></Contact>
      </Contacts>
      <Meetings>
        <Meeting id="1">
          <Date>31-12-2026 09:30:00</Date>
          <Notes>..</Notes>              (past meetings only)
          <Contacts><Id>1</Id>..</Contacts>
        </Meeting>
      </Meetings>
    </ContactManager>

The document carries no future/past flag: a meeting is classified by comparing
its date with the clock at load time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import IO
from xml.etree import ElementTree
from xml.sax.saxutils import XMLGenerator, escape

from contactbook.errors import PersistenceError
from contactbook.models import Contact, Meeting, check_text, future_meeting, past_meeting

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d-%m-%Y %H:%M:%S"
ROOT_TAG = "ContactManager"


@dataclass
class BookState:
    """Everything the codec reads or writes."""

    contacts: dict[int, Contact] = field(default_factory=dict)
    future: dict[int, Meeting] = field(default_factory=dict)
    past: dict[int, Meeting] = field(default_factory=dict)
    max_contact_id: int = 0
    max_meeting_id: int = 0


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(text: str) -> datetime | None:
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError:
        return None


# ── Writing ───────────────────────────────────────────────


class _IndentingWriter:
    """Thin wrapper over XMLGenerator that indents container elements."""

    def __init__(self, fp: IO[bytes]) -> None:
        self._xml = XMLGenerator(fp, encoding="utf-8", short_empty_elements=False)
        self._depth = 0

    def document(self) -> None:
        self._xml.startDocument()

    def finish(self) -> None:
        self._xml.ignorableWhitespace("\n")
        self._xml.endDocument()

    def start(self, tag: str, attrs: dict[str, str] | None = None) -> None:
        self._indent()
        self._xml.startElement(tag, attrs or {})
        self._depth += 1

    def end(self, tag: str) -> None:
        self._depth -= 1
        self._indent()
        self._xml.endElement(tag)

    def leaf(self, tag: str, text: str) -> None:
        try:
            check_text(**{tag: text})
        except ValueError as e:
            raise PersistenceError(str(e)) from e
        self._indent()
        self._xml.startElement(tag, {})
        # Raw write so the &#13; reference survives; parsers fold a literal \r into \n.
        self._xml.ignorableWhitespace(escape(text, {"\r": "&#13;"}))
        self._xml.endElement(tag)

    def _indent(self) -> None:
        if self._depth:
            self._xml.ignorableWhitespace("\n" + "  " * self._depth)


def dump(state: BookState, fp: IO[bytes]) -> None:
    """Write ``state`` to a binary file object."""
    writer = _IndentingWriter(fp)
    writer.document()
    writer.start(ROOT_TAG)

    writer.start("Contacts")
    for contact in sorted(state.contacts.values(), key=lambda c: c.id):
        writer.start("Contact", {"id": str(contact.id)})
        writer.leaf("Name", contact.name)
        writer.leaf("Notes", contact.notes)
        writer.end("Contact")
    writer.end("Contacts")

    writer.start("Meetings")
    for meeting in sorted(state.past.values(), key=lambda m: m.id):
        _dump_meeting(writer, meeting)
    for meeting in sorted(state.future.values(), key=lambda m: m.id):
        _dump_meeting(writer, meeting)
    writer.end("Meetings")

    writer.end(ROOT_TAG)
    writer.finish()


def _dump_meeting(writer: _IndentingWriter, meeting: Meeting) -> None:
    writer.start("Meeting", {"id": str(meeting.id)})
    writer.leaf("Date", format_date(meeting.date))
    if meeting.is_past:
        writer.leaf("Notes", meeting.notes or "")
    writer.start("Contacts")
    for contact_id in sorted(meeting.contact_ids):
        writer.leaf("Id", str(contact_id))
    writer.end("Contacts")
    writer.end("Meeting")


# ── Reading ───────────────────────────────────────────────


def parse(fp: IO[bytes], now: datetime) -> BookState:
    """Rebuild state from a file object, classifying meetings against ``now``.

    Malformed entries are skipped. Raises PersistenceError if the document
    itself cannot be read.
    """
    try:
        root = ElementTree.parse(fp).getroot()
    except ElementTree.ParseError as e:
        raise PersistenceError(f"malformed document: {e}") from e
    if root.tag != ROOT_TAG:
        raise PersistenceError(f"unexpected root element <{root.tag}>")

    state = BookState()
    contacts_elem = root.find("Contacts")
    if contacts_elem is not None:
        for elem in contacts_elem.findall("Contact"):
            _load_contact(state, elem)

    meetings_elem = root.find("Meetings")
    if meetings_elem is not None:
        for elem in meetings_elem.findall("Meeting"):
            _load_meeting(state, elem, now)

    logger.debug(
        "Parsed %d contact(s), %d future and %d past meeting(s)",
        len(state.contacts),
        len(state.future),
        len(state.past),
    )
    return state


def _parse_id(value: str | None) -> int | None:
    try:
        parsed = int((value or "").strip())
    except ValueError:
        return None
    return parsed if parsed > 0 else None


def _child_text(elem: ElementTree.Element, tag: str) -> str | None:
    """Text of the first ``tag`` child, "" if empty, None if absent."""
    child = elem.find(tag)
    if child is None:
        return None
    return child.text or ""


def _load_contact(state: BookState, elem: ElementTree.Element) -> None:
    contact_id = _parse_id(elem.get("id"))
    if contact_id is None:
        logger.debug("Skipping contact with bad id %r", elem.get("id"))
        return
    state.max_contact_id = max(state.max_contact_id, contact_id)

    name = _child_text(elem, "Name")
    if not name:
        logger.debug("Skipping contact %d: no name", contact_id)
        return
    if contact_id in state.contacts:
        logger.debug("Skipping duplicate contact %d", contact_id)
        return
    notes = _child_text(elem, "Notes") or ""
    state.contacts[contact_id] = Contact(contact_id, name, notes)


def _load_meeting(state: BookState, elem: ElementTree.Element, now: datetime) -> None:
    meeting_id = _parse_id(elem.get("id"))
    if meeting_id is None:
        logger.debug("Skipping meeting with bad id %r", elem.get("id"))
        return
    state.max_meeting_id = max(state.max_meeting_id, meeting_id)

    if meeting_id in state.future or meeting_id in state.past:
        logger.debug("Skipping duplicate meeting %d", meeting_id)
        return

    date_text = _child_text(elem, "Date")
    date = parse_date(date_text) if date_text is not None else None
    if date is None:
        logger.debug("Skipping meeting %d: missing or bad date", meeting_id)
        return

    participants: set[Contact] = set()
    contacts_elem = elem.find("Contacts")
    if contacts_elem is not None:
        for id_elem in contacts_elem.findall("Id"):
            contact = state.contacts.get(_parse_id(id_elem.text) or 0)
            if contact is not None:
                participants.add(contact)
    if not participants:
        logger.debug("Skipping meeting %d: no known participants", meeting_id)
        return

    if date > now:
        state.future[meeting_id] = future_meeting(meeting_id, date, participants)
    else:
        notes = _child_text(elem, "Notes") or ""
        state.past[meeting_id] = past_meeting(meeting_id, date, participants, notes)
