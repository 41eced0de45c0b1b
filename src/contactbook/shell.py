"""Interactive line-oriented shell over a ContactBook."""

from __future__ import annotations

import logging
import shlex
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from contactbook.errors import ContactBookError
from contactbook.export import export_contacts

if TYPE_CHECKING:
    from contactbook.models import Contact, Meeting
    from contactbook.store import ContactBook

logger = logging.getLogger(__name__)

INPUT_DATE_FORMAT = "%Y-%m-%d %H:%M"

HELP = """\
Commands (quote arguments that contain spaces; dates are "YYYY-MM-DD HH:MM"):
  add NAME NOTES              add a contact
  find [TEXT]                 contacts whose name contains TEXT
  show ID [ID...]             contacts by id
  note CONTACT_ID TEXT        append notes to a contact
  schedule IDS DATE           schedule a future meeting (IDS: 1,2,3)
  record IDS DATE NOTES       record a past meeting
  meeting ID                  show one meeting
  notes MEETING_ID TEXT       add notes to a meeting that has taken place
  future CONTACT_ID           upcoming meetings with a contact
  past CONTACT_ID             past meetings with a contact
  on DATE                     meetings at exactly DATE
  export [DIR]                write Markdown contact cards
  save                        flush to disk
  exit                        save and quit"""


def parse_date(text: str) -> datetime:
    try:
        return datetime.strptime(text, INPUT_DATE_FORMAT)
    except ValueError:
        raise ValueError(f"bad date {text!r}, expected YYYY-MM-DD HH:MM") from None


def parse_ids(text: str) -> list[int]:
    return [int(part) for part in text.split(",") if part.strip()]


def format_contact(contact: Contact) -> str:
    line = f"#{contact.id} {contact.name}"
    if contact.notes:
        line += ": " + contact.notes.replace("\n", " / ")
    return line


def format_meeting(meeting: Meeting) -> str:
    names = ", ".join(c.name for c in sorted(meeting.contacts, key=lambda c: c.id))
    line = f"#{meeting.id} {meeting.date.strftime(INPUT_DATE_FORMAT)} [{meeting.kind}] with {names}"
    if meeting.notes:
        line += "\n  " + meeting.notes.replace("\n", "\n  ")
    return line


class Shell:
    """Parses one command per line and runs it against the book."""

    def __init__(self, book: ContactBook, export_dir: Path | None = None) -> None:
        self.book = book
        self.export_dir = export_dir
        self._commands: dict[str, Callable[[list[str]], str]] = {
            "help": lambda args: HELP,
            "add": self._add,
            "find": self._find,
            "show": self._show,
            "note": self._note,
            "schedule": self._schedule,
            "record": self._record,
            "meeting": self._meeting,
            "notes": self._notes,
            "future": self._future,
            "past": self._past,
            "on": self._on,
            "export": self._export,
            "save": self._save,
        }

    def handle(self, line: str) -> str:
        """Run a single command line and return the text to show."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            return f"error: {e}"
        if not parts:
            return ""
        command = self._commands.get(parts[0].lower())
        if command is None:
            return f"error: unknown command {parts[0]!r} (try 'help')"
        try:
            return command(parts[1:])
        except (ContactBookError, ValueError) as e:
            logger.debug("Command %r failed: %s", parts[0], e)
            return f"error: {e}"

    def run(self) -> None:
        """REPL on stdin/stdout. Flushes the book on exit."""
        print("contactbook (type 'help' for commands, 'exit' to quit)")
        print("-" * 48)
        while True:
            try:
                line = input("\n> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if line.strip().lower() in ("exit", "quit"):
                break
            output = self.handle(line)
            if output:
                print(output)
        if not self.book.flush():
            print("warning: could not save the contact book", file=sys.stderr)
        print("Bye!")

    # ── Commands ──────────────────────────────────────────────

    def _add(self, args: list[str]) -> str:
        _expect(args, 2, "add NAME NOTES")
        contact_id = self.book.add_contact(args[0], args[1])
        return f"added contact #{contact_id}"

    def _find(self, args: list[str]) -> str:
        found = self.book.search_contacts(" ".join(args))
        return _lines(format_contact(c) for c in sorted(found, key=lambda c: c.id))

    def _show(self, args: list[str]) -> str:
        if not args:
            raise ValueError("usage: show ID [ID...]")
        found = self.book.get_contacts(*(int(a) for a in args))
        return _lines(format_contact(c) for c in sorted(found, key=lambda c: c.id))

    def _note(self, args: list[str]) -> str:
        _expect(args, 2, "note CONTACT_ID TEXT")
        return format_contact(self.book.add_contact_notes(int(args[0]), args[1]))

    def _schedule(self, args: list[str]) -> str:
        _expect(args, 2, "schedule IDS DATE")
        meeting_id = self.book.add_future_meeting(parse_ids(args[0]), parse_date(args[1]))
        return f"scheduled meeting #{meeting_id}"

    def _record(self, args: list[str]) -> str:
        _expect(args, 3, "record IDS DATE NOTES")
        meeting_id = self.book.add_past_meeting(
            parse_ids(args[0]), parse_date(args[1]), args[2]
        )
        return f"recorded meeting #{meeting_id}"

    def _meeting(self, args: list[str]) -> str:
        _expect(args, 1, "meeting ID")
        meeting = self.book.get_meeting(int(args[0]))
        return format_meeting(meeting) if meeting else f"no meeting #{args[0]}"

    def _notes(self, args: list[str]) -> str:
        _expect(args, 2, "notes MEETING_ID TEXT")
        return format_meeting(self.book.add_meeting_notes(int(args[0]), args[1]))

    def _future(self, args: list[str]) -> str:
        _expect(args, 1, "future CONTACT_ID")
        return _lines(format_meeting(m) for m in self.book.get_future_meeting_list(int(args[0])))

    def _past(self, args: list[str]) -> str:
        _expect(args, 1, "past CONTACT_ID")
        return _lines(format_meeting(m) for m in self.book.get_past_meeting_list_for(int(args[0])))

    def _on(self, args: list[str]) -> str:
        _expect(args, 1, "on DATE")
        return _lines(format_meeting(m) for m in self.book.get_meeting_list_on(parse_date(args[0])))

    def _export(self, args: list[str]) -> str:
        directory = Path(args[0]) if args else self.export_dir
        if directory is None:
            raise ValueError("usage: export DIR")
        paths = export_contacts(self.book, directory)
        return f"exported {len(paths)} card(s) to {directory}"

    def _save(self, args: list[str]) -> str:
        return "saved" if self.book.flush() else "error: save failed (see log)"


def _expect(args: list[str], count: int, usage: str) -> None:
    if len(args) != count:
        raise ValueError(f"usage: {usage}")


def _lines(items) -> str:
    text = "\n".join(items)
    return text or "(none)"
