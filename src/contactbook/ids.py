"""Monotonic id counters for contacts and meetings."""

from __future__ import annotations


class IdAllocator:
    """Issues contact and meeting ids. Counters start at 1 and never go back."""

    def __init__(self) -> None:
        self._next_contact_id = 1
        self._next_meeting_id = 1

    def next_contact_id(self) -> int:
        issued = self._next_contact_id
        self._next_contact_id += 1
        return issued

    def next_meeting_id(self) -> int:
        issued = self._next_meeting_id
        self._next_meeting_id += 1
        return issued

    @property
    def last_contact_id(self) -> int:
        """Most recently issued contact id, 0 if none."""
        return self._next_contact_id - 1

    @property
    def last_meeting_id(self) -> int:
        """Most recently issued meeting id, 0 if none."""
        return self._next_meeting_id - 1

    def observe_contact_id(self, seen: int) -> None:
        """Make sure ``seen`` is never issued again."""
        self._next_contact_id = max(self._next_contact_id, seen + 1)

    def observe_meeting_id(self, seen: int) -> None:
        self._next_meeting_id = max(self._next_meeting_id, seen + 1)
