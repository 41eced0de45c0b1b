"""Future/past classification of meetings against the wall clock."""

from __future__ import annotations

import logging
from datetime import datetime

from contactbook.models import Meeting, MeetingKind, past_meeting

logger = logging.getLogger(__name__)


def classify(meeting: Meeting, now: datetime) -> MeetingKind:
    """A meeting is future only while its date is strictly after ``now``."""
    return "future" if meeting.date > now else "past"


def to_past(meeting: Meeting, notes: str = "") -> Meeting:
    """Build the past counterpart of a future meeting (same id and contacts)."""
    return past_meeting(meeting.id, meeting.date, meeting.contacts, notes)


def reclassify(
    future: dict[int, Meeting], past: dict[int, Meeting], now: datetime
) -> list[int]:
    """Move every elapsed meeting from ``future`` to ``past``. Returns moved ids."""
    moved = [mid for mid, m in future.items() if classify(m, now) == "past"]
    for mid in moved:
        past[mid] = to_past(future.pop(mid))
    if moved:
        logger.debug("Reclassified %d meeting(s) as past: %s", len(moved), moved)
    return moved
