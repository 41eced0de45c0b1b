"""Markdown contact cards with YAML frontmatter.

Each contact becomes ``<directory>/people/<slug>.md``. The frontmatter carries
the structured fields (id, name, meeting ids); the body holds the contact notes
and the notes of every past meeting the contact attended. Re-exporting a
contact rewrites its existing card, matched by the ``id`` field.
"""

from __future__ import annotations

import glob
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import frontmatter

if TYPE_CHECKING:
    from contactbook.models import Contact, Meeting
    from contactbook.store import ContactBook

logger = logging.getLogger(__name__)

_CARD_DIR = "people"


def export_contacts(book: ContactBook, directory: Path) -> list[Path]:
    """Write one card per contact. Returns the written paths, in contact id order."""
    card_dir = directory / _CARD_DIR
    card_dir.mkdir(parents=True, exist_ok=True)
    future = book.future_meetings
    past = book.past_meetings

    written: list[Path] = []
    for contact in book.contacts:
        attended_future = [m for m in future if contact in m.contacts]
        attended_past = [m for m in past if contact in m.contacts]
        path = _resolve_path(contact, card_dir)
        path.write_text(
            render_card(contact, attended_future, attended_past), encoding="utf-8"
        )
        written.append(path)
    logger.info("Exported %d contact card(s) to %s", len(written), card_dir)
    return written


def render_card(contact: Contact, future: list[Meeting], past: list[Meeting]) -> str:
    """Render a contact card as Markdown with frontmatter."""
    lines = [f"# {contact.name}", "", "## Notes", contact.notes or "(none)"]
    if future:
        lines += ["", "## Upcoming"]
        lines += [f"- [{_stamp(m.date)}] meeting {m.id}" for m in future]
    if past:
        lines += ["", "## History"]
        for m in past:
            lines.append(f"- [{_stamp(m.date)}] meeting {m.id}")
            lines += [f"  {line}" for line in (m.notes or "").splitlines()]

    post = frontmatter.Post(
        "\n".join(lines) + "\n",
        type="person",
        id=contact.id,
        name=contact.name,
        meetings=sorted(m.id for m in future + past),
        exported=datetime.now().isoformat(timespec="seconds"),
    )
    return frontmatter.dumps(post) + "\n"


def _stamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def _slugify(name: str) -> str:
    """Minimal slug: strip illegal chars, spaces to hyphens, keep CJK."""
    slug = re.sub(r'[<>:"/\\|?*\n\r\t]', "", name)
    slug = slug.strip().replace(" ", "-")
    return slug or "unnamed"


def _card_id(path: Path) -> int | None:
    try:
        return frontmatter.load(str(path)).metadata.get("id")
    except Exception:
        return None


def _resolve_path(contact: Contact, card_dir: Path) -> Path:
    """Existing card for this contact id, else a fresh slug path."""
    slug = _slugify(contact.name)
    for existing in card_dir.glob(f"{glob.escape(slug)}*.md"):
        if _card_id(existing) == contact.id:
            return existing

    path = card_dir / f"{slug}.md"
    counter = 2
    while path.exists():
        path = card_dir / f"{slug}-{counter}.md"
        counter += 1
    return path
