"""Tests for Markdown contact-card export."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import frontmatter
import pytest

from contactbook.export import _slugify, export_contacts
from contactbook.store import ContactBook

from conftest import NOW


@pytest.fixture
def filled(book: ContactBook) -> ContactBook:
    alice = book.add_contact("Alice Chen", "CV expert")
    bob = book.add_contact("Bob", "Backend dev")
    book.add_past_meeting([alice, bob], NOW - timedelta(days=3), "kickoff\nagreed scope")
    book.add_future_meeting([alice], NOW + timedelta(days=2))
    return book


class TestExport:
    def test_one_card_per_contact(self, filled: ContactBook, tmp_path: Path):
        paths = export_contacts(filled, tmp_path)
        assert [p.name for p in paths] == ["Alice-Chen.md", "Bob.md"]
        assert all(p.parent == tmp_path / "people" for p in paths)

    def test_frontmatter(self, filled: ContactBook, tmp_path: Path):
        alice_card, bob_card = export_contacts(filled, tmp_path)
        post = frontmatter.load(str(alice_card))
        assert post["type"] == "person"
        assert post["id"] == 1
        assert post["name"] == "Alice Chen"
        assert post["meetings"] == [1, 2]
        assert frontmatter.load(str(bob_card))["meetings"] == [1]

    def test_body(self, filled: ContactBook, tmp_path: Path):
        alice_card = export_contacts(filled, tmp_path)[0]
        body = frontmatter.load(str(alice_card)).content
        assert "# Alice Chen" in body
        assert "CV expert" in body
        assert "## Upcoming" in body
        assert "## History" in body
        assert "  agreed scope" in body

    def test_reexport_overwrites(self, filled: ContactBook, tmp_path: Path):
        export_contacts(filled, tmp_path)
        filled.add_contact_notes(1, "moved to Paris")
        export_contacts(filled, tmp_path)
        cards = sorted((tmp_path / "people").glob("*.md"))
        assert [c.name for c in cards] == ["Alice-Chen.md", "Bob.md"]
        assert "moved to Paris" in cards[0].read_text(encoding="utf-8")

    def test_name_collision(self, book: ContactBook, tmp_path: Path):
        book.add_contact("Sam", "one")
        book.add_contact("Sam", "two")
        paths = export_contacts(book, tmp_path)
        assert [p.name for p in paths] == ["Sam.md", "Sam-2.md"]
        assert frontmatter.load(str(paths[1]))["id"] == 2


    def test_reexport_name_with_brackets(self, book: ContactBook, tmp_path: Path):
        book.add_contact("Ann [CEO]", "board")
        first = export_contacts(book, tmp_path)
        second = export_contacts(book, tmp_path)
        assert first == second
        assert [p.name for p in (tmp_path / "people").glob("*.md")] == ["Ann-[CEO].md"]


class TestSlugify:
    def test_spaces(self):
        assert _slugify("Alice Chen") == "Alice-Chen"

    def test_special_chars(self):
        assert _slugify('foo<>:"/\\|?*bar') == "foobar"

    def test_empty(self):
        assert _slugify("") == "unnamed"
