"""Shared fixtures: a controllable clock and a book bound to it."""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from contactbook.store import ContactBook

NOW = datetime(2026, 10, 18, 12, 0, 0)


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def book(clock: FakeClock) -> ContactBook:
    return ContactBook(clock=clock)


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "contacts.xml"
