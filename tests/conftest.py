"""Shared fixtures for the invasion tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest

from invasion.core import Event, InvasionEngine
from invasion.mapio import load_map

DATA_DIR = Path(__file__).parent / "data"


class EventLog:
    """Listener that records every engine event."""

    def __init__(self) -> None:
        self.events: List[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list:
        return [e for e in self.events if isinstance(e, kind)]


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def make_engine(event_log: EventLog) -> Callable[..., InvasionEngine]:
    """Build an engine over a world loaded from map lines, in insertion order."""

    def _make(lines: List[str]) -> InvasionEngine:
        return InvasionEngine(load_map(lines), listener=event_log)

    return _make


@pytest.fixture
def two_way_lines() -> List[str]:
    return ["foo north=bar", "bar south=foo"]


@pytest.fixture
def three_city_lines() -> List[str]:
    return ["foo north=bar east=baz", "bar south=foo", "baz west=foo"]
