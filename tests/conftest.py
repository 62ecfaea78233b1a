"""
Shared fixtures: in-memory provider, transport and SportScore-shaped events.
"""
import asyncio
import json
import time
from typing import Any, Dict, List, Optional

import pytest

from app.live_match import SessionManager
from config.settings import Settings


class FakeProvider:
    """Match data provider backed by dicts, recording every call."""

    def __init__(self, events: Optional[List[Dict[str, Any]]] = None):
        self.events = events or []
        self.details: Dict[str, Optional[Dict[str, Any]]] = {}
        self.list_calls = 0
        self.detail_calls: List[str] = []

    async def list_live_events(self) -> List[Dict[str, Any]]:
        self.list_calls += 1
        return list(self.events)

    async def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        self.detail_calls.append(event_id)
        return self.details.get(event_id)


class FakeTransport:
    """Collects sent frames as decoded JSON."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.closed = False

    async def send_text(self, data: str) -> None:
        if self.closed:
            raise RuntimeError("Cannot send on a closed connection")
        self.sent.append(json.loads(data))

    def types(self) -> List[str]:
        return [m["type"] for m in self.sent]

    def last(self) -> Dict[str, Any]:
        return self.sent[-1]

    def clear(self) -> None:
        self.sent.clear()


def run(coro):
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


async def wait_for(predicate, timeout: float = 2.0, step: float = 0.01) -> bool:
    """Poll predicate until true or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(step)
    return predicate()


def build_event(
    event_id: Any = 123,
    home: str = "Carlos Alcaraz",
    away: str = "Jannik Sinner",
    points: tuple = ("15", "30"),
    games: tuple = (3, 2),
    sets: tuple = (1, 0),
    status: str = "inprogress",
) -> Dict[str, Any]:
    """SportScore-shaped event JSON."""
    return {
        "id": event_id,
        "status": status,
        "home_team": {"name": home, "name_short": home.split()[-1]},
        "away_team": {"name": away, "name_short": away.split()[-1]},
        "tournament": {"name": "ATP Finals", "slug": "atp-finals"},
        "home_score": {"current": sets[0], "display": games[0], "point": points[0]},
        "away_score": {"current": sets[1], "display": games[1], "point": points[1]},
    }


@pytest.fixture
def test_settings():
    """Settings with fast polling and known credentials."""
    return Settings(
        auth_username="admin",
        auth_password="password",
        poll_interval_seconds=0.02,
        poll_failure_alert_threshold=3,
        rapidapi_key="test-key",
    )


@pytest.fixture
def provider():
    """Provider with one live match (id 123)."""
    fake = FakeProvider(events=[build_event(123), build_event(456, home="Iga Swiatek", away="Coco Gauff")])
    fake.details["123"] = build_event(123)
    fake.details["456"] = build_event(456, home="Iga Swiatek", away="Coco Gauff")
    return fake


@pytest.fixture
def manager_factory(provider, test_settings):
    """Build a SessionManager; must be called inside a running loop test."""
    def _build(**overrides) -> SessionManager:
        config = test_settings.model_copy(update=overrides) if overrides else test_settings
        return SessionManager(provider=provider, config=config)
    return _build
