"""
Tests for the connection session state machine and message dispatch.

Each scenario drives a SessionManager with an in-memory transport and
provider, so no network or server is involved.
"""
import json

import pytest

from app.live_match.handlers import parse_message
from app.live_match.errors import MalformedMessageError

from conftest import FakeTransport, build_event, run, wait_for

AUTH = {"type": "authenticate", "username": "admin", "password": "password"}


async def _send(manager, session, message) -> None:
    raw = message if isinstance(message, str) else json.dumps(message)
    await manager.handle_message(session, raw)


async def _connect(manager, authenticate: bool = False):
    transport = FakeTransport()
    session = await manager.connect(transport)
    if authenticate:
        await _send(manager, session, AUTH)
    transport.clear()
    return session, transport


# =============================================================================
# Connection & parsing
# =============================================================================

def test_connect_sends_welcome(manager_factory):
    async def scenario():
        manager = manager_factory()
        transport = FakeTransport()
        session = await manager.connect(transport)
        assert transport.sent == [{"type": "connection", "message": "Connected to Tennis Clicker server"}]
        assert session.authenticated is False
        assert session.subscribed_match_id is None
        assert manager.sessions == [session]

    run(scenario())


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", "42", '{"no_type": true}', '{"type": 5}', '{"type": null}'])
def test_malformed_messages_get_invalid_format(manager_factory, raw):
    """Bad frames are answered, and the session keeps working"""
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager)

        await _send(manager, session, raw)
        assert transport.sent == [{"type": "error", "message": "Invalid message format"}]

        await _send(manager, session, AUTH)
        assert transport.last()["type"] == "auth_success"

    run(scenario())


def test_unknown_type_is_named(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager)
        await _send(manager, session, {"type": "dance"})
        assert transport.sent == [{"type": "error", "message": "Unknown message type: dance"}]

    run(scenario())


def test_parse_message_rejects_non_objects():
    with pytest.raises(MalformedMessageError):
        parse_message('"authenticate"')
    assert parse_message('{"type": "refresh", "extra": 1}')["extra"] == 1


# =============================================================================
# Authentication
# =============================================================================

def test_authenticate_success_is_idempotent(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager)

        await _send(manager, session, AUTH)
        await _send(manager, session, AUTH)

        assert transport.types() == ["auth_success", "auth_success"]
        assert transport.last()["message"] == "Authentication successful"
        assert session.authenticated is True

    run(scenario())


@pytest.mark.parametrize("username,password", [
    ("admin", "wrong"),
    ("root", "password"),
    ("", ""),
    (None, None),
    ("Admin", "password"),
    (123, "password"),
    ("admin", 12345),
    (["admin"], "password"),
])
def test_authenticate_failure_never_authenticates(manager_factory, username, password):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager)

        message = {"type": "authenticate"}
        if username is not None:
            message.update(username=username, password=password)
        await _send(manager, session, message)

        assert transport.sent == [{"type": "auth_failed", "message": "Invalid credentials"}]
        assert session.authenticated is False

        # Retrying with the right credentials still works
        await _send(manager, session, AUTH)
        assert transport.last()["type"] == "auth_success"

    run(scenario())


@pytest.mark.parametrize("message", [
    {"type": "get_matches"},
    {"type": "subscribe", "eventId": "123"},
    {"type": "unsubscribe"},
    {"type": "refresh"},
])
def test_protected_operations_require_auth(manager_factory, provider, message):
    """Nothing happens before authentication, not even a provider call"""
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager)

        await _send(manager, session, message)

        assert transport.sent == [{"type": "error", "message": "Not authenticated"}]
        assert len(manager.registry) == 0
        assert len(manager.scheduler) == 0
        assert session.subscribed_match_id is None

    run(scenario())
    assert provider.list_calls == 0
    assert provider.detail_calls == []


# =============================================================================
# Match list
# =============================================================================

def test_get_matches_returns_summaries(manager_factory, provider):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "get_matches"})
        return transport.last()

    reply = run(scenario())

    assert reply["type"] == "matches_list"
    assert reply["count"] == 2
    assert [m["id"] for m in reply["data"]] == ["123", "456"]
    assert reply["data"][1]["name"] == "Iga Swiatek vs Coco Gauff"
    assert provider.list_calls == 1


def test_get_matches_empty_when_provider_fails(manager_factory, provider):
    provider.events = []

    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "get_matches"})
        return transport.last()

    assert run(scenario()) == {"type": "matches_list", "data": [], "count": 0}


# =============================================================================
# Subscribe / unsubscribe
# =============================================================================

@pytest.mark.parametrize("message", [
    {"type": "subscribe"},
    {"type": "subscribe", "eventId": ""},
    {"type": "subscribe", "eventId": "   "},
    {"type": "subscribe", "eventId": None},
    {"type": "subscribe", "eventId": True},
    {"type": "subscribe", "eventId": False},
    {"type": "subscribe", "eventId": 0},
    {"type": "subscribe", "eventId": ["123"]},
])
def test_subscribe_requires_event_id(manager_factory, message):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, message)

        assert transport.sent == [{"type": "error", "message": "Event ID required"}]
        assert len(manager.registry) == 0
        assert len(manager.scheduler) == 0

    run(scenario())


def test_subscribe_registers_and_starts_polling(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)

        await _send(manager, session, {"type": "subscribe", "eventId": "123"})

        assert transport.sent[0] == {"type": "subscribed", "eventId": "123", "message": "Subscribed to match 123"}
        assert session.subscribed_match_id == "123"
        assert manager.registry.subscribers("123") == [session]
        assert manager.scheduler.is_monitoring("123")

        assert await wait_for(lambda: "match_update" in transport.types())
        update = next(m for m in transport.sent if m["type"] == "match_update")
        assert update["data"]["id"] == "123"

        await manager.shutdown()

    run(scenario())


def test_numeric_event_id_is_used_as_string(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "subscribe", "eventId": 123})

        assert transport.sent[0]["eventId"] == "123"
        assert manager.scheduler.is_monitoring("123")
        await manager.shutdown()

    run(scenario())


def test_subscribe_then_unsubscribe_leaves_nothing(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)

        await _send(manager, session, {"type": "subscribe", "eventId": "123"})
        await _send(manager, session, {"type": "unsubscribe"})

        assert transport.types() == ["subscribed", "unsubscribed"]
        assert transport.last()["message"] == "Unsubscribed from match"
        assert "123" not in manager.registry
        assert not manager.scheduler.is_monitoring("123")
        assert session.subscribed_match_id is None

        # Second unsubscribe is silent
        await _send(manager, session, {"type": "unsubscribe"})
        assert transport.types() == ["subscribed", "unsubscribed"]

    run(scenario())


def test_switching_subscription_stops_previous(manager_factory):
    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        session, transport = await _connect(manager, authenticate=True)

        await _send(manager, session, {"type": "subscribe", "eventId": "123"})
        await _send(manager, session, {"type": "subscribe", "eventId": "456"})

        assert "123" not in manager.registry
        assert not manager.scheduler.is_monitoring("123")
        assert manager.registry.subscribers("456") == [session]
        assert manager.scheduler.monitored_ids() == ["456"]
        assert session.subscribed_match_id == "456"
        await manager.shutdown()

    run(scenario())


def test_resubscribing_same_match_keeps_single_poller(manager_factory):
    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        session, transport = await _connect(manager, authenticate=True)

        await _send(manager, session, {"type": "subscribe", "eventId": "123"})
        await _send(manager, session, {"type": "subscribe", "eventId": "123"})

        assert manager.scheduler.monitored_ids() == ["123"]
        assert manager.registry.subscribers("123") == [session]
        await manager.shutdown()

    run(scenario())


def test_two_sessions_share_one_poller(manager_factory):
    """A second subscriber joins instead of displacing the first"""
    async def scenario():
        manager = manager_factory(poll_interval_seconds=0.01)
        first, first_transport = await _connect(manager, authenticate=True)
        second, second_transport = await _connect(manager, authenticate=True)

        await _send(manager, first, {"type": "subscribe", "eventId": "123"})
        await _send(manager, second, {"type": "subscribe", "eventId": "123"})
        assert len(manager.scheduler) == 1

        assert await wait_for(lambda: "match_update" in first_transport.types()
                              and "match_update" in second_transport.types())

        # First leaves: second keeps receiving
        await _send(manager, first, {"type": "unsubscribe"})
        assert manager.scheduler.is_monitoring("123")
        assert manager.registry.subscribers("123") == [second]

        manager.disconnect(second)
        assert not manager.scheduler.is_monitoring("123")
        assert "123" not in manager.registry

    run(scenario())


# =============================================================================
# Refresh
# =============================================================================

def test_refresh_without_subscription(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "refresh"})
        assert transport.sent == [{"type": "error", "message": "No match subscribed"}]

    run(scenario())


def test_refresh_pushes_update_and_info(manager_factory, provider):
    provider.details["123"] = build_event(123, points=("40", "15"))

    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "subscribe", "eventId": "123"})
        transport.clear()

        await _send(manager, session, {"type": "refresh"})
        await manager.shutdown()
        return transport.sent

    sent = run(scenario())

    assert [m["type"] for m in sent] == ["match_update", "info"]
    assert sent[0]["data"]["points"] == {"home": "40", "away": "15"}
    assert "refreshed" in sent[1]["message"]


def test_refresh_upstream_failure(manager_factory, provider):
    provider.details["123"] = None

    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "subscribe", "eventId": "123"})
        transport.clear()

        await _send(manager, session, {"type": "refresh"})
        await manager.shutdown()
        return transport.sent

    assert run(scenario()) == [{"type": "error", "message": "Failed to refresh match data"}]


def test_unexpected_handler_error_is_answered(manager_factory, provider):
    """Errors outside the taxonomy are logged and answered generically"""
    async def broken():
        raise RuntimeError("provider exploded")

    provider.list_live_events = broken

    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "get_matches"})
        return transport.sent

    assert run(scenario()) == [{"type": "error", "message": "Invalid message format"}]


# =============================================================================
# Disconnect & shutdown
# =============================================================================

def test_disconnect_cleans_up_subscription(manager_factory):
    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        session, transport = await _connect(manager, authenticate=True)
        await _send(manager, session, {"type": "subscribe", "eventId": "123"})

        manager.disconnect(session)

        assert "123" not in manager.registry
        assert not manager.scheduler.is_monitoring("123")
        assert manager.sessions == []

    run(scenario())


def test_disconnect_unauthenticated_session(manager_factory):
    async def scenario():
        manager = manager_factory()
        session, transport = await _connect(manager)
        manager.disconnect(session)
        assert manager.sessions == []

    run(scenario())


def test_shutdown_cancels_all_pollers(manager_factory):
    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        first, _ = await _connect(manager, authenticate=True)
        second, _ = await _connect(manager, authenticate=True)
        await _send(manager, first, {"type": "subscribe", "eventId": "123"})
        await _send(manager, second, {"type": "subscribe", "eventId": "456"})

        monitors = [manager.scheduler._monitors[m] for m in ("123", "456")]
        await manager.shutdown()

        assert all(m.task.done() for m in monitors)
        assert len(manager.scheduler) == 0

    run(scenario())


def test_stats_reflect_sessions(manager_factory):
    async def scenario():
        manager = manager_factory(poll_interval_seconds=10)
        session, _ = await _connect(manager, authenticate=True)
        await _connect(manager)
        await _send(manager, session, {"type": "subscribe", "eventId": "123"})

        stats = manager.get_stats()
        await manager.shutdown()
        return stats

    stats = run(scenario())
    assert stats["sessions"] == 2
    assert stats["authenticated_sessions"] == 1
    assert stats["subscribed_sessions"] == 1
    assert stats["monitored_matches"] == ["123"]
