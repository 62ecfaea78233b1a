"""
Inbound message dispatch and the session state machine.

States: unauthenticated -> authenticated, and independently
unsubscribed <-> subscribed(match id). Messages from one session are
handled one at a time, in arrival order.
"""
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError as SchemaValidationError

from app.schemas import AuthenticateMessage, MessageEnvelope, SubscribeMessage
from app.utils.helpers import optional_str
from .errors import (
    AuthenticationError,
    AuthorizationError,
    MalformedMessageError,
    NotSubscribedError,
    RelayError,
    UnknownMessageTypeError,
    UpstreamFetchError,
    ValidationError,
)
from .normalizer import normalize_event, summarize_event
from .provider import MatchDataProvider
from .registry import SubscriptionRegistry
from .scheduler import PollScheduler
from .session import Session

logger = logging.getLogger("live_match.handlers")

Handler = Callable[[Session, Dict[str, Any]], Awaitable[None]]


def parse_message(raw: str) -> Dict[str, Any]:
    """
    Decode one inbound frame.

    Raises:
        MalformedMessageError: Not JSON, not an object, or no string `type`
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedMessageError() from e

    if not isinstance(data, dict):
        raise MalformedMessageError()

    _validate(MessageEnvelope, data)
    return data


def _matches(value: Any, expected: str) -> bool:
    return isinstance(value, str) and value == expected


def _event_id(value: Any) -> Optional[str]:
    """Usable match id from a subscribe frame: a non-empty string or a non-zero int."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    if value == 0:
        return None
    return optional_str(value)


def _validate(schema: type, data: Dict[str, Any]) -> Any:
    try:
        return schema.model_validate(data)
    except SchemaValidationError as e:
        raise MalformedMessageError() from e


class MessageRouter:
    """
    Routes inbound messages to handlers and turns RelayErrors into replies.

    Holds references to the shared registry and scheduler; it owns no state
    of its own beyond the configured credentials.
    """

    def __init__(
        self,
        provider: MatchDataProvider,
        registry: SubscriptionRegistry,
        scheduler: PollScheduler,
        username: str,
        password: str,
    ):
        self._provider = provider
        self._registry = registry
        self._scheduler = scheduler
        self._username = username
        self._password = password

        self._handlers: Dict[str, Handler] = {
            "authenticate": self.authenticate,
            "get_matches": self.get_matches,
            "subscribe": self.subscribe,
            "unsubscribe": self.unsubscribe,
            "refresh": self.refresh,
        }

    async def dispatch(self, session: Session, raw: str) -> None:
        """Handle one inbound frame. Never raises for bad client input."""
        try:
            data = parse_message(raw)
            message_type = data["type"]
            logger.info(f"Received message: {message_type} ({session.session_id})")

            handler = self._handlers.get(message_type)
            if handler is None:
                raise UnknownMessageTypeError(message_type)
            await handler(session, data)
        except RelayError as e:
            logger.debug(f"{session.session_id}: {type(e).__name__}: {e.message}")
            await session.send_message(e.to_message())
        except Exception as e:
            logger.error(f"Error handling message from {session.session_id}: {e}", exc_info=True)
            await session.send_message(MalformedMessageError().to_message())

    # ===== HANDLERS =====

    async def authenticate(self, session: Session, data: Dict[str, Any]) -> None:
        message = _validate(AuthenticateMessage, data)

        if not (_matches(message.username, self._username) and _matches(message.password, self._password)):
            logger.info(f"Authentication failed ({session.session_id})")
            raise AuthenticationError()

        session.authenticated = True
        await session.send("auth_success", message="Authentication successful")
        logger.info(f"Client authenticated ({session.session_id})")

    async def get_matches(self, session: Session, data: Dict[str, Any]) -> None:
        self._require_auth(session)

        logger.info("Fetching live tennis matches...")
        events = await self._provider.list_live_events()
        matches = [summarize_event(event).to_dict() for event in events]

        await session.send("matches_list", data=matches, count=len(matches))
        logger.info(f"Sent {len(matches)} matches to client")

    async def subscribe(self, session: Session, data: Dict[str, Any]) -> None:
        self._require_auth(session)

        message = _validate(SubscribeMessage, data)
        event_id = _event_id(message.event_id)
        if event_id is None:
            raise ValidationError()

        # One subscription per session: switching drops the old one first
        self.release(session)

        session.subscribed_match_id = event_id
        self._registry.add(event_id, session)

        await session.send("subscribed", eventId=event_id, message=f"Subscribed to match {event_id}")
        self._scheduler.start(event_id)

    async def unsubscribe(self, session: Session, data: Dict[str, Any]) -> None:
        self._require_auth(session)

        if self.release(session) is None:
            return

        await session.send("unsubscribed", message="Unsubscribed from match")

    async def refresh(self, session: Session, data: Dict[str, Any]) -> None:
        self._require_auth(session)

        match_id = session.subscribed_match_id
        if match_id is None:
            raise NotSubscribedError()

        event = await self._provider.get_event(match_id)
        detail = normalize_event(event)
        if detail is None:
            raise UpstreamFetchError()

        await session.send("match_update", data=detail.to_dict())
        await session.send("info", message="🔄 Match data refreshed")
        logger.info(f"[{match_id}] Forced refresh completed")

    # ===== LIFECYCLE =====

    def release(self, session: Session) -> Optional[str]:
        """
        Drop the session's subscription, stopping the poller when no other
        session still watches that match.

        Returns:
            The released match id, or None if the session was not subscribed
        """
        match_id = session.subscribed_match_id
        if match_id is None:
            return None

        remaining = self._registry.remove(match_id, session)
        if remaining == 0:
            self._scheduler.stop(match_id)
        session.subscribed_match_id = None
        logger.info(f"[{match_id}] {session.session_id} released subscription ({remaining} left)")
        return match_id

    def _require_auth(self, session: Session) -> None:
        if not session.authenticated:
            raise AuthorizationError()
