"""
Session manager: owns every piece of shared relay state.

The registry, scheduler and live sessions are held here and handed to the
message router, instead of living in module globals.
"""
import logging
from typing import Any, Dict, List, Optional

from config.settings import Settings, settings as default_settings
from .handlers import MessageRouter
from .provider import MatchDataProvider, get_match_provider
from .registry import SubscriptionRegistry
from .scheduler import PollScheduler
from .session import Session, Transport

logger = logging.getLogger("live_match.manager")

WELCOME_MESSAGE = "Connected to Tennis Clicker server"


class SessionManager:
    """
    Creates a Session per connection and tears everything down on shutdown.

    Usage:
        manager = SessionManager()
        session = await manager.connect(websocket)
        await manager.handle_message(session, text)
        manager.disconnect(session)
        await manager.shutdown()
    """

    def __init__(
        self,
        provider: Optional[MatchDataProvider] = None,
        config: Optional[Settings] = None,
    ):
        if config is None:
            config = default_settings
        self.provider = provider if provider is not None else get_match_provider()
        self.registry = SubscriptionRegistry()
        self.scheduler = PollScheduler(
            self.provider,
            self.registry,
            interval_seconds=config.poll_interval_seconds,
            failure_alert_threshold=config.poll_failure_alert_threshold,
        )
        self.router = MessageRouter(
            self.provider,
            self.registry,
            self.scheduler,
            username=config.auth_username,
            password=config.auth_password,
        )
        self._sessions: Dict[str, Session] = {}

    async def connect(self, transport: Transport) -> Session:
        """Register a new connection and greet it."""
        session = Session(transport=transport)
        await session.send("connection", message=WELCOME_MESSAGE)

        self._sessions[session.session_id] = session
        logger.info(f"New client connected ({session.session_id}, {len(self._sessions)} active)")
        return session

    async def handle_message(self, session: Session, raw: str) -> None:
        await self.router.dispatch(session, raw)

    def disconnect(self, session: Session) -> None:
        """Clean up after a closed connection, whether or not it authenticated."""
        self.router.release(session)
        self._sessions.pop(session.session_id, None)
        logger.info(f"Client disconnected ({session.session_id}, {len(self._sessions)} active)")

    async def shutdown(self) -> None:
        """Cancel every poller, including ones no session points at any more."""
        stopped = await self.scheduler.stop_all()
        logger.info(f"Relay shut down ({stopped} monitor(s) cancelled, {len(self._sessions)} session(s) open)")

    @property
    def sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def get_stats(self) -> Dict[str, Any]:
        """Get relay statistics."""
        sessions = self.sessions
        return {
            "sessions": len(sessions),
            "authenticated_sessions": sum(1 for s in sessions if s.authenticated),
            "subscribed_sessions": sum(1 for s in sessions if s.is_subscribed),
            "monitored_matches": self.scheduler.monitored_ids(),
            "poll_interval_seconds": self.scheduler.interval_seconds,
        }
