"""
Subscription registry: which sessions watch which match.

Several sessions may watch the same match; each one gets every update.
A match id is only present while at least one session is subscribed.
"""
import logging
from typing import Dict, List, Set

from .session import Session

logger = logging.getLogger("live_match.registry")


class SubscriptionRegistry:
    """
    Maps match id -> set of subscribed sessions.

    Only touched from the event loop thread, so no locking.
    """

    def __init__(self):
        self._subscribers: Dict[str, Set[Session]] = {}

    def add(self, match_id: str, session: Session) -> int:
        """
        Subscribe a session to a match.

        Returns:
            Number of sessions now subscribed to the match
        """
        sessions = self._subscribers.setdefault(match_id, set())
        sessions.add(session)
        logger.debug(f"[{match_id}] {session.session_id} subscribed ({len(sessions)} total)")
        return len(sessions)

    def remove(self, match_id: str, session: Session) -> int:
        """
        Unsubscribe a session from a match. Unknown ids or sessions are ignored.

        Returns:
            Number of sessions still subscribed to the match
        """
        sessions = self._subscribers.get(match_id)
        if sessions is None:
            return 0

        sessions.discard(session)
        if not sessions:
            del self._subscribers[match_id]
            return 0
        return len(sessions)

    def subscribers(self, match_id: str) -> List[Session]:
        """Snapshot of the sessions subscribed to a match."""
        return list(self._subscribers.get(match_id, ()))

    def match_ids(self) -> List[str]:
        return list(self._subscribers.keys())

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._subscribers

    def __len__(self) -> int:
        return len(self._subscribers)
