"""
Match data provider interface and SportScore implementation.

The provider pattern keeps the session and polling code independent of
the upstream API, and lets tests swap in an in-memory provider.
"""
import asyncio
import logging
from typing import Protocol, Optional, List, Dict, Any

logger = logging.getLogger("live_match.provider")


class MatchDataProvider(Protocol):
    """
    Interface for live match data providers.

    Both calls report upstream failures as an empty result rather than
    raising, so callers only deal with "data" or "no data".
    """

    async def list_live_events(self) -> List[Dict[str, Any]]:
        """Get the provider-shaped list of live tennis events."""
        ...

    async def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        """
        Get provider-shaped detail for one event.

        Args:
            event_id: The provider event ID

        Returns:
            Event JSON, or None when unavailable
        """
        ...


class SportScoreMatchProvider:
    """
    SportScore implementation using sportscore_client.

    The client is blocking (requests), so calls run in a worker thread to
    keep the event loop free for other sessions.
    """

    def __init__(self):
        # Import here so tests can build the app without touching the client
        from app import sportscore_client
        self._api = sportscore_client

    async def list_live_events(self) -> List[Dict[str, Any]]:
        logger.debug("Fetching live tennis events")
        return await asyncio.to_thread(self._api.get_live_events)

    async def get_event(self, event_id: str) -> Optional[Dict[str, Any]]:
        logger.debug(f"Fetching event {event_id}")
        return await asyncio.to_thread(self._api.get_event, event_id)


# Singleton factory
_provider: Optional[MatchDataProvider] = None


def get_match_provider() -> MatchDataProvider:
    """Get the shared match data provider instance."""
    global _provider
    if _provider is None:
        _provider = SportScoreMatchProvider()
    return _provider
