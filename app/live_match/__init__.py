"""
Live Match module: WebSocket relay for live tennis matches.

Authenticates clients, keeps one subscription per connection and polls
the match data provider for every subscribed match.
"""
from .models import (
    MatchDetail,
    MatchSummary,
    ScorePair,
)
from .normalizer import normalize_event, summarize_event
from .provider import (
    MatchDataProvider,
    SportScoreMatchProvider,
    get_match_provider,
)
from .registry import SubscriptionRegistry
from .scheduler import MatchMonitor, PollScheduler
from .session import Session
from .handlers import MessageRouter
from .manager import SessionManager

__all__ = [
    # Models
    "MatchDetail",
    "MatchSummary",
    "ScorePair",
    "normalize_event",
    "summarize_event",
    # Provider
    "MatchDataProvider",
    "SportScoreMatchProvider",
    "get_match_provider",
    # Relay
    "SubscriptionRegistry",
    "MatchMonitor",
    "PollScheduler",
    "Session",
    "MessageRouter",
    "SessionManager",
]
