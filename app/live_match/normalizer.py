"""
Mapping of SportScore event JSON into relay match records.

Every function here is pure: same input, same output, no I/O.
"""
from typing import Any, Dict, Optional

from app.utils.helpers import safe_str
from .models import MatchDetail, MatchSummary, ScorePair

HOME_PLACEHOLDER = "Player 1"
AWAY_PLACEHOLDER = "Player 2"
UNKNOWN_CATEGORY = "Unknown"
DEFAULT_STATUS = "live"


def _section(event: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Return a nested object from the event, or {} if missing/not an object."""
    value = event.get(key)
    return value if isinstance(value, dict) else {}


def _first(*values: Any, default: Any) -> Any:
    """First truthy value, else default."""
    for value in values:
        if value:
            return value
    return default


def _score(score: Dict[str, Any], key: str) -> Any:
    return score.get(key) or 0


def normalize_event(event: Optional[Dict[str, Any]]) -> Optional[MatchDetail]:
    """
    Convert a provider event into a MatchDetail.

    Returns None for a falsy event. Missing names fall back to the short
    name and then to "Player 1"/"Player 2"; a missing tournament falls back
    to its slug and then to "Unknown"; missing scores become 0.
    """
    if not event:
        return None

    home = _section(event, "home_team")
    away = _section(event, "away_team")
    tournament = _section(event, "tournament")
    home_score = _section(event, "home_score")
    away_score = _section(event, "away_score")

    home_team = _first(home.get("name"), home.get("name_short"), default=HOME_PLACEHOLDER)
    away_team = _first(away.get("name"), away.get("name_short"), default=AWAY_PLACEHOLDER)

    return MatchDetail(
        id=safe_str(event.get("id")),
        name=f"{home_team} vs {away_team}",
        category=_first(tournament.get("name"), tournament.get("slug"), default=UNKNOWN_CATEGORY),
        home_team=home_team,
        away_team=away_team,
        status=_first(event.get("status"), default=DEFAULT_STATUS),
        sets=ScorePair(home=_score(home_score, "current"), away=_score(away_score, "current")),
        games=ScorePair(home=_score(home_score, "display"), away=_score(away_score, "display")),
        points=ScorePair(home=_score(home_score, "point"), away=_score(away_score, "point")),
    )


def summarize_event(event: Dict[str, Any]) -> MatchSummary:
    """Convert a provider event from the live list into a MatchSummary."""
    home_team = _first(_section(event, "home_team").get("name"), default=HOME_PLACEHOLDER)
    away_team = _first(_section(event, "away_team").get("name"), default=AWAY_PLACEHOLDER)

    return MatchSummary(
        id=safe_str(event.get("id")),
        name=f"{home_team} vs {away_team}",
        category=_first(_section(event, "tournament").get("name"), default=UNKNOWN_CATEGORY),
        home_team=home_team,
        away_team=away_team,
        status=_first(event.get("status"), default=DEFAULT_STATUS),
    )
