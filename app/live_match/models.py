"""
Data models for the live tennis relay.

These dataclasses are the stable shape of match data sent to clients,
independent of how the upstream provider names its fields.
"""
from dataclasses import dataclass, field
from typing import Any, Dict

# Score values are usually ints, but SportScore reports tennis points
# as strings ("15", "30", "A").
ScoreValue = Any


@dataclass
class ScorePair:
    """Home/away values for one score level (sets, games or points)."""
    home: ScoreValue = 0
    away: ScoreValue = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"home": self.home, "away": self.away}


@dataclass
class MatchSummary:
    """Lightweight match entry used in match list responses."""
    id: str
    name: str
    category: str
    home_team: str
    away_team: str
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "status": self.status,
        }


@dataclass
class MatchDetail:
    """
    Complete snapshot of a match at a point in time.

    This is the record pushed to subscribers in every `match_update`.
    """
    id: str
    name: str
    category: str
    home_team: str
    away_team: str
    status: str
    sets: ScorePair = field(default_factory=ScorePair)
    games: ScorePair = field(default_factory=ScorePair)
    points: ScorePair = field(default_factory=ScorePair)

    def points_differ(self, other: "MatchDetail") -> bool:
        """Check whether the point score changed compared to another snapshot."""
        return self.points.home != other.points.home or self.points.away != other.points.away

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "status": self.status,
            "sets": self.sets.to_dict(),
            "games": self.games.to_dict(),
            "points": self.points.to_dict(),
        }
