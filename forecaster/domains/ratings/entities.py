from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..shared.value_objects import ProbabilityTriple


@dataclass
class TeamRating:
    team_id: str
    team: str
    rating: float
    league: str
    updated_at: str

    def to_dict(self) -> dict:
        return {
            "rating": self.rating,
            "team": self.team,
            "league": self.league,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, team_id: str, data: dict) -> "TeamRating":
        return cls(
            team_id=team_id,
            team=data.get("team", team_id),
            rating=data.get("rating", 1500),
            league=data.get("league", "unknown"),
            updated_at=data.get("updatedAt", ""),
        )


@dataclass
class RatingBook:
    """Snapshot of the whole rating store."""

    ratings: Dict[str, TeamRating] = field(default_factory=dict)
    processed_periods: List[str] = field(default_factory=list)
    last_updated: Optional[str] = None

    def rating_for(self, team_id: str, default: float = 1500) -> float:
        entry = self.ratings.get(str(team_id))
        return entry.rating if entry is not None else default

    def has_processed(self, period: str) -> bool:
        return period in self.processed_periods

    def mark_processed(self, period: str) -> None:
        if period not in self.processed_periods:
            self.processed_periods.append(period)

    def ranked(self) -> List[TeamRating]:
        return sorted(self.ratings.values(), key=lambda r: r.rating, reverse=True)


@dataclass
class EloPrediction:
    probabilities: ProbabilityTriple
    home_elo: float
    away_elo: float
    adjusted_home_elo: float
    home_expected: float
    rating_diff: float


@dataclass
class EloUpdate:
    home_elo: float
    away_elo: float
    home_change: float
    away_change: float
    margin_multiplier: float
    effective_k: float


@dataclass
class RatingChange:
    team_id: str
    team: str
    old_rating: float
    new_rating: float
    match: str
    result: str

    @property
    def change(self) -> float:
        return self.new_rating - self.old_rating

    def to_dict(self) -> dict:
        return {
            "teamId": self.team_id,
            "team": self.team,
            "oldRating": self.old_rating,
            "newRating": self.new_rating,
            "change": self.change,
            "match": self.match,
            "result": self.result,
        }
