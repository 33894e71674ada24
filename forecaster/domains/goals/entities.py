from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..shared.value_objects import Outcome, ProbabilityTriple


@dataclass(frozen=True)
class LeagueAverages:
    """League-wide goals per game for the home and away splits."""

    avg_home: float
    avg_away: float

    @property
    def total(self) -> float:
        return self.avg_home + self.avg_away


@dataclass(frozen=True)
class ExpectedGoals:
    home: float
    away: float
    source: str = "standings"


@dataclass
class ScoreMatrix:
    """Truncated scoreline distribution; rows are home goals, columns away goals."""

    probabilities: np.ndarray

    @property
    def max_goals(self) -> int:
        return self.probabilities.shape[0] - 1

    @property
    def mass(self) -> float:
        return float(self.probabilities.sum())

    def outcome_probabilities(self) -> ProbabilityTriple:
        """H/D/A sums normalised by the matrix mass (the tail beyond max_goals is dropped)."""
        home_win = float(np.tril(self.probabilities, -1).sum())
        draw = float(np.trace(self.probabilities))
        away_win = float(np.triu(self.probabilities, 1).sum())
        return ProbabilityTriple(home_win, draw, away_win).normalize()

    def both_teams_to_score(self) -> float:
        return float(self.probabilities[1:, 1:].sum())

    def over(self, line: float = 2.5) -> float:
        goals = np.add.outer(
            np.arange(self.max_goals + 1), np.arange(self.max_goals + 1)
        )
        return float(self.probabilities[goals > line].sum())

    def best_score_for(self, outcome: Outcome) -> Tuple[int, int]:
        """Most probable scoreline consistent with the given outcome."""
        best, best_prob = None, -1.0
        for h in range(self.max_goals + 1):
            for a in range(self.max_goals + 1):
                if not outcome.matches_score(h, a):
                    continue
                if self.probabilities[h, a] > best_prob:
                    best_prob = self.probabilities[h, a]
                    best = (h, a)
        return best

    def most_likely_score(self) -> Tuple[int, int]:
        h, a = np.unravel_index(np.argmax(self.probabilities), self.probabilities.shape)
        return int(h), int(a)

    def top_scores(self, n: int = 10) -> List[Dict[str, float]]:
        cells = [
            (f"{h}-{a}", float(self.probabilities[h, a]))
            for h in range(self.max_goals + 1)
            for a in range(self.max_goals + 1)
        ]
        cells.sort(key=lambda cell: cell[1], reverse=True)
        return [{"score": score, "probability": round(p, 4)} for score, p in cells[:n]]


@dataclass
class GoalModelPrediction:
    expected_goals: ExpectedGoals
    matrix: ScoreMatrix
    probabilities: ProbabilityTriple

    @property
    def btts(self) -> float:
        return self.matrix.both_teams_to_score()

    @property
    def over_25(self) -> float:
        return self.matrix.over(2.5)


@dataclass
class LeagueBias:
    """Positive bias means the goal model over-predicts goals."""

    league: str
    home_bias: float
    away_bias: float
    matches_analyzed: int
    home_avg_predicted: float = 0.0
    home_avg_actual: float = 0.0
    away_avg_predicted: float = 0.0
    away_avg_actual: float = 0.0

    def to_dict(self) -> dict:
        return {
            "homeBias": self.home_bias,
            "awayBias": self.away_bias,
            "homeAvgPredicted": self.home_avg_predicted,
            "homeAvgActual": self.home_avg_actual,
            "awayAvgPredicted": self.away_avg_predicted,
            "awayAvgActual": self.away_avg_actual,
            "matchesAnalyzed": self.matches_analyzed,
        }

    @classmethod
    def from_dict(cls, league: str, data: dict) -> "LeagueBias":
        return cls(
            league=league,
            home_bias=data.get("homeBias", 0.0),
            away_bias=data.get("awayBias", 0.0),
            matches_analyzed=data.get("matchesAnalyzed", 0),
            home_avg_predicted=data.get("homeAvgPredicted", 0.0),
            home_avg_actual=data.get("homeAvgActual", 0.0),
            away_avg_predicted=data.get("awayAvgPredicted", 0.0),
            away_avg_actual=data.get("awayAvgActual", 0.0),
        )


@dataclass
class BiasCalibration:
    leagues: Dict[str, LeagueBias] = field(default_factory=dict)
    last_gameweek: Optional[str] = None
    last_updated: Optional[str] = None
    history: List[dict] = field(default_factory=list)

    def for_league(self, league: str) -> Optional[LeagueBias]:
        return self.leagues.get(league)
