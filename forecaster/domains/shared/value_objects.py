import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class Outcome(str, Enum):
    HOME = "H"
    DRAW = "D"
    AWAY = "A"

    @classmethod
    def from_score(cls, home_goals: int, away_goals: int) -> "Outcome":
        if home_goals > away_goals:
            return cls.HOME
        if home_goals < away_goals:
            return cls.AWAY
        return cls.DRAW

    def matches_score(self, home_goals: int, away_goals: int) -> bool:
        return Outcome.from_score(home_goals, away_goals) is self


@dataclass(frozen=True)
class ProbabilityTriple:
    """Home/draw/away probabilities for a single fixture."""

    home: float
    draw: float
    away: float

    def __post_init__(self):
        for prob in (self.home, self.draw, self.away):
            if math.isnan(prob) or prob < 0:
                raise ValueError("Probabilities must be non-negative numbers")

    @property
    def total(self) -> float:
        return self.home + self.draw + self.away

    def normalize(self) -> "ProbabilityTriple":
        """Return probabilities that sum to 1.0."""
        total = self.total
        if total <= 0:
            # Uniform distribution fallback
            return ProbabilityTriple(1 / 3, 1 / 3, 1 / 3)
        return ProbabilityTriple(self.home / total, self.draw / total, self.away / total)

    def scale(self, factor: float) -> "ProbabilityTriple":
        return ProbabilityTriple(self.home * factor, self.draw * factor, self.away * factor)

    def __add__(self, other: "ProbabilityTriple") -> "ProbabilityTriple":
        return ProbabilityTriple(
            self.home + other.home, self.draw + other.draw, self.away + other.away
        )

    def argmax(self) -> Outcome:
        """Most likely outcome; ties resolve in the order H, D, A."""
        if self.home >= self.draw and self.home >= self.away:
            return Outcome.HOME
        if self.draw >= self.away:
            return Outcome.DRAW
        return Outcome.AWAY

    def probability_of(self, outcome: Outcome) -> float:
        return {
            Outcome.HOME: self.home,
            Outcome.DRAW: self.draw,
            Outcome.AWAY: self.away,
        }[outcome]

    def rounded(self, digits: int = 3, absorb_into: Outcome = Outcome.HOME):
        """Round each term and push the rounding residual into one term so the
        rounded triple sums to exactly 1."""
        values = {
            Outcome.HOME: round(self.home, digits),
            Outcome.DRAW: round(self.draw, digits),
            Outcome.AWAY: round(self.away, digits),
        }
        residual = 1.0 - sum(values.values())
        values[absorb_into] = round(values[absorb_into] + residual, digits)
        return ProbabilityTriple(
            values[Outcome.HOME], values[Outcome.DRAW], values[Outcome.AWAY]
        )

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.home, self.draw, self.away)

    def to_dict(self, digits: Optional[int] = 3) -> Dict[str, float]:
        if digits is None:
            return {"H": self.home, "D": self.draw, "A": self.away}
        return {
            "H": round(self.home, digits),
            "D": round(self.draw, digits),
            "A": round(self.away, digits),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["ProbabilityTriple"]:
        if not data:
            return None
        try:
            return cls(float(data["H"]), float(data["D"]), float(data["A"]))
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(frozen=True)
class OddsTriple:
    """Bookmaker decimal odds for the 1X2 market."""

    home: float
    draw: float
    away: float

    @property
    def is_valid(self) -> bool:
        return all(
            isinstance(odd, (int, float)) and not math.isnan(odd) and odd > 0
            for odd in (self.home, self.draw, self.away)
        )

    @property
    def overround(self) -> Optional[float]:
        if not self.is_valid:
            return None
        return 1 / self.home + 1 / self.draw + 1 / self.away - 1

    def to_probabilities(self) -> Optional[ProbabilityTriple]:
        """Implied probabilities with the bookmaker margin removed.

        Returns None when any price is missing or non-positive: that is treated
        as "no market signal" rather than an error.
        """
        if not self.is_valid:
            return None
        raw = ProbabilityTriple(1 / self.home, 1 / self.draw, 1 / self.away)
        return raw.normalize()

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["OddsTriple"]:
        if not data:
            return None
        try:
            return cls(
                float(data.get("home") or 0),
                float(data.get("draw") or 0),
                float(data.get("away") or 0),
            )
        except (TypeError, ValueError):
            return None


def implied_probabilities(
    home: float, draw: float, away: float
) -> Optional[ProbabilityTriple]:
    return OddsTriple(home, draw, away).to_probabilities()
