from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..shared.exceptions import DomainException

COMPONENTS = ("elo", "goalModel", "odds")


@dataclass
class EnsembleWeights:
    """Blend weights for the Elo, goal-model and market-odds signals."""

    elo: float = 0.30
    goal_model: float = 0.30
    odds: float = 0.40
    last_adjusted: Optional[str] = None
    adjustment_history: List[dict] = field(default_factory=list)

    def __post_init__(self):
        if any(w < 0 for w in (self.elo, self.goal_model, self.odds)):
            raise DomainException("Ensemble weights must be non-negative")

    @property
    def total(self) -> float:
        return self.elo + self.goal_model + self.odds

    def get(self, component: str) -> float:
        return self.as_dict()[component]

    def as_dict(self) -> Dict[str, float]:
        return {"elo": self.elo, "goalModel": self.goal_model, "odds": self.odds}

    def without_odds(self) -> Dict[str, float]:
        """Elo and goal-model weights rescaled to sum to 1."""
        pair = self.elo + self.goal_model
        if pair <= 0:
            return {"elo": 0.5, "goalModel": 0.5}
        return {"elo": self.elo / pair, "goalModel": self.goal_model / pair}

    def to_dict(self) -> dict:
        return {
            **self.as_dict(),
            "lastAdjusted": self.last_adjusted,
            "adjustmentHistory": self.adjustment_history,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EnsembleWeights":
        data = data or {}
        return cls(
            elo=data.get("elo", 0.30),
            goal_model=data.get("goalModel", data.get("poisson", 0.30)),
            odds=data.get("odds", 0.40),
            last_adjusted=data.get("lastAdjusted"),
            adjustment_history=list(data.get("adjustmentHistory") or []),
        )


@dataclass
class WeightAdjustment:
    timestamp: str
    gameweeks_used: List[str]
    old_weights: Dict[str, float]
    new_weights: Dict[str, float]
    component_accuracies: Dict[str, Optional[float]]
    reason: str

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "gameweeksUsed": self.gameweeks_used,
            "oldWeights": self.old_weights,
            "newWeights": self.new_weights,
            "componentAccuracies": self.component_accuracies,
            "reason": self.reason,
        }
