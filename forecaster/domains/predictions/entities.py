from dataclasses import dataclass
from typing import Optional

from ..goals.entities import ExpectedGoals
from ..shared.value_objects import Outcome, ProbabilityTriple


@dataclass
class ComponentBreakdown:
    """Standalone probabilities of each signal before blending."""

    elo: ProbabilityTriple
    goal_model: ProbabilityTriple
    odds: Optional[ProbabilityTriple] = None
    btts_yes: Optional[float] = None

    def get(self, component: str) -> Optional[ProbabilityTriple]:
        return {
            "elo": self.elo,
            "goalModel": self.goal_model,
            "odds": self.odds,
        }.get(component)

    def to_dict(self) -> dict:
        data = {
            "elo": self.elo.to_dict(),
            "goalModel": self.goal_model.to_dict(),
            "odds": self.odds.to_dict() if self.odds is not None else None,
        }
        if self.btts_yes is not None:
            yes = round(self.btts_yes * 100)
            data["btts"] = {"yes": yes, "no": 100 - yes}
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["ComponentBreakdown"]:
        if not data:
            return None
        elo = ProbabilityTriple.from_dict(data.get("elo"))
        goal_model = ProbabilityTriple.from_dict(data.get("goalModel") or data.get("poisson"))
        if elo is None or goal_model is None:
            return None
        btts = data.get("btts") or {}
        return cls(
            elo=elo,
            goal_model=goal_model,
            odds=ProbabilityTriple.from_dict(data.get("odds")),
            btts_yes=btts["yes"] / 100 if btts.get("yes") is not None else None,
        )


@dataclass
class PredictionRecord:
    fixture_id: int
    league: str
    home_team: str
    away_team: str
    probabilities: ProbabilityTriple
    predicted_score: str
    prediction: Outcome
    confidence: float
    expected_goals: Optional[ExpectedGoals] = None
    components: Optional[ComponentBreakdown] = None
    explanation: str = ""

    def to_dict(self) -> dict:
        data = {
            "fixtureId": self.fixture_id,
            "league": self.league,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeWinProb": self.probabilities.home,
            "drawProb": self.probabilities.draw,
            "awayWinProb": self.probabilities.away,
            "predictedScore": self.predicted_score,
            "prediction": self.prediction.value,
            "confidence": self.confidence,
        }
        if self.explanation:
            data["explanation"] = self.explanation
        if self.expected_goals is not None:
            data["expectedGoals"] = {
                "home": round(self.expected_goals.home, 2),
                "away": round(self.expected_goals.away, 2),
            }
        if self.components is not None:
            data["modelComponents"] = self.components.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PredictionRecord":
        xg = data.get("expectedGoals")
        return cls(
            fixture_id=int(data["fixtureId"]),
            league=data.get("league", "unknown"),
            home_team=data.get("homeTeam", ""),
            away_team=data.get("awayTeam", ""),
            probabilities=ProbabilityTriple(
                float(data["homeWinProb"]),
                float(data["drawProb"]),
                float(data["awayWinProb"]),
            ),
            predicted_score=data.get("predictedScore", ""),
            prediction=Outcome(data["prediction"]),
            confidence=float(data.get("confidence", 0.0)),
            expected_goals=ExpectedGoals(xg["home"], xg["away"]) if xg else None,
            components=ComponentBreakdown.from_dict(data.get("modelComponents")),
            explanation=data.get("explanation", ""),
        )
