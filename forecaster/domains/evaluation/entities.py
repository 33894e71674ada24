from dataclasses import dataclass, field
from typing import Dict, List, Optional

CALIBRATION_BINS = ("0.0-0.2", "0.2-0.4", "0.4-0.6", "0.6-0.8", "0.8-1.0")


@dataclass
class MatchEvaluation:
    fixture_id: int
    league: str
    home_team: str
    away_team: str
    predicted: str
    actual: str
    correct: bool
    predicted_score: str
    actual_score: str
    score_correct: bool
    log_loss: float
    brier_score: float
    confidence: float
    probs: Dict[str, float]
    component_correct: Dict[str, Optional[bool]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "fixtureId": self.fixture_id,
            "league": self.league,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "predicted": self.predicted,
            "actual": self.actual,
            "correct": self.correct,
            "predictedScore": self.predicted_score,
            "actualScore": self.actual_score,
            "scoreCorrect": self.score_correct,
            "logLoss": self.log_loss,
            "brierScore": self.brier_score,
            "confidence": self.confidence,
            "probs": self.probs,
            "modelComponentAccuracy": self.component_correct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchEvaluation":
        return cls(
            fixture_id=data["fixtureId"],
            league=data.get("league", "unknown"),
            home_team=data.get("homeTeam", ""),
            away_team=data.get("awayTeam", ""),
            predicted=data["predicted"],
            actual=data["actual"],
            correct=data["correct"],
            predicted_score=data.get("predictedScore", ""),
            actual_score=data.get("actualScore", ""),
            score_correct=data.get("scoreCorrect", False),
            log_loss=data.get("logLoss", 0.0),
            brier_score=data.get("brierScore", 0.0),
            confidence=data.get("confidence", 0.0),
            probs=data.get("probs", {}),
            component_correct=data.get("modelComponentAccuracy", {}),
        )


@dataclass
class EvaluationSummary:
    total_predictions: int
    matched_with_results: int
    outcome_accuracy: float
    score_accuracy: float
    avg_log_loss: float
    avg_brier_score: float
    correct_outcomes: int
    correct_scores: int

    def to_dict(self) -> dict:
        return {
            "totalPredictions": self.total_predictions,
            "matchedWithResults": self.matched_with_results,
            "outcomeAccuracy": self.outcome_accuracy,
            "scoreAccuracy": self.score_accuracy,
            "avgLogLoss": self.avg_log_loss,
            "avgBrierScore": self.avg_brier_score,
            "correctOutcomes": self.correct_outcomes,
            "correctScores": self.correct_scores,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EvaluationSummary":
        return cls(
            total_predictions=data.get("totalPredictions", 0),
            matched_with_results=data.get("matchedWithResults", 0),
            outcome_accuracy=data.get("outcomeAccuracy", 0.0),
            score_accuracy=data.get("scoreAccuracy", 0.0),
            avg_log_loss=data.get("avgLogLoss", 0.0),
            avg_brier_score=data.get("avgBrierScore", 0.0),
            correct_outcomes=data.get("correctOutcomes", 0),
            correct_scores=data.get("correctScores", 0),
        )


@dataclass
class EvaluationRecord:
    """Scored outcome of one gameweek's predictions."""

    gameweek: str
    season: str
    evaluated_at: str
    summary: EvaluationSummary
    component_accuracy: Dict[str, Optional[float]]
    component_matches: Dict[str, int]
    league_summaries: Dict[str, dict]
    calibration: Dict[str, dict]
    matches: List[MatchEvaluation] = field(default_factory=list)

    def matches_for(self, component: str) -> int:
        """Match count behind a component's accuracy, for window weighting."""
        if component in self.component_matches:
            return self.component_matches[component]
        if self.component_accuracy.get(component) is None:
            return 0
        return self.summary.matched_with_results

    def to_dict(self) -> dict:
        return {
            "gameweek": self.gameweek,
            "season": self.season,
            "evaluatedAt": self.evaluated_at,
            "summary": self.summary.to_dict(),
            "modelComponentAccuracy": self.component_accuracy,
            "modelComponentMatches": self.component_matches,
            "leagueSummaries": self.league_summaries,
            "calibration": self.calibration,
            "matches": [m.to_dict() for m in self.matches],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EvaluationRecord":
        accuracy = dict(data.get("modelComponentAccuracy") or {})
        if "poisson" in accuracy and "goalModel" not in accuracy:
            accuracy["goalModel"] = accuracy.pop("poisson")
        counts = dict(data.get("modelComponentMatches") or {})
        if "poisson" in counts and "goalModel" not in counts:
            counts["goalModel"] = counts.pop("poisson")

        return cls(
            gameweek=data["gameweek"],
            season=data.get("season", ""),
            evaluated_at=data.get("evaluatedAt", ""),
            summary=EvaluationSummary.from_dict(data.get("summary") or {}),
            component_accuracy=accuracy,
            component_matches=counts,
            league_summaries=data.get("leagueSummaries") or {},
            calibration=data.get("calibration") or {},
            matches=[MatchEvaluation.from_dict(m) for m in data.get("matches") or []],
        )


@dataclass
class PerformanceEntry:
    gameweek: str
    season: str
    evaluated_at: str
    matches_evaluated: int
    outcome_accuracy: float
    score_accuracy: float
    avg_log_loss: float
    avg_brier_score: float
    component_accuracy: Dict[str, Optional[float]]
    league_accuracy: Dict[str, float]

    def to_dict(self) -> dict:
        return {
            "gameweek": self.gameweek,
            "season": self.season,
            "evaluatedAt": self.evaluated_at,
            "matchesEvaluated": self.matches_evaluated,
            "outcomeAccuracy": self.outcome_accuracy,
            "scoreAccuracy": self.score_accuracy,
            "avgLogLoss": self.avg_log_loss,
            "avgBrierScore": self.avg_brier_score,
            "modelComponentAccuracy": self.component_accuracy,
            "leagueAccuracy": self.league_accuracy,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PerformanceEntry":
        accuracy = dict(data.get("modelComponentAccuracy") or {})
        if "poisson" in accuracy and "goalModel" not in accuracy:
            accuracy["goalModel"] = accuracy.pop("poisson")
        return cls(
            gameweek=data["gameweek"],
            season=data.get("season", ""),
            evaluated_at=data.get("evaluatedAt", ""),
            matches_evaluated=data.get("matchesEvaluated", 0),
            outcome_accuracy=data.get("outcomeAccuracy", 0.0),
            score_accuracy=data.get("scoreAccuracy", 0.0),
            avg_log_loss=data.get("avgLogLoss", 0.0),
            avg_brier_score=data.get("avgBrierScore", 0.0),
            component_accuracy=accuracy,
            league_accuracy=data.get("leagueAccuracy") or {},
        )


@dataclass
class PerformanceLog:
    entries: List[PerformanceEntry] = field(default_factory=list)
    cumulative: Dict[str, object] = field(default_factory=dict)

    def contains(self, gameweek: str, season: str) -> bool:
        return any(e.gameweek == gameweek and e.season == season for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "gameweeks": [e.to_dict() for e in self.entries],
            "cumulative": self.cumulative,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PerformanceLog":
        data = data or {}
        return cls(
            entries=[PerformanceEntry.from_dict(e) for e in data.get("gameweeks") or []],
            cumulative=data.get("cumulative") or {},
        )
