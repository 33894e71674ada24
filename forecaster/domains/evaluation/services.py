"""
Scoring of predictions against final results.
"""

import logging
import math
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from ...config import ModelConfig
from ...utils.datetime_helpers import isoformat_now
from ..data.entities import ResultRecord, finished_results
from ..predictions.entities import PredictionRecord
from ..shared.value_objects import Outcome, ProbabilityTriple
from ..weights.entities import COMPONENTS
from .entities import (
    CALIBRATION_BINS,
    EvaluationRecord,
    EvaluationSummary,
    MatchEvaluation,
    PerformanceEntry,
    PerformanceLog,
)

logger = logging.getLogger(__name__)

_BIN_EDGES = [0.0, 0.2, 0.4, 0.6, 0.8, np.inf]


def log_loss(probability: float, bounds=(0.001, 0.999)) -> float:
    low, high = bounds
    return -math.log(max(min(probability, high), low))


def brier_score(probabilities: ProbabilityTriple, actual: Outcome) -> float:
    return sum(
        (probabilities.probability_of(outcome) - (1.0 if outcome is actual else 0.0)) ** 2
        for outcome in Outcome
    )


def _mean(series: pd.Series, digits: int) -> float:
    if series.empty:
        return 0.0
    return round(float(series.mean()), digits)


class EvaluationEngine:
    def __init__(self, config: ModelConfig = None):
        self.config = config or ModelConfig()

    def score_match(
        self, prediction: PredictionRecord, result: ResultRecord
    ) -> MatchEvaluation:
        actual = result.outcome
        probs = prediction.probabilities

        component_correct: Dict[str, Optional[bool]] = {}
        for component in COMPONENTS:
            triple = prediction.components.get(component) if prediction.components else None
            component_correct[component] = (
                triple.argmax() is actual if triple is not None else None
            )

        return MatchEvaluation(
            fixture_id=prediction.fixture_id,
            league=prediction.league,
            home_team=prediction.home_team,
            away_team=prediction.away_team,
            predicted=prediction.prediction.value,
            actual=actual.value,
            correct=prediction.prediction is actual,
            predicted_score=prediction.predicted_score,
            actual_score=result.score,
            score_correct=prediction.predicted_score == result.score,
            log_loss=round(
                log_loss(probs.probability_of(actual), self.config.log_loss_bounds), 4
            ),
            brier_score=round(brier_score(probs, actual), 4),
            confidence=prediction.confidence,
            probs=probs.to_dict(digits=None),
            component_correct=component_correct,
        )

    def evaluate(
        self,
        gameweek: str,
        season: str,
        predictions: List[PredictionRecord],
        results: List[ResultRecord],
        evaluated_at: Optional[str] = None,
    ) -> EvaluationRecord:
        finished = finished_results(results)
        scored = [
            self.score_match(p, finished[p.fixture_id])
            for p in predictions
            if p.fixture_id in finished
        ]

        df = pd.DataFrame(
            [
                {
                    "league": m.league,
                    "correct": m.correct,
                    "score_correct": m.score_correct,
                    "log_loss": log_loss(
                        m.probs[m.actual], self.config.log_loss_bounds
                    ),
                    "brier": brier_score(
                        ProbabilityTriple.from_dict(m.probs), Outcome(m.actual)
                    ),
                    "confidence": m.confidence,
                    **{c: m.component_correct.get(c) for c in COMPONENTS},
                }
                for m in scored
            ],
            columns=["league", "correct", "score_correct", "log_loss", "brier", "confidence", *COMPONENTS],
        )

        correct_outcomes = int(df["correct"].sum()) if not df.empty else 0
        correct_scores = int(df["score_correct"].sum()) if not df.empty else 0
        summary = EvaluationSummary(
            total_predictions=len(predictions),
            matched_with_results=len(df),
            outcome_accuracy=_mean(df["correct"].astype(float), 3),
            score_accuracy=_mean(df["score_correct"].astype(float), 3),
            avg_log_loss=_mean(df["log_loss"], 4),
            avg_brier_score=_mean(df["brier"], 4),
            correct_outcomes=correct_outcomes,
            correct_scores=correct_scores,
        )

        component_accuracy, component_matches = self._component_accuracy(df)

        logger.info(
            f"{gameweek}: {summary.matched_with_results}/{summary.total_predictions} matched, "
            f"outcome accuracy {summary.outcome_accuracy:.1%}, log-loss {summary.avg_log_loss}"
        )

        return EvaluationRecord(
            gameweek=gameweek,
            season=season,
            evaluated_at=evaluated_at or isoformat_now(),
            summary=summary,
            component_accuracy=component_accuracy,
            component_matches=component_matches,
            league_summaries=self._league_summaries(df),
            calibration=self._calibration(df),
            matches=scored,
        )

    @staticmethod
    def _component_accuracy(df: pd.DataFrame):
        accuracy: Dict[str, Optional[float]] = {}
        counts: Dict[str, int] = {}
        for component in COMPONENTS:
            present = df[component].dropna().astype(float)
            counts[component] = int(len(present))
            accuracy[component] = round(float(present.mean()), 3) if len(present) else None
        return accuracy, counts

    @staticmethod
    def _league_summaries(df: pd.DataFrame) -> Dict[str, dict]:
        if df.empty:
            return {}
        grouped = df.groupby("league").agg(
            accuracy=("correct", "mean"),
            score_accuracy=("score_correct", "mean"),
            avg_log_loss=("log_loss", "mean"),
            avg_brier=("brier", "mean"),
            total=("correct", "size"),
        )
        return {
            league: {
                "accuracy": round(float(row.accuracy), 3),
                "scoreAccuracy": round(float(row.score_accuracy), 3),
                "avgLogLoss": round(float(row.avg_log_loss), 4),
                "avgBrier": round(float(row.avg_brier), 4),
                "total": int(row.total),
            }
            for league, row in grouped.iterrows()
        }

    @staticmethod
    def _calibration(df: pd.DataFrame) -> Dict[str, dict]:
        """Mean stated confidence against observed hit rate, per confidence band."""
        calibration = {
            label: {"avgPredicted": 0, "avgActual": 0, "count": 0}
            for label in CALIBRATION_BINS
        }
        if df.empty:
            return calibration

        bins = pd.cut(
            df["confidence"], bins=_BIN_EDGES, right=False, labels=list(CALIBRATION_BINS)
        )
        grouped = df.assign(bin=bins, hit=df["correct"].astype(float)).groupby(
            "bin", observed=True
        )
        for label, group in grouped:
            calibration[str(label)] = {
                "avgPredicted": round(float(group["confidence"].mean()), 3),
                "avgActual": round(float(group["hit"].mean()), 3),
                "count": int(len(group)),
            }
        return calibration


class PerformanceTracker:
    """Maintains the cumulative accuracy ledger across evaluated gameweeks."""

    def record(self, log: PerformanceLog, evaluation: EvaluationRecord) -> bool:
        if log.contains(evaluation.gameweek, evaluation.season):
            logger.info(
                f"{evaluation.gameweek} ({evaluation.season}) already in performance log"
            )
            return False

        log.entries.append(
            PerformanceEntry(
                gameweek=evaluation.gameweek,
                season=evaluation.season,
                evaluated_at=evaluation.evaluated_at,
                matches_evaluated=evaluation.summary.matched_with_results,
                outcome_accuracy=evaluation.summary.outcome_accuracy,
                score_accuracy=evaluation.summary.score_accuracy,
                avg_log_loss=evaluation.summary.avg_log_loss,
                avg_brier_score=evaluation.summary.avg_brier_score,
                component_accuracy=dict(evaluation.component_accuracy),
                league_accuracy={
                    league: stats.get("accuracy", 0.0)
                    for league, stats in evaluation.league_summaries.items()
                },
            )
        )
        log.cumulative = self.cumulative(log.entries)
        return True

    @staticmethod
    def cumulative(entries: List[PerformanceEntry]) -> dict:
        df = pd.DataFrame(
            [
                {
                    "n": e.matches_evaluated,
                    "outcome": e.outcome_accuracy,
                    "score": e.score_accuracy,
                    "log_loss": e.avg_log_loss,
                    "brier": e.avg_brier_score,
                    **{c: e.component_accuracy.get(c) for c in COMPONENTS},
                }
                for e in entries
            ],
            columns=["n", "outcome", "score", "log_loss", "brier", *COMPONENTS],
        )
        total = int(df["n"].sum()) if not df.empty else 0
        correct_outcomes = int(sum(round(o * n) for o, n in zip(df["outcome"], df["n"])))
        correct_scores = int(sum(round(s * n) for s, n in zip(df["score"], df["n"])))

        def weighted(column: str, digits: int) -> Optional[float]:
            if total == 0:
                return None
            return round(float((df[column] * df["n"]).sum() / total), digits)

        components: Dict[str, Optional[float]] = {}
        for component in COMPONENTS:
            present = df[df[component].notna()]
            count = int(present["n"].sum()) if not present.empty else 0
            components[component] = (
                round(float((present[component].astype(float) * present["n"]).sum() / count), 3)
                if count > 0
                else None
            )

        return {
            "totalPredictions": total,
            "correctOutcomes": correct_outcomes,
            "correctScores": correct_scores,
            "avgLogLoss": weighted("log_loss", 4),
            "avgBrierScore": weighted("brier", 4),
            "outcomeAccuracy": round(correct_outcomes / total, 3) if total else None,
            "scoreAccuracy": round(correct_scores / total, 3) if total else None,
            "modelComponentAccuracy": components,
        }
