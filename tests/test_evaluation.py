import math
import unittest

from forecaster.domains.data.entities import ResultRecord
from forecaster.domains.evaluation.entities import EvaluationRecord, PerformanceLog
from forecaster.domains.evaluation.services import (
    EvaluationEngine,
    PerformanceTracker,
    brier_score,
    log_loss,
)
from forecaster.domains.predictions.entities import ComponentBreakdown, PredictionRecord
from forecaster.domains.shared.value_objects import Outcome, ProbabilityTriple


def prediction(fixture_id, probs, outcome, score, elo, goal_model, odds=None):
    triple = ProbabilityTriple(*probs)
    return PredictionRecord(
        fixture_id=fixture_id,
        league="Premier League",
        home_team=f"Home {fixture_id}",
        away_team=f"Away {fixture_id}",
        probabilities=triple,
        predicted_score=score,
        prediction=Outcome(outcome),
        confidence=triple.probability_of(Outcome(outcome)),
        components=ComponentBreakdown(
            elo=ProbabilityTriple(*elo),
            goal_model=ProbabilityTriple(*goal_model),
            odds=ProbabilityTriple(*odds) if odds else None,
        ),
    )


class TestScoringRules(unittest.TestCase):
    def test_log_loss_is_clamped(self):
        self.assertAlmostEqual(log_loss(0.0), -math.log(0.001))
        self.assertAlmostEqual(log_loss(1.0), -math.log(0.999))
        self.assertAlmostEqual(log_loss(0.5), math.log(2))

    def test_brier_score(self):
        self.assertEqual(brier_score(ProbabilityTriple(1, 0, 0), Outcome.HOME), 0)
        self.assertAlmostEqual(brier_score(ProbabilityTriple(0.5, 0.3, 0.2), Outcome.HOME), 0.38)
        self.assertAlmostEqual(brier_score(ProbabilityTriple(0, 0, 1), Outcome.HOME), 2.0)


class TestEvaluationEngine(unittest.TestCase):
    def setUp(self):
        self.predictions = [
            prediction(1, (0.5, 0.3, 0.2), "H", "1-0", (0.6, 0.2, 0.2), (0.3, 0.4, 0.3)),
            prediction(
                2, (0.2, 0.3, 0.5), "A", "0-1", (0.5, 0.3, 0.2), (0.2, 0.3, 0.5), odds=(0.3, 0.3, 0.4)
            ),
            prediction(3, (0.7, 0.2, 0.1), "H", "2-0", (0.7, 0.2, 0.1), (0.3, 0.4, 0.3)),
            prediction(4, (0.4, 0.3, 0.3), "H", "1-0", (0.4, 0.3, 0.3), (0.4, 0.3, 0.3)),
        ]
        self.results = [
            ResultRecord(1, 2, 0, "finished"),
            ResultRecord(2, 0, 1, "finished"),
            ResultRecord(3, 1, 1, "finished"),
            ResultRecord(4, 1, 0, "live"),
        ]
        self.record = EvaluationEngine().evaluate(
            "GW5", "2025-26", self.predictions, self.results, evaluated_at="2026-02-14T12:00:00+00:00"
        )

    def test_summary(self):
        summary = self.record.summary

        self.assertEqual(summary.total_predictions, 4)
        self.assertEqual(summary.matched_with_results, 3)
        self.assertEqual(summary.correct_outcomes, 2)
        self.assertEqual(summary.correct_scores, 1)
        self.assertEqual(summary.outcome_accuracy, 0.667)
        self.assertEqual(summary.score_accuracy, 0.333)
        self.assertAlmostEqual(
            summary.avg_log_loss, (2 * math.log(2) + math.log(5)) / 3, places=3
        )

    def test_match_rows(self):
        first = self.record.matches[0]

        self.assertTrue(first.correct)
        self.assertFalse(first.score_correct)
        self.assertEqual(first.actual_score, "2-0")
        self.assertEqual(first.log_loss, 0.6931)
        self.assertEqual(first.brier_score, 0.38)
        self.assertEqual(first.component_correct, {"elo": True, "goalModel": False, "odds": None})

    def test_component_accuracy_ignores_absent_signals(self):
        self.assertEqual(
            self.record.component_accuracy, {"elo": 0.333, "goalModel": 0.667, "odds": 1.0}
        )
        self.assertEqual(self.record.component_matches, {"elo": 3, "goalModel": 3, "odds": 1})
        self.assertEqual(self.record.matches_for("odds"), 1)

    def test_calibration_bins(self):
        calibration = self.record.calibration

        self.assertEqual(calibration["0.4-0.6"], {"avgPredicted": 0.5, "avgActual": 1.0, "count": 2})
        self.assertEqual(calibration["0.6-0.8"], {"avgPredicted": 0.7, "avgActual": 0.0, "count": 1})
        self.assertEqual(calibration["0.0-0.2"]["count"], 0)

    def test_league_summary(self):
        league = self.record.league_summaries["Premier League"]
        self.assertEqual(league["total"], 3)
        self.assertEqual(league["accuracy"], 0.667)

    def test_no_finished_results(self):
        record = EvaluationEngine().evaluate("GW6", "2025-26", self.predictions, [])

        self.assertEqual(record.summary.matched_with_results, 0)
        self.assertEqual(record.summary.outcome_accuracy, 0.0)
        self.assertIsNone(record.component_accuracy["elo"])
        self.assertEqual(record.league_summaries, {})

    def test_record_round_trip_reads_legacy_keys(self):
        data = self.record.to_dict()
        data["modelComponentAccuracy"]["poisson"] = data["modelComponentAccuracy"].pop("goalModel")
        del data["modelComponentMatches"]

        restored = EvaluationRecord.from_dict(data)

        self.assertEqual(restored.component_accuracy["goalModel"], 0.667)
        self.assertEqual(restored.matches_for("goalModel"), 3)
        self.assertEqual(restored.matches[1].fixture_id, 2)


class TestPerformanceTracker(unittest.TestCase):
    def setUp(self):
        engine = EvaluationEngine()
        preds = [
            prediction(1, (0.5, 0.3, 0.2), "H", "1-0", (0.6, 0.2, 0.2), (0.3, 0.4, 0.3)),
            prediction(2, (0.2, 0.3, 0.5), "A", "0-1", (0.5, 0.3, 0.2), (0.2, 0.3, 0.5)),
        ]
        self.gw1 = engine.evaluate(
            "GW1", "2025-26", preds, [ResultRecord(1, 1, 0, "finished"), ResultRecord(2, 0, 1, "finished")]
        )
        self.gw2 = engine.evaluate(
            "GW2", "2025-26", preds, [ResultRecord(1, 0, 0, "finished"), ResultRecord(2, 2, 1, "finished")]
        )

    def test_record_is_idempotent(self):
        tracker = PerformanceTracker()
        log = PerformanceLog()

        self.assertTrue(tracker.record(log, self.gw1))
        self.assertFalse(tracker.record(log, self.gw1))
        self.assertEqual(len(log.entries), 1)

    def test_cumulative_is_match_weighted(self):
        tracker = PerformanceTracker()
        log = PerformanceLog()
        tracker.record(log, self.gw1)
        tracker.record(log, self.gw2)

        cumulative = log.cumulative
        self.assertEqual(cumulative["totalPredictions"], 4)
        self.assertEqual(cumulative["correctOutcomes"], 2)
        self.assertEqual(cumulative["outcomeAccuracy"], 0.5)
        self.assertEqual(cumulative["correctScores"], 2)
        self.assertIsNone(cumulative["modelComponentAccuracy"]["odds"])
        self.assertEqual(cumulative["modelComponentAccuracy"]["elo"], 0.5)

    def test_log_round_trip(self):
        tracker = PerformanceTracker()
        log = PerformanceLog()
        tracker.record(log, self.gw1)

        restored = PerformanceLog.from_dict(log.to_dict())
        self.assertTrue(restored.contains("GW1", "2025-26"))
        self.assertFalse(restored.contains("GW1", "2024-25"))


if __name__ == "__main__":
    unittest.main()
