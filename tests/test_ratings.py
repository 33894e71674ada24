import unittest

from forecaster.domains.data.entities import MatchRecord, ResultRecord
from forecaster.domains.ratings.entities import RatingBook, TeamRating
from forecaster.domains.ratings.services import (
    EloEngine,
    RatingService,
    expected_score,
    margin_multiplier,
)

from .factories import match_dict


class TestEloEngine(unittest.TestCase):
    def setUp(self):
        self.engine = EloEngine()

    def test_predict_home_favourite(self):
        prediction = self.engine.predict(1600, 1500)
        probs = prediction.probabilities

        self.assertEqual(prediction.adjusted_home_elo, 1665)
        self.assertAlmostEqual(prediction.home_expected, 0.7211, places=4)
        self.assertAlmostEqual(probs.draw, 0.2505, delta=0.001)
        self.assertAlmostEqual(probs.home, 0.5405, delta=0.002)
        self.assertAlmostEqual(probs.away, 0.2090, delta=0.002)
        self.assertAlmostEqual(probs.total, 1.0, places=9)

    def test_draw_probability_has_floor(self):
        prediction = self.engine.predict(2400, 1000)
        self.assertAlmostEqual(prediction.probabilities.draw, 0.08, delta=0.001)

    def test_margin_multiplier(self):
        self.assertEqual(margin_multiplier(0), 1.0)
        self.assertEqual(margin_multiplier(1), 1.0)
        self.assertEqual(margin_multiplier(2), 1.5)
        self.assertEqual(margin_multiplier(-2), 1.5)
        self.assertAlmostEqual(margin_multiplier(5), 2.0)

    def test_update_two_goal_win_uses_scaled_k(self):
        update = self.engine.update(1500, 1500, 3, 1)

        self.assertEqual(update.margin_multiplier, 1.5)
        self.assertEqual(update.effective_k, 30)
        self.assertEqual(update.home_elo, 1512)
        self.assertEqual(update.away_elo, 1488)

    def test_update_direction_follows_result(self):
        home_win = self.engine.update(1550, 1480, 1, 0)
        self.assertGreaterEqual(home_win.home_elo, 1550)
        self.assertLessEqual(home_win.away_elo, 1480)

        away_win = self.engine.update(1550, 1480, 0, 2)
        self.assertLess(away_win.home_elo, 1550)
        self.assertGreater(away_win.away_elo, 1480)

    def test_expected_scores_are_complementary(self):
        self.assertAlmostEqual(expected_score(1600, 1450) + expected_score(1450, 1600), 1.0)


class TestRatingService(unittest.TestCase):
    def setUp(self):
        self.service = RatingService(EloEngine())

    def test_unknown_teams_use_default_rating(self):
        match = MatchRecord.from_dict(match_dict(1))
        prediction = self.service.predict_match(RatingBook(), match)

        self.assertEqual(prediction.home_elo, 1500)
        self.assertEqual(prediction.away_elo, 1500)

    def test_apply_results_only_uses_finished_matches(self):
        book = RatingBook(
            ratings={"11": TeamRating("11", "Team 11", 1600, "Premier League", "")}
        )
        matches = [MatchRecord.from_dict(match_dict(1)), MatchRecord.from_dict(match_dict(2))]
        results = [ResultRecord(1, 2, 0, "finished"), ResultRecord(2, 0, 1, "live")]

        changes = self.service.apply_results(book, matches, results)

        self.assertEqual(len(changes), 2)
        self.assertEqual({c.team_id for c in changes}, {"11", "12"})
        self.assertGreater(book.rating_for("11"), 1600)
        self.assertLess(book.rating_for("12"), 1500)
        self.assertNotIn("21", book.ratings)
        self.assertEqual(changes[0].result, "2-0")

    def test_seed_from_standings(self):
        book = RatingBook()
        standings = [
            {"participant_id": 1, "position": 1, "participant": {"name": "Top"}, "league_id": 8},
            {"participant_id": 2, "position": 2, "participant": {"name": "Middle"}, "league_id": 8},
            {"participant_id": 3, "position": 3, "participant": {"name": "Bottom"}, "league_id": 8},
        ]

        seeded = RatingService.seed_from_standings(book, standings)

        self.assertEqual(seeded, 3)
        self.assertEqual(book.rating_for("1"), 1700)
        self.assertEqual(book.rating_for("2"), 1500)
        self.assertEqual(book.rating_for("3"), 1300)
        self.assertEqual(book.ratings["1"].league, "league_8")
        self.assertEqual([r.team for r in book.ranked()], ["Top", "Middle", "Bottom"])


class TestRatingBook(unittest.TestCase):
    def test_processed_periods(self):
        book = RatingBook()
        self.assertFalse(book.has_processed("2025-26/GW3"))

        book.mark_processed("2025-26/GW3")
        book.mark_processed("2025-26/GW3")

        self.assertTrue(book.has_processed("2025-26/GW3"))
        self.assertEqual(book.processed_periods, ["2025-26/GW3"])
