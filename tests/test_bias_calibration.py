import unittest

import pandas as pd
from pandas.testing import assert_frame_equal

from forecaster.domains.data.entities import MatchRecord, ResultRecord
from forecaster.domains.goals.calibration import BiasCalibrator
from forecaster.domains.goals.entities import BiasCalibration
from forecaster.domains.goals.services import GoalModel
from forecaster.domains.shared.exceptions import InsufficientDataException

from .factories import match_dict


class TestBiasCalibrator(unittest.TestCase):
    def setUp(self):
        self.calibrator = BiasCalibrator(GoalModel())
        self.gameweeks = [
            (
                "GW1",
                [
                    MatchRecord.from_dict(match_dict(1)),
                    MatchRecord.from_dict(match_dict(2, league="La Liga", home_split=None)),
                ],
                [ResultRecord(1, 3, 1, "finished"), ResultRecord(2, 1, 0, "finished")],
            )
        ]

    def test_collect_skips_matches_without_standings(self):
        df = self.calibrator.collect(self.gameweeks)

        expected = pd.DataFrame(
            {
                "gameweek": ["GW1"],
                "league": ["Premier League"],
                "home_predicted": [1.5],
                "home_actual": [3],
                "away_predicted": [0.9],
                "away_actual": [1],
            }
        )
        assert_frame_equal(df, expected)

    def test_bias_is_predicted_minus_actual(self):
        previous = BiasCalibration(history=[{"gameweek": "GW0"}])

        calibration = self.calibrator.calibrate(self.gameweeks, previous, "2025-26")

        bias = calibration.for_league("Premier League")
        self.assertEqual(bias.home_bias, -1.5)
        self.assertEqual(bias.away_bias, -0.1)
        self.assertEqual(bias.matches_analyzed, 1)
        self.assertEqual(bias.home_avg_actual, 3.0)
        self.assertIsNone(calibration.for_league("La Liga"))
        self.assertEqual(calibration.last_gameweek, "GW1")
        self.assertEqual(len(calibration.history), 2)
        self.assertEqual(
            calibration.history[-1]["biases"],
            {"Premier League": {"homeBias": -1.5, "awayBias": -0.1}},
        )

    def test_ignores_unfinished_results(self):
        gameweeks = [
            ("GW1", [MatchRecord.from_dict(match_dict(1))], [ResultRecord(1, 1, 0, "live")])
        ]
        with self.assertRaises(InsufficientDataException):
            self.calibrator.calibrate(gameweeks, BiasCalibration(), "2025-26")


if __name__ == "__main__":
    unittest.main()
