import unittest

from forecaster.domains.shared.value_objects import (
    OddsTriple,
    Outcome,
    ProbabilityTriple,
    implied_probabilities,
)


class TestOdds(unittest.TestCase):
    def test_implied_probabilities_remove_margin(self):
        probs = implied_probabilities(2.00, 3.50, 4.00)

        self.assertAlmostEqual(probs.home, 0.483, places=3)
        self.assertAlmostEqual(probs.draw, 0.276, places=3)
        self.assertAlmostEqual(probs.away, 0.241, places=3)
        self.assertAlmostEqual(probs.total, 1.0, places=9)

    def test_overround(self):
        odds = OddsTriple(2.00, 3.50, 4.00)
        self.assertAlmostEqual(odds.overround, 0.0357, places=4)

    def test_missing_or_non_positive_price_means_no_signal(self):
        self.assertIsNone(OddsTriple(2.0, 0, 4.0).to_probabilities())
        self.assertIsNone(OddsTriple(2.0, -3.0, 4.0).to_probabilities())
        self.assertIsNone(OddsTriple(2.0, float("nan"), 4.0).to_probabilities())

    def test_from_dict(self):
        odds = OddsTriple.from_dict({"home": 1.9, "draw": 3.4, "away": None})
        self.assertEqual(odds, OddsTriple(1.9, 3.4, 0.0))
        self.assertFalse(odds.is_valid)
        self.assertIsNone(OddsTriple.from_dict(None))


class TestProbabilityTriple(unittest.TestCase):
    def test_argmax_ties_prefer_home_then_draw(self):
        self.assertIs(ProbabilityTriple(0.4, 0.4, 0.2).argmax(), Outcome.HOME)
        self.assertIs(ProbabilityTriple(0.2, 0.4, 0.4).argmax(), Outcome.DRAW)
        self.assertIs(ProbabilityTriple(0.2, 0.3, 0.5).argmax(), Outcome.AWAY)

    def test_rounded_sums_to_one(self):
        triple = ProbabilityTriple(1 / 3, 1 / 3, 1 / 3).rounded(3)

        self.assertAlmostEqual(triple.total, 1.0, places=9)
        self.assertEqual(triple.draw, 0.333)
        self.assertEqual(triple.home, 0.334)

    def test_rounded_residual_goes_to_chosen_term(self):
        triple = ProbabilityTriple(1 / 3, 1 / 3, 1 / 3).rounded(3, absorb_into=Outcome.AWAY)
        self.assertEqual(triple.away, 0.334)

    def test_normalize_zero_total_is_uniform(self):
        triple = ProbabilityTriple(0, 0, 0).normalize()
        self.assertAlmostEqual(triple.home, 1 / 3)

    def test_rejects_negative(self):
        with self.assertRaises(ValueError):
            ProbabilityTriple(-0.1, 0.6, 0.5)

    def test_from_dict_tolerates_garbage(self):
        self.assertIsNone(ProbabilityTriple.from_dict({"H": 0.5}))
        self.assertEqual(
            ProbabilityTriple.from_dict({"H": 0.5, "D": 0.3, "A": 0.2}),
            ProbabilityTriple(0.5, 0.3, 0.2),
        )


class TestOutcome(unittest.TestCase):
    def test_from_score(self):
        self.assertIs(Outcome.from_score(2, 1), Outcome.HOME)
        self.assertIs(Outcome.from_score(1, 1), Outcome.DRAW)
        self.assertIs(Outcome.from_score(0, 3), Outcome.AWAY)
        self.assertTrue(Outcome.DRAW.matches_score(2, 2))


if __name__ == "__main__":
    unittest.main()
