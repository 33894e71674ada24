"""
Ensemble blending of the Elo, goal-model and market-odds signals.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ...config import ModelConfig
from ..data.entities import MatchRecord
from ..goals.entities import BiasCalibration, LeagueAverages
from ..goals.services import GoalModel
from ..ratings.entities import RatingBook
from ..ratings.services import RatingService
from ..shared.value_objects import Outcome, ProbabilityTriple
from ..weights.entities import EnsembleWeights
from .entities import ComponentBreakdown, PredictionRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlendResult:
    probabilities: ProbabilityTriple
    prediction: Outcome
    confidence: float


class EnsembleBlender:
    def __init__(self, config: ModelConfig = None):
        self.config = config or ModelConfig()

    def combine(
        self,
        elo: ProbabilityTriple,
        goal_model: ProbabilityTriple,
        odds: Optional[ProbabilityTriple],
        weights: EnsembleWeights,
    ) -> ProbabilityTriple:
        """Weighted sum of the present signals, normalised."""
        if odds is not None:
            blended = (
                elo.scale(weights.elo)
                + goal_model.scale(weights.goal_model)
                + odds.scale(weights.odds)
            )
        else:
            pair = weights.without_odds()
            blended = elo.scale(pair["elo"]) + goal_model.scale(pair["goalModel"])
        return blended.normalize()

    def apply_floor(self, probabilities: ProbabilityTriple) -> ProbabilityTriple:
        """Lift every term to the floor, taking the deficit proportionally from the rest."""
        floor = self.config.probability_floor
        values = list(probabilities.as_tuple())

        for _ in range(len(values)):
            below = [i for i, p in enumerate(values) if p < floor]
            if not below:
                break
            deficit = sum(floor - values[i] for i in below)
            above = [i for i in range(len(values)) if i not in below]
            pool = sum(values[i] for i in above)
            for i in below:
                values[i] = floor
            for i in above:
                values[i] -= deficit * values[i] / pool

        return ProbabilityTriple(*values)

    def blend(
        self,
        elo: ProbabilityTriple,
        goal_model: ProbabilityTriple,
        odds: Optional[ProbabilityTriple],
        weights: EnsembleWeights,
    ) -> BlendResult:
        floored = self.apply_floor(self.combine(elo, goal_model, odds, weights))
        final = floored.rounded(3, absorb_into=floored.argmax())
        prediction = final.argmax()
        confidence = min(self.config.confidence_cap, final.probability_of(prediction))
        return BlendResult(final, prediction, round(confidence, 3))


class PredictionService:
    """Produces one PredictionRecord per fixture from all available signals."""

    def __init__(
        self,
        rating_service: RatingService,
        goal_model: GoalModel,
        blender: EnsembleBlender,
    ):
        self.rating_service = rating_service
        self.goal_model = goal_model
        self.blender = blender

    def predict_match(
        self,
        match: MatchRecord,
        book: RatingBook,
        weights: EnsembleWeights,
        averages: Optional[LeagueAverages] = None,
        calibration: Optional[BiasCalibration] = None,
    ) -> PredictionRecord:
        elo = self.rating_service.predict_match(book, match)
        odds = match.odds.to_probabilities() if match.odds is not None else None
        bias = calibration.for_league(match.league) if calibration else None

        xg = self.goal_model.expected_goals(
            match, averages, elo.home_elo, elo.away_elo, odds=odds, bias=bias
        )
        goals = self.goal_model.predict(xg)

        result = self.blender.blend(elo.probabilities, goals.probabilities, odds, weights)
        home_goals, away_goals = goals.matrix.best_score_for(result.prediction)

        return PredictionRecord(
            fixture_id=match.fixture_id,
            league=match.league,
            home_team=match.home_team.name,
            away_team=match.away_team.name,
            probabilities=result.probabilities,
            predicted_score=f"{home_goals}-{away_goals}",
            prediction=result.prediction,
            confidence=result.confidence,
            expected_goals=xg,
            components=ComponentBreakdown(
                elo=elo.probabilities,
                goal_model=goals.probabilities,
                odds=odds,
                btts_yes=goals.btts,
            ),
            explanation=self._explain(match, result.prediction, elo, xg, odds is not None),
        )

    def generate(
        self,
        matches: List[MatchRecord],
        book: RatingBook,
        weights: EnsembleWeights,
        calibration: Optional[BiasCalibration] = None,
    ) -> List[PredictionRecord]:
        averages: Dict[str, LeagueAverages] = self.goal_model.league_averages(matches)
        for league, avg in averages.items():
            logger.info(f"{league}: {avg.avg_home:.2f} home, {avg.avg_away:.2f} away goals per game")

        return [
            self.predict_match(
                match, book, weights, averages.get(match.league), calibration
            )
            for match in matches
        ]

    @staticmethod
    def _explain(match, prediction, elo, xg, has_odds: bool) -> str:
        tip = {
            Outcome.HOME: match.home_team.name,
            Outcome.AWAY: match.away_team.name,
            Outcome.DRAW: "Draw",
        }[prediction]
        signals = f"Elo ratings ({elo.home_elo:.0f} vs {elo.away_elo:.0f}), goal model (xG: {xg.home:.2f} - {xg.away:.2f})"
        if has_odds:
            signals += " and market odds"
        return f"{tip} predicted based on {signals}."
