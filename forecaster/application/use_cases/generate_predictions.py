import logging

from ...domains.data.repositories import GameweekRepository
from ...domains.goals.repositories import BiasRepository
from ...domains.predictions.services import PredictionService
from ...domains.ratings.repositories import RatingRepository
from ...domains.weights.repositories import WeightRepository
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class GeneratePredictionsUseCase(Step):
    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        rating_repository: RatingRepository,
        weight_repository: WeightRepository,
        bias_repository: BiasRepository,
        prediction_service: PredictionService,
    ):
        self.gameweek_repository = gameweek_repository
        self.rating_repository = rating_repository
        self.weight_repository = weight_repository
        self.bias_repository = bias_repository
        self.prediction_service = prediction_service

    def execute(self, gameweek: str, force: bool = False) -> StepResult:
        if self.gameweek_repository.has_predictions(gameweek) and not force:
            return StepResult.skipped(f"{gameweek} already has predictions")

        matches = self.gameweek_repository.get_matches(gameweek)
        if not matches:
            return StepResult.skipped(f"{gameweek} has no fixtures")

        weights = self.weight_repository.load()
        logger.info(
            f"Blend weights: elo {weights.elo:.3f}, goal model {weights.goal_model:.3f}, "
            f"odds {weights.odds:.3f}"
        )

        predictions = self.prediction_service.generate(
            matches,
            self.rating_repository.load(),
            weights,
            self.bias_repository.load(),
        )
        self.gameweek_repository.save_predictions(gameweek, predictions)

        for p in predictions:
            logger.info(
                f"{p.home_team} vs {p.away_team} -> {p.predicted_score} "
                f"({p.prediction.value}, {p.confidence:.0%})"
            )
        return StepResult.success(f"Generated {len(predictions)} predictions for {gameweek}")

    def run(self, context: StepContext) -> StepResult:
        return self.execute(context.gameweek, context.force)
