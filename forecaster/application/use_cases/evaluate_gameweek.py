import logging

from ...domains.data.repositories import GameweekRepository
from ...domains.evaluation.services import EvaluationEngine
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class EvaluateGameweekUseCase(Step):
    """Scores a gameweek's predictions. Reads only; never touches the memory stores."""

    def __init__(self, gameweek_repository: GameweekRepository, engine: EvaluationEngine):
        self.gameweek_repository = gameweek_repository
        self.engine = engine

    def execute(self, gameweek: str, force: bool = False) -> StepResult:
        repo = self.gameweek_repository
        if repo.has_evaluation(gameweek) and not force:
            return StepResult.skipped(f"{gameweek} already evaluated")

        predictions = repo.get_predictions(gameweek)
        results = repo.get_results(gameweek)

        evaluation = self.engine.evaluate(gameweek, repo.season, predictions, results)
        repo.save_evaluation(gameweek, evaluation)

        summary = evaluation.summary
        return StepResult.success(
            f"{summary.matched_with_results}/{summary.total_predictions} matched, "
            f"accuracy {summary.outcome_accuracy:.1%}"
        )

    def run(self, context: StepContext) -> StepResult:
        return self.execute(context.gameweek, context.force)
