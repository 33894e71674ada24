import logging

from ...domains.data.repositories import GameweekRepository
from ...domains.evaluation.repositories import PerformanceLogRepository
from ...domains.evaluation.services import PerformanceTracker
from ...domains.shared.exceptions import ArtifactNotFoundException
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class UpdatePerformanceLogUseCase(Step):
    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        performance_repository: PerformanceLogRepository,
        tracker: PerformanceTracker,
    ):
        self.gameweek_repository = gameweek_repository
        self.performance_repository = performance_repository
        self.tracker = tracker

    def execute(self, gameweek: str) -> StepResult:
        evaluation = self.gameweek_repository.get_evaluation(gameweek)
        if evaluation is None:
            raise ArtifactNotFoundException(
                f"evaluation.json not found for {self.gameweek_repository.season}/{gameweek}"
            )

        log = self.performance_repository.load()
        if not self.tracker.record(log, evaluation):
            return StepResult.skipped(f"{gameweek} already in performance log")

        self.performance_repository.save(log)
        cumulative = log.cumulative
        logger.info(
            f"Cumulative: {len(log.entries)} gameweeks, "
            f"{cumulative['totalPredictions']} predictions, "
            f"outcome accuracy {cumulative['outcomeAccuracy']}"
        )
        return StepResult.success(f"Performance log updated with {gameweek}")

    def run(self, context: StepContext) -> StepResult:
        return self.execute(context.gameweek)
