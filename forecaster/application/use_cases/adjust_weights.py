import logging
from typing import Optional

from ...domains.data.repositories import GameweekRepository
from ...domains.shared.exceptions import InsufficientDataException
from ...domains.shared.repositories import ChangeLogRepository
from ...domains.weights.repositories import WeightRepository
from ...domains.weights.services import AdaptiveWeightCalibrator
from ..services.change_log import record_change
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class AdjustWeightsUseCase(Step):
    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        weight_repository: WeightRepository,
        calibrator: AdaptiveWeightCalibrator,
        changelog: ChangeLogRepository,
        window: Optional[int] = None,
    ):
        self.gameweek_repository = gameweek_repository
        self.weight_repository = weight_repository
        self.calibrator = calibrator
        self.changelog = changelog
        self.window = window

    def execute(self, window: Optional[int] = None) -> StepResult:
        evaluations = self.gameweek_repository.list_evaluations()
        weights = self.weight_repository.load()

        try:
            updated, adjustment = self.calibrator.adjust(
                weights, evaluations, window or self.window
            )
        except InsufficientDataException as e:
            logger.info(str(e))
            return StepResult.skipped(str(e))

        self.weight_repository.save(updated)
        record_change(
            self.changelog,
            "weight-adjustment",
            adjustment.to_dict(),
            season=self.gameweek_repository.season,
        )
        return StepResult.success(adjustment.reason)

    def run(self, context: StepContext) -> StepResult:
        return self.execute()
