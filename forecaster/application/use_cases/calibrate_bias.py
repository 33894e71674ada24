import logging

from ...domains.data.repositories import GameweekRepository
from ...domains.goals.calibration import BiasCalibrator
from ...domains.goals.repositories import BiasRepository
from ...domains.shared.exceptions import InsufficientDataException
from ...domains.shared.repositories import ChangeLogRepository
from ..services.change_log import record_change
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class CalibrateBiasUseCase(Step):
    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        bias_repository: BiasRepository,
        calibrator: BiasCalibrator,
        changelog: ChangeLogRepository,
    ):
        self.gameweek_repository = gameweek_repository
        self.bias_repository = bias_repository
        self.calibrator = calibrator
        self.changelog = changelog

    def _gameweeks(self):
        repo = self.gameweek_repository
        for gameweek in repo.list_gameweeks():
            if repo.has_matches(gameweek) and repo.has_results(gameweek):
                yield gameweek, repo.get_matches(gameweek), repo.get_results(gameweek)

    def execute(self) -> StepResult:
        season = self.gameweek_repository.season
        try:
            calibration = self.calibrator.calibrate(
                self._gameweeks(), self.bias_repository.load(), season
            )
        except InsufficientDataException as e:
            logger.info(str(e))
            return StepResult.skipped(str(e))

        self.bias_repository.save(calibration)
        record_change(
            self.changelog,
            "bias-calibration",
            {league: bias.to_dict() for league, bias in calibration.leagues.items()},
            season=season,
            gameweek=calibration.last_gameweek,
        )
        return StepResult.success(
            f"Goal bias calibrated for {len(calibration.leagues)} leagues "
            f"through {calibration.last_gameweek}"
        )

    def run(self, context: StepContext) -> StepResult:
        return self.execute()
