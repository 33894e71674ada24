import logging
from typing import Dict, List

from ...domains.data.repositories import GameweekRepository
from ...domains.ratings.repositories import RatingRepository
from ...domains.ratings.services import RatingService
from ...domains.shared.repositories import ChangeLogRepository
from ..services.change_log import record_change
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class UpdateRatingsUseCase(Step):
    """Applies every finished result of a gameweek to the Elo store, once."""

    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        rating_repository: RatingRepository,
        rating_service: RatingService,
        changelog: ChangeLogRepository,
    ):
        self.gameweek_repository = gameweek_repository
        self.rating_repository = rating_repository
        self.rating_service = rating_service
        self.changelog = changelog

    def execute(self, gameweek: str, force: bool = False) -> StepResult:
        season = self.gameweek_repository.season
        period = f"{season}/{gameweek}"

        book = self.rating_repository.load()
        if book.has_processed(period) and not force:
            return StepResult.skipped(f"Ratings already updated for {period}")

        matches = self.gameweek_repository.get_matches(gameweek)
        results = self.gameweek_repository.get_results(gameweek)

        changes = self.rating_service.apply_results(book, matches, results)
        book.mark_processed(period)
        self.rating_repository.save(book)

        for change in changes:
            logger.debug(
                f"{change.team}: {change.old_rating} -> {change.new_rating} ({change.change:+})"
            )

        record_change(
            self.changelog,
            "elo-update",
            {"changes": [c.to_dict() for c in changes]},
            season=season,
            gameweek=gameweek,
        )
        return StepResult.success(f"Updated {len(changes)} team ratings for {period}")

    def run(self, context: StepContext) -> StepResult:
        return self.execute(context.gameweek, context.force)


class SeedRatingsUseCase:
    """Initialises the Elo store from league tables (1st ~1700, last ~1300)."""

    def __init__(self, rating_repository: RatingRepository):
        self.rating_repository = rating_repository

    def execute(self, standings: List[Dict]) -> int:
        book = self.rating_repository.load()
        seeded = RatingService.seed_from_standings(book, standings)
        self.rating_repository.save(book)
        logger.info(f"Seeded {seeded} team ratings")
        return seeded
