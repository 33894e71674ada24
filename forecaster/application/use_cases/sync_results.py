import logging
from datetime import datetime
from typing import Callable, Optional

from ...domains.data.repositories import GameweekRepository
from ...domains.shared.exceptions import DataSourceException
from ...infrastructure.data_sources.sportmonks_client import SportmonksClient
from ...utils.datetime_helpers import utc_now
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class SyncResultsUseCase(Step):
    """Fetches scores for kicked-off fixtures that lack a final result."""

    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        client: SportmonksClient,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gameweek_repository = gameweek_repository
        self.client = client
        self.clock = clock

    def execute(self, gameweek: Optional[str] = None) -> StepResult:
        repo = self.gameweek_repository
        if gameweek is None:
            gameweeks = repo.list_gameweeks()
            if not gameweeks:
                return StepResult.skipped("No gameweek directories found")
            gameweek = gameweeks[-1]

        matches = repo.get_matches(gameweek)
        existing = {r.fixture_id: r for r in repo.get_results(gameweek)} if repo.has_results(gameweek) else {}

        now = self.clock()
        to_check = [
            m
            for m in matches
            if m.kickoff is not None
            and m.kickoff <= now
            and not (m.fixture_id in existing and existing[m.fixture_id].is_finished)
        ]
        logger.info(
            f"{gameweek}: {len(to_check)} fixtures to check "
            f"({len(matches)} total, {len(existing)} already have results)"
        )

        fetched = 0
        for match in to_check:
            try:
                result = self.client.fixture_result(match.fixture_id)
            except DataSourceException as e:
                logger.warning(f"Fixture {match.fixture_id}: {e}")
                continue
            if result is None:
                continue
            existing[match.fixture_id] = result
            fetched += 1
            logger.info(
                f"{match.home_team.name} {result.score} {match.away_team.name} [{result.status}]"
            )

        repo.save_results(gameweek, list(existing.values()))
        return StepResult.success(
            f"{fetched} results fetched, {len(existing)} saved for {gameweek}"
        )

    def run(self, context: StepContext) -> StepResult:
        return self.execute(context.gameweek)
