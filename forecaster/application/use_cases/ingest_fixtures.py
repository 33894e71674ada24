import logging
from typing import Dict, List, Optional, Tuple

from ...domains.data.repositories import GameweekRepository
from ...domains.shared.exceptions import DataSourceException
from ...infrastructure.data_sources.sportmonks_client import SportmonksClient, build_match
from ..services.steps import Step, StepContext, StepResult

logger = logging.getLogger(__name__)


class IngestFixturesUseCase(Step):
    """Pulls the current round of each configured league into a new gameweek."""

    def __init__(
        self,
        gameweek_repository: GameweekRepository,
        client: SportmonksClient,
        league_ids: List[int],
    ):
        self.gameweek_repository = gameweek_repository
        self.client = client
        self.league_ids = league_ids

    def _odds(self, fixture_id: int) -> dict:
        try:
            return self.client.pre_match_odds(fixture_id)
        except DataSourceException as e:
            logger.warning(f"Odds failed for fixture {fixture_id}: {e}")
            return {"home": 0, "draw": 0, "away": 0, "bookmaker": ""}

    def ingest_league(self, league_id: int) -> Optional[Tuple[str, List[dict]]]:
        league_data = self.client.league(league_id)
        season = league_data.get("currentseason") or league_data.get("currentSeason") or {}
        if not season.get("id"):
            logger.warning(f"League {league_id}: no current season, skipping")
            return None

        league = {"id": league_id, "name": league_data.get("name", str(league_id)), "seasonId": season["id"]}
        current = self.client.current_round(season["id"])
        if current is None:
            logger.info(f"{league['name']}: no current round, skipping")
            return None

        logger.info(
            f"{league['name']}: round {current['name']} "
            f"({current.get('starting_at')} to {current.get('ending_at')})"
        )
        fixtures = self.client.fixtures_between(
            current["starting_at"], current["ending_at"], league_id
        )
        standings: Dict[int, dict] = {
            s["participant_id"]: {
                "position": s.get("position"),
                "points": s.get("points"),
                "details": s.get("details"),
            }
            for s in self.client.standings(season["id"])
        }

        matches = []
        for fixture in fixtures:
            match = build_match(fixture, league, current["name"], standings, self._odds(fixture["id"]))
            if match is not None:
                matches.append(match)
        return str(current["name"]), matches

    def execute(self) -> StepResult:
        if not self.league_ids:
            return StepResult.skipped("No leagues configured (SPORTMONKS_LEAGUES)")

        round_name = None
        matches: List[dict] = []
        for league_id in self.league_ids:
            try:
                ingested = self.ingest_league(league_id)
            except DataSourceException as e:
                logger.error(f"League {league_id}: {e}")
                continue
            if ingested is None:
                continue
            round_name = round_name or ingested[0]
            matches.extend(ingested[1])

        if not matches:
            return StepResult.failed("No fixtures found for any configured league")

        gameweek = f"GW{round_name}"
        if self.gameweek_repository.has_matches(gameweek):
            return StepResult.skipped(f"{gameweek} already ingested")

        self.gameweek_repository.save_matches(gameweek, matches)
        return StepResult.success(f"Wrote {len(matches)} fixtures to {gameweek}")

    def run(self, context: StepContext) -> StepResult:
        return self.execute()
