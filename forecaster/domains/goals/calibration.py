import logging
from typing import Iterable, List, Tuple

import pandas as pd

from ...utils.datetime_helpers import isoformat_now
from ..data.entities import MatchRecord, ResultRecord, finished_results
from ..shared.exceptions import InsufficientDataException
from .entities import BiasCalibration, LeagueBias
from .services import GoalModel

logger = logging.getLogger(__name__)

GameweekData = Tuple[str, List[MatchRecord], List[ResultRecord]]


class BiasCalibrator:
    """Measures per-league over/under-prediction of goals by the goal model."""

    def __init__(self, goal_model: GoalModel):
        self.goal_model = goal_model

    def collect(self, gameweeks: Iterable[GameweekData]) -> pd.DataFrame:
        rows = []
        for gameweek, matches, results in gameweeks:
            finished = finished_results(results)
            averages = self.goal_model.league_averages(matches)

            for match in matches:
                result = finished.get(match.fixture_id)
                if result is None:
                    continue
                xg = self.goal_model.standings_xg(match, averages.get(match.league))
                if xg is None:
                    continue
                rows.append(
                    {
                        "gameweek": gameweek,
                        "league": match.league,
                        "home_predicted": xg.home,
                        "home_actual": result.home_goals,
                        "away_predicted": xg.away,
                        "away_actual": result.away_goals,
                    }
                )

        return pd.DataFrame(
            rows,
            columns=[
                "gameweek",
                "league",
                "home_predicted",
                "home_actual",
                "away_predicted",
                "away_actual",
            ],
        )

    def calibrate(
        self,
        gameweeks: Iterable[GameweekData],
        previous: BiasCalibration,
        season: str,
    ) -> BiasCalibration:
        gameweeks = list(gameweeks)
        df = self.collect(gameweeks)
        if df.empty:
            raise InsufficientDataException(
                "No finished matches with standings data; cannot compute goal bias"
            )

        grouped = df.groupby("league").agg(
            home_avg_predicted=("home_predicted", "mean"),
            home_avg_actual=("home_actual", "mean"),
            away_avg_predicted=("away_predicted", "mean"),
            away_avg_actual=("away_actual", "mean"),
            matches=("home_actual", "size"),
        )

        leagues = {}
        for league, row in grouped.iterrows():
            leagues[league] = LeagueBias(
                league=league,
                home_bias=round(row.home_avg_predicted - row.home_avg_actual, 3),
                away_bias=round(row.away_avg_predicted - row.away_avg_actual, 3),
                matches_analyzed=int(row.matches),
                home_avg_predicted=round(row.home_avg_predicted, 3),
                home_avg_actual=round(row.home_avg_actual, 3),
                away_avg_predicted=round(row.away_avg_predicted, 3),
                away_avg_actual=round(row.away_avg_actual, 3),
            )
            logger.info(
                f"{league}: home bias {leagues[league].home_bias:+.3f}, "
                f"away bias {leagues[league].away_bias:+.3f} "
                f"({leagues[league].matches_analyzed} matches)"
            )

        now = isoformat_now()
        latest = gameweeks[-1][0] if gameweeks else None
        history = list(previous.history)
        history.append(
            {
                "timestamp": now,
                "gameweek": latest,
                "season": season,
                "biases": {
                    league: {"homeBias": bias.home_bias, "awayBias": bias.away_bias}
                    for league, bias in leagues.items()
                },
            }
        )

        return BiasCalibration(
            leagues=leagues, last_gameweek=latest, last_updated=now, history=history
        )
