"""
Elo rating engine and batch rating updates.
"""

import logging
import math
from typing import Dict, List

from ...config import ModelConfig
from ...utils.datetime_helpers import isoformat_now
from ..data.entities import MatchRecord, ResultRecord, finished_results
from ..shared.value_objects import ProbabilityTriple
from .entities import EloPrediction, EloUpdate, RatingBook, RatingChange, TeamRating

logger = logging.getLogger(__name__)


def expected_score(rating_a: float, rating_b: float) -> float:
    return 1 / (1 + math.pow(10, (rating_b - rating_a) / 400))


def actual_score(goals_for: int, goals_against: int) -> float:
    if goals_for > goals_against:
        return 1.0
    if goals_for < goals_against:
        return 0.0
    return 0.5


def margin_multiplier(goal_diff: int) -> float:
    """Blowouts move ratings further than narrow results."""
    goal_diff = abs(goal_diff)
    if goal_diff <= 1:
        return 1.0
    return 1 + math.sqrt(goal_diff - 1) * 0.5


class EloEngine:
    def __init__(self, config: ModelConfig = None):
        self.config = config or ModelConfig()

    def predict(self, home_elo: float, away_elo: float) -> EloPrediction:
        adjusted_home = home_elo + self.config.home_advantage
        home_expected = expected_score(adjusted_home, away_elo)
        away_expected = 1 - home_expected

        rating_gap = abs(adjusted_home - away_elo)
        draw = max(
            self.config.draw_floor,
            self.config.draw_base - rating_gap * self.config.draw_decay,
        )
        remaining = 1 - draw

        probabilities = (
            ProbabilityTriple(remaining * home_expected, draw, remaining * away_expected)
            .normalize()
            .rounded(3)
        )

        return EloPrediction(
            probabilities=probabilities,
            home_elo=home_elo,
            away_elo=away_elo,
            adjusted_home_elo=adjusted_home,
            home_expected=home_expected,
            rating_diff=adjusted_home - away_elo,
        )

    def update(
        self, home_elo: float, away_elo: float, home_goals: int, away_goals: int
    ) -> EloUpdate:
        adjusted_home = home_elo + self.config.home_advantage
        multiplier = margin_multiplier(home_goals - away_goals)

        home_expected = expected_score(adjusted_home, away_elo)
        away_expected = 1 - home_expected

        home_actual = actual_score(home_goals, away_goals)
        away_actual = 1 - home_actual

        effective_k = self.config.k_factor * multiplier

        new_home = round(home_elo + effective_k * (home_actual - home_expected))
        new_away = round(away_elo + effective_k * (away_actual - away_expected))

        return EloUpdate(
            home_elo=new_home,
            away_elo=new_away,
            home_change=new_home - home_elo,
            away_change=new_away - away_elo,
            margin_multiplier=multiplier,
            effective_k=effective_k,
        )


class RatingService:
    def __init__(self, engine: EloEngine):
        self.engine = engine

    @property
    def default_rating(self) -> float:
        return self.engine.config.default_rating

    def predict_match(self, book: RatingBook, match: MatchRecord) -> EloPrediction:
        return self.engine.predict(
            book.rating_for(match.home_team.id, self.default_rating),
            book.rating_for(match.away_team.id, self.default_rating),
        )

    def apply_results(
        self,
        book: RatingBook,
        matches: List[MatchRecord],
        results: List[ResultRecord],
    ) -> List[RatingChange]:
        """Update the book in place from every finished result, in fixture order."""
        finished = finished_results(results)
        changes: List[RatingChange] = []
        now = isoformat_now()

        for match in matches:
            result = finished.get(match.fixture_id)
            if result is None:
                continue

            home_id, away_id = match.home_team.id, match.away_team.id
            home_elo = book.rating_for(home_id, self.default_rating)
            away_elo = book.rating_for(away_id, self.default_rating)

            update = self.engine.update(
                home_elo, away_elo, result.home_goals, result.away_goals
            )

            book.ratings[home_id] = TeamRating(
                home_id, match.home_team.name, update.home_elo, match.league, now
            )
            book.ratings[away_id] = TeamRating(
                away_id, match.away_team.name, update.away_elo, match.league, now
            )

            label = f"{match.home_team.name} vs {match.away_team.name}"
            changes.append(
                RatingChange(home_id, match.home_team.name, home_elo, update.home_elo, label, result.score)
            )
            changes.append(
                RatingChange(away_id, match.away_team.name, away_elo, update.away_elo, label, result.score)
            )

        book.last_updated = now
        return changes

    @staticmethod
    def seed_from_standings(book: RatingBook, standings: List[Dict]) -> int:
        """Seed ratings from a league table: 1st place ~1700, last ~1300."""
        total_teams = len(standings) or 20
        now = isoformat_now()
        seeded = 0

        for standing in standings:
            participant = standing.get("participant") or {}
            team_id = str(standing.get("participant_id") or standing.get("teamId"))
            team_name = participant.get("name") or standing.get("team") or f"Team_{team_id}"
            position = standing.get("position") or 0

            position_factor = (
                (total_teams - position) / (total_teams - 1) if total_teams > 1 else 0.5
            )
            league_id = standing.get("league_id")
            book.ratings[team_id] = TeamRating(
                team_id=team_id,
                team=team_name,
                rating=round(1300 + position_factor * 400),
                league=f"league_{league_id}" if league_id else "unknown",
                updated_at=now,
            )
            seeded += 1

        book.last_updated = now
        return seeded
