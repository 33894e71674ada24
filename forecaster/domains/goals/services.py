"""
Attack/defence Poisson goal model.

Team strengths come from the season-to-date venue splits stored with each
fixture, scaled against league averages derived from the same snapshots.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

import numpy as np
from scipy.stats import poisson

from ...config import ModelConfig
from ..data.entities import MatchRecord
from ..shared.value_objects import ProbabilityTriple
from .entities import (
    ExpectedGoals,
    GoalModelPrediction,
    LeagueAverages,
    LeagueBias,
    ScoreMatrix,
)

logger = logging.getLogger(__name__)


class GoalModel:
    def __init__(self, config: ModelConfig = None):
        self.config = config or ModelConfig()

    @property
    def default_averages(self) -> LeagueAverages:
        return LeagueAverages(
            self.config.default_avg_home_goals, self.config.default_avg_away_goals
        )

    def league_averages(self, matches: List[MatchRecord]) -> Dict[str, LeagueAverages]:
        """Goals per game by league, pooled from the standings snapshots.

        Both averages share the home-played total as denominator.
        """
        totals = defaultdict(lambda: {"home_scored": 0.0, "away_scored": 0.0, "played": 0.0})

        for match in matches:
            stats = totals[match.league]
            home, away = match.standings.home, match.standings.away
            if home.played and home.scored is not None:
                stats["home_scored"] += home.scored
                stats["played"] += home.played
            if away.played and away.scored is not None:
                stats["away_scored"] += away.scored

        averages = {}
        for league, stats in totals.items():
            if stats["played"] > 0:
                averages[league] = LeagueAverages(
                    stats["home_scored"] / stats["played"],
                    stats["away_scored"] / stats["played"],
                )
            else:
                averages[league] = self.default_averages
        return averages

    def standings_xg(
        self, match: MatchRecord, averages: Optional[LeagueAverages] = None
    ) -> Optional[ExpectedGoals]:
        """Expected goals from standings alone, or None if the snapshot is incomplete."""
        if not match.standings.is_complete:
            return None

        avg = averages or self.default_averages
        avg_home = avg.avg_home or self.config.default_avg_home_goals
        avg_away = avg.avg_away or self.config.default_avg_away_goals
        home, away = match.standings.home, match.standings.away

        home_attack = home.scored_per_game / avg_home
        home_defense = home.conceded_per_game / avg_away
        away_attack = away.scored_per_game / avg_away
        away_defense = away.conceded_per_game / avg_home

        return ExpectedGoals(
            home=home_attack * away_defense * avg_home,
            away=away_attack * home_defense * avg_away,
            source="standings",
        )

    def elo_xg(
        self, home_elo: float, away_elo: float, averages: Optional[LeagueAverages] = None
    ) -> ExpectedGoals:
        avg = averages or self.default_averages
        elo_diff = (home_elo + self.config.home_advantage - away_elo) / 400
        factor = self.config.elo_xg_factor
        return ExpectedGoals(
            home=avg.avg_home * (1 + elo_diff * factor),
            away=avg.avg_away * (1 - elo_diff * factor),
            source="elo",
        )

    def expected_goals(
        self,
        match: MatchRecord,
        averages: Optional[LeagueAverages],
        home_elo: float,
        away_elo: float,
        odds: Optional[ProbabilityTriple] = None,
        bias: Optional[LeagueBias] = None,
    ) -> ExpectedGoals:
        avg = averages or self.default_averages
        xg = self.standings_xg(match, avg) or self.elo_xg(home_elo, away_elo, avg)
        home_xg, away_xg = xg.home, xg.away

        if odds is not None and odds.home + odds.away > 0:
            weight = self.config.odds_xg_weight
            home_share = odds.home / (odds.home + odds.away)
            total = avg.avg_home + avg.avg_away
            home_xg = home_xg * (1 - weight) + total * home_share * weight
            away_xg = away_xg * (1 - weight) + total * (1 - home_share) * weight

        if bias is not None and bias.matches_analyzed >= self.config.min_bias_matches:
            home_xg -= bias.home_bias * self.config.bias_correction_weight
            away_xg -= bias.away_bias * self.config.bias_correction_weight

        home_xg = float(np.clip(home_xg, *self.config.home_xg_bounds))
        away_xg = float(np.clip(away_xg, *self.config.away_xg_bounds))
        return ExpectedGoals(home_xg, away_xg, xg.source)

    def score_matrix(self, xg: ExpectedGoals) -> ScoreMatrix:
        goals = np.arange(0, self.config.max_goals + 1)
        home_probs = poisson.pmf(goals, xg.home)
        away_probs = poisson.pmf(goals, xg.away)
        return ScoreMatrix(np.outer(home_probs, away_probs))

    def predict(self, xg: ExpectedGoals) -> GoalModelPrediction:
        matrix = self.score_matrix(xg)
        return GoalModelPrediction(
            expected_goals=xg,
            matrix=matrix,
            probabilities=matrix.outcome_probabilities(),
        )
