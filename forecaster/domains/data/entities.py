import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...utils.datetime_helpers import parse_kickoff
from ..shared.exceptions import InvalidMatchDataException
from ..shared.value_objects import OddsTriple, Outcome

GAMEWEEK_PATTERN = re.compile(r"^GW(\d+)$")


def gameweek_number(name: str) -> int:
    match = GAMEWEEK_PATTERN.match(name)
    if not match:
        raise ValueError(f"Not a gameweek name: {name}")
    return int(match.group(1))


@dataclass
class Team:
    id: str
    name: str

    def __hash__(self):
        return hash(self.id)


@dataclass(frozen=True)
class SideStandings:
    """Season-to-date venue split for one team."""

    played: Optional[float] = None
    scored: Optional[float] = None
    conceded: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return (
            self.played is not None
            and self.played > 0
            and self.scored is not None
            and self.conceded is not None
        )

    @property
    def scored_per_game(self) -> float:
        return self.scored / self.played if self.is_complete else 0.0

    @property
    def conceded_per_game(self) -> float:
        return self.conceded / self.played if self.is_complete else 0.0


@dataclass(frozen=True)
class StandingsSnapshot:
    """Home team's home split and away team's away split at ingest time."""

    home: SideStandings = field(default_factory=SideStandings)
    away: SideStandings = field(default_factory=SideStandings)

    @property
    def is_complete(self) -> bool:
        return self.home.is_complete and self.away.is_complete

    @staticmethod
    def _detail(details: Optional[List[dict]], code: str) -> Optional[float]:
        for entry in details or []:
            if (entry.get("type") or {}).get("code") == code:
                return entry.get("value")
        return None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "StandingsSnapshot":
        data = data or {}
        home_details = (data.get("home") or {}).get("details")
        away_details = (data.get("away") or {}).get("details")
        return cls(
            home=SideStandings(
                played=cls._detail(home_details, "home-matches-played"),
                scored=cls._detail(home_details, "home-scored"),
                conceded=cls._detail(home_details, "home-conceded"),
            ),
            away=SideStandings(
                played=cls._detail(away_details, "away-matches-played"),
                scored=cls._detail(away_details, "away-scored"),
                conceded=cls._detail(away_details, "away-conceded"),
            ),
        )


@dataclass
class MatchRecord:
    fixture_id: int
    league: str
    home_team: Team
    away_team: Team
    kickoff: Optional[datetime]
    standings: StandingsSnapshot = field(default_factory=StandingsSnapshot)
    odds: Optional[OddsTriple] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict) -> "MatchRecord":
        try:
            home = data["homeTeam"]
            away = data["awayTeam"]
            league = data.get("league") or {}
            return cls(
                fixture_id=int(data["fixtureId"]),
                league=league.get("name", "unknown") if isinstance(league, dict) else str(league),
                home_team=Team(id=str(home["id"]), name=home.get("name", str(home["id"]))),
                away_team=Team(id=str(away["id"]), name=away.get("name", str(away["id"]))),
                kickoff=parse_kickoff(data.get("kickoff")),
                standings=StandingsSnapshot.from_dict(data.get("standings")),
                odds=OddsTriple.from_dict(data.get("odds")),
                raw=data,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidMatchDataException(f"Malformed fixture: {e}") from e


@dataclass(frozen=True)
class ResultRecord:
    fixture_id: int
    home_goals: int
    away_goals: int
    status: str

    @property
    def is_finished(self) -> bool:
        return self.status == "finished"

    @property
    def outcome(self) -> Outcome:
        return Outcome.from_score(self.home_goals, self.away_goals)

    @property
    def score(self) -> str:
        return f"{self.home_goals}-{self.away_goals}"

    @classmethod
    def from_dict(cls, data: dict) -> "ResultRecord":
        try:
            return cls(
                fixture_id=int(data["fixtureId"]),
                home_goals=int(data.get("homeGoals") or 0),
                away_goals=int(data.get("awayGoals") or 0),
                status=data.get("status", ""),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidMatchDataException(f"Malformed result: {e}") from e

    def to_dict(self) -> dict:
        return {
            "fixtureId": self.fixture_id,
            "homeGoals": self.home_goals,
            "awayGoals": self.away_goals,
            "status": self.status,
        }


def finished_results(results: List[ResultRecord]) -> Dict[int, ResultRecord]:
    return {r.fixture_id: r for r in results if r.is_finished}
