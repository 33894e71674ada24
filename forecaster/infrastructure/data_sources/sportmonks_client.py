import logging
import time
from typing import Any, Dict, List, Optional

from curl_cffi import requests

from ...domains.data.entities import ResultRecord
from ...domains.shared.exceptions import DataSourceException

logger = logging.getLogger(__name__)

FINISHED_STATES = {"FT", "AET", "FT_PEN"}
POSTPONED_STATES = {"POSTP", "CANC"}
LIVE_STATES = {"HT", "1ST_HALF", "2ND_HALF"}

FULLTIME_RESULT_MARKET = 1
BET365_ID = 2
MAX_PAGES = 10


class SportmonksClient:
    """Thin client over the Sportmonks v3 football API."""

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str],
        delay: float = 0.2,
        timeout: float = 30,
        session=None,
        sleep=time.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        self.delay = delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self.sleep = sleep
        self.headers = {"Accept": "application/json"}

    def _get(self, endpoint: str, **params) -> Dict[str, Any]:
        if not self.api_token:
            raise DataSourceException("SPORTMONKS_API_TOKEN is not set")

        query = {"api_token": self.api_token}
        query.update({k: v for k, v in params.items() if v is not None})
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.get(
                url, params=query, headers=self.headers, timeout=self.timeout
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestsError, ValueError) as e:
            raise DataSourceException(f"Sportmonks request {endpoint} failed: {e}") from e
        finally:
            self.sleep(self.delay)

    def _get_all_pages(self, endpoint: str, **params) -> List[Dict[str, Any]]:
        data: List[Dict[str, Any]] = []
        per_page = params.pop("per_page", 50)
        for page in range(1, MAX_PAGES + 1):
            result = self._get(endpoint, page=page, per_page=per_page, **params)
            if isinstance(result.get("data"), list):
                data.extend(result["data"])
            if not (result.get("pagination") or {}).get("has_more"):
                break
        return data

    def league(self, league_id: int) -> Dict[str, Any]:
        return self._get(f"/leagues/{league_id}", include="currentSeason").get("data") or {}

    def current_round(self, season_id: int) -> Optional[Dict[str, Any]]:
        rounds = self._get(f"/rounds/seasons/{season_id}", include="stage", per_page=50)
        return next((r for r in rounds.get("data") or [] if r.get("is_current")), None)

    def fixtures_between(self, start: str, end: str, league_id: int) -> List[Dict[str, Any]]:
        return self._get_all_pages(
            f"/fixtures/between/{start}/{end}",
            include="participants;scores;league;venue;state;round",
            filters=f"fixtureLeagues:{league_id}",
        )

    def standings(self, season_id: int) -> List[Dict[str, Any]]:
        return (
            self._get(f"/standings/seasons/{season_id}", include="participant;details.type").get("data")
            or []
        )

    def pre_match_odds(self, fixture_id: int) -> Dict[str, Any]:
        """1X2 prices, bet365 when it quotes all three outcomes, else the first bookmaker."""
        odds = {"home": 0, "draw": 0, "away": 0, "bookmaker": ""}
        data = (
            self._get(
                f"/odds/pre-match/fixtures/{fixture_id}/markets/{FULLTIME_RESULT_MARKET}",
                include="market;bookmaker",
            ).get("data")
            or []
        )
        bet365 = [o for o in data if o.get("bookmaker_id") == BET365_ID]
        source = bet365 if len(bet365) >= 3 else data[:3]

        for entry in source:
            label = entry.get("label")
            if label in ("Home", "1"):
                odds["home"] = float(entry["value"])
            elif label in ("Draw", "X"):
                odds["draw"] = float(entry["value"])
            elif label in ("Away", "2"):
                odds["away"] = float(entry["value"])
            bookmaker = (entry.get("bookmaker") or {}).get("name")
            if bookmaker:
                odds["bookmaker"] = bookmaker
        return odds

    def fixture_result(self, fixture_id: int) -> Optional[ResultRecord]:
        fixture = self._get(f"/fixtures/{fixture_id}", include="scores;state").get("data") or {}
        return parse_fixture_result(fixture_id, fixture)


def _current_goals(fixture: Dict[str, Any], participant: str) -> int:
    for score in fixture.get("scores") or []:
        if (
            score.get("description") == "CURRENT"
            and (score.get("score") or {}).get("participant") == participant
        ):
            return int(score["score"].get("goals") or 0)
    return 0


def parse_fixture_result(fixture_id: int, fixture: Dict[str, Any]) -> Optional[ResultRecord]:
    """Map a provider fixture state onto a ResultRecord; None when not started."""
    state = (fixture.get("state") or {}).get("developer_name") or ""

    if state in FINISHED_STATES:
        status = "finished"
    elif state in POSTPONED_STATES:
        return ResultRecord(fixture_id, 0, 0, "postponed")
    elif "LIVE" in state or state in LIVE_STATES:
        status = "live"
    else:
        return None

    return ResultRecord(
        fixture_id=fixture_id,
        home_goals=_current_goals(fixture, "home"),
        away_goals=_current_goals(fixture, "away"),
        status=status,
    )


def build_match(
    fixture: Dict[str, Any],
    league: Dict[str, Any],
    round_name: str,
    standings: Dict[int, Dict[str, Any]],
    odds: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """Assemble the stored fixture context from provider payloads."""
    participants = fixture.get("participants") or []
    home = next((p for p in participants if (p.get("meta") or {}).get("location") == "home"), None)
    away = next((p for p in participants if (p.get("meta") or {}).get("location") == "away"), None)
    if home is None or away is None:
        logger.warning(f"Skipping fixture {fixture.get('id')}: missing participants")
        return None

    match = {
        "fixtureId": fixture["id"],
        "league": {"id": league["id"], "name": league["name"]},
        "round": int(round_name) if str(round_name).isdigit() else round_name,
        "seasonId": league.get("seasonId"),
        "homeTeam": {"id": home["id"], "name": home["name"], "shortCode": home.get("short_code")},
        "awayTeam": {"id": away["id"], "name": away["name"], "shortCode": away.get("short_code")},
        "kickoff": fixture.get("starting_at"),
        "venue": (fixture.get("venue") or {}).get("name", ""),
        "standings": {
            "home": standings.get(home["id"], {}),
            "away": standings.get(away["id"], {}),
        },
        "odds": odds,
        "dataGaps": [],
    }
    if not odds.get("home"):
        match["dataGaps"].append("odds")
    return match
