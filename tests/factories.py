from datetime import datetime, timezone

SEASON = "2025-26"
NOW = datetime(2026, 2, 14, 12, 0, tzinfo=timezone.utc)


def _split(prefix, played, scored, conceded):
    return {
        "position": 1,
        "details": [
            {"type": {"code": f"{prefix}-matches-played"}, "value": played},
            {"type": {"code": f"{prefix}-scored"}, "value": scored},
            {"type": {"code": f"{prefix}-conceded"}, "value": conceded},
        ],
    }


def match_dict(
    fixture_id,
    home_id=None,
    away_id=None,
    kickoff="2026-02-10 19:30:00",
    league="Premier League",
    home_split=(10, 18, 9),
    away_split=(10, 12, 15),
    odds=(2.0, 3.5, 4.0),
):
    """A stored fixture as written by the ingest step."""
    home_id = home_id if home_id is not None else fixture_id * 10 + 1
    away_id = away_id if away_id is not None else fixture_id * 10 + 2
    data = {
        "fixtureId": fixture_id,
        "league": {"id": 8, "name": league},
        "homeTeam": {"id": home_id, "name": f"Team {home_id}"},
        "awayTeam": {"id": away_id, "name": f"Team {away_id}"},
        "kickoff": kickoff,
        "standings": {
            "home": _split("home", *home_split) if home_split else {},
            "away": _split("away", *away_split) if away_split else {},
        },
    }
    if odds:
        data["odds"] = {"home": odds[0], "draw": odds[1], "away": odds[2], "bookmaker": "bet365"}
    return data


def result_dict(fixture_id, home_goals, away_goals, status="finished"):
    return {
        "fixtureId": fixture_id,
        "homeGoals": home_goals,
        "awayGoals": away_goals,
        "status": status,
    }
