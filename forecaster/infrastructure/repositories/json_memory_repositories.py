"""
Durable JSON documents under ``memory/``: ratings, weights, goal bias,
performance log and the shared change log.
"""

from typing import Any, Dict, List

from ...domains.evaluation.entities import PerformanceLog
from ...domains.evaluation.repositories import PerformanceLogRepository
from ...domains.goals.entities import BiasCalibration, LeagueBias
from ...domains.goals.repositories import BiasRepository
from ...domains.ratings.entities import RatingBook, TeamRating
from ...domains.ratings.repositories import RatingRepository
from ...domains.shared.repositories import ChangeLogRepository
from ...domains.weights.entities import EnsembleWeights
from ...domains.weights.repositories import WeightRepository
from ...utils.datetime_helpers import isoformat_now
from ..adapters.file_adapter import JSONFileAdapter

ELO_FILE = "memory/elo-ratings.json"
WEIGHTS_FILE = "memory/signal-weights.json"
CALIBRATION_FILE = "memory/poisson-calibration.json"
PERFORMANCE_FILE = "memory/performance-log.json"
CHANGELOG_FILE = "memory/changelog.json"


class JSONRatingRepository(RatingRepository):
    def __init__(self, file_adapter: JSONFileAdapter):
        self.file_adapter = file_adapter

    def load(self) -> RatingBook:
        data = self.file_adapter.read_json(ELO_FILE, default={})
        processed = list(data.get("processedGameweeks") or [])
        last = data.get("lastEvaluatedGW")
        if last and last not in processed:
            processed.append(last)
        return RatingBook(
            ratings={
                team_id: TeamRating.from_dict(team_id, entry)
                for team_id, entry in (data.get("ratings") or {}).items()
            },
            processed_periods=processed,
            last_updated=data.get("lastUpdated"),
        )

    def save(self, book: RatingBook) -> None:
        data = {
            "ratings": {team_id: r.to_dict() for team_id, r in book.ratings.items()},
            "lastUpdated": book.last_updated,
            "processedGameweeks": book.processed_periods,
        }
        if book.processed_periods:
            data["lastEvaluatedGW"] = book.processed_periods[-1]
        self.file_adapter.write_json(data, ELO_FILE)


class JSONWeightRepository(WeightRepository):
    """Blend weights live under ``modelWeights``; other keys are left untouched."""

    def __init__(self, file_adapter: JSONFileAdapter):
        self.file_adapter = file_adapter

    def load(self) -> EnsembleWeights:
        data = self.file_adapter.read_json(WEIGHTS_FILE, default={})
        return EnsembleWeights.from_dict(data.get("modelWeights"))

    def save(self, weights: EnsembleWeights) -> None:
        data = self.file_adapter.read_json(WEIGHTS_FILE, default={})
        data["modelWeights"] = weights.to_dict()
        data["lastUpdated"] = isoformat_now()
        self.file_adapter.write_json(data, WEIGHTS_FILE)


class JSONBiasRepository(BiasRepository):
    def __init__(self, file_adapter: JSONFileAdapter):
        self.file_adapter = file_adapter

    def load(self) -> BiasCalibration:
        data = self.file_adapter.read_json(CALIBRATION_FILE, default={})
        return BiasCalibration(
            leagues={
                league: LeagueBias.from_dict(league, entry)
                for league, entry in (data.get("leagues") or {}).items()
            },
            last_gameweek=data.get("lastGameweek"),
            last_updated=data.get("lastUpdated"),
            history=list(data.get("history") or []),
        )

    def save(self, calibration: BiasCalibration) -> None:
        self.file_adapter.write_json(
            {
                "lastUpdated": calibration.last_updated,
                "lastGameweek": calibration.last_gameweek,
                "leagues": {
                    league: bias.to_dict() for league, bias in calibration.leagues.items()
                },
                "history": calibration.history,
            },
            CALIBRATION_FILE,
        )


class JSONPerformanceLogRepository(PerformanceLogRepository):
    def __init__(self, file_adapter: JSONFileAdapter):
        self.file_adapter = file_adapter

    def load(self) -> PerformanceLog:
        return PerformanceLog.from_dict(self.file_adapter.read_json(PERFORMANCE_FILE))

    def save(self, log: PerformanceLog) -> None:
        self.file_adapter.write_json(log.to_dict(), PERFORMANCE_FILE)


class JSONChangeLogRepository(ChangeLogRepository):
    def __init__(self, file_adapter: JSONFileAdapter):
        self.file_adapter = file_adapter

    def append(self, entry_type: str, details: Dict[str, Any], **tags: Any) -> None:
        entries = self.entries()
        entries.append(
            {"timestamp": isoformat_now(), "type": entry_type, **tags, "details": details}
        )
        self.file_adapter.write_json(entries, CHANGELOG_FILE)

    def entries(self) -> List[Dict[str, Any]]:
        return list(self.file_adapter.read_json(CHANGELOG_FILE, default=[]))
