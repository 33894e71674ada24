from typing import List, Optional

from ...domains.data.entities import (
    GAMEWEEK_PATTERN,
    MatchRecord,
    ResultRecord,
    gameweek_number,
)
from ...domains.data.repositories import GameweekRepository
from ...domains.evaluation.entities import EvaluationRecord
from ...domains.predictions.entities import PredictionRecord
from ...domains.shared.exceptions import ArtifactNotFoundException
from ..adapters.file_adapter import JSONFileAdapter

MATCHES_FILE = "matches.json"
PREDICTIONS_FILE = "predictions.json"
RESULTS_FILE = "results.json"
EVALUATION_FILE = "evaluation.json"


class JSONGameweekRepository(GameweekRepository):
    """Gameweek artifacts under ``gameweeks/<season>/GW<n>/``."""

    def __init__(self, file_adapter: JSONFileAdapter, season: str):
        self.file_adapter = file_adapter
        self._season = season

    @property
    def season(self) -> str:
        return self._season

    def _file(self, gameweek: str, name: str) -> str:
        return f"gameweeks/{self._season}/{gameweek}/{name}"

    def _require(self, gameweek: str, name: str):
        data = self.file_adapter.read_json(self._file(gameweek, name))
        if data is None:
            raise ArtifactNotFoundException(
                f"{name} not found for {self._season}/{gameweek}"
            )
        return data

    def list_gameweeks(self) -> List[str]:
        names = [
            name
            for name in self.file_adapter.list_dirs(f"gameweeks/{self._season}")
            if GAMEWEEK_PATTERN.match(name)
        ]
        return sorted(names, key=gameweek_number)

    def has_matches(self, gameweek: str) -> bool:
        return self.file_adapter.file_exists(self._file(gameweek, MATCHES_FILE))

    def get_matches(self, gameweek: str) -> List[MatchRecord]:
        return [MatchRecord.from_dict(m) for m in self._require(gameweek, MATCHES_FILE)]

    def save_matches(self, gameweek: str, matches: List[dict]) -> None:
        self.file_adapter.write_json(matches, self._file(gameweek, MATCHES_FILE))

    def has_predictions(self, gameweek: str) -> bool:
        return self.file_adapter.file_exists(self._file(gameweek, PREDICTIONS_FILE))

    def get_predictions(self, gameweek: str) -> List[PredictionRecord]:
        return [
            PredictionRecord.from_dict(p)
            for p in self._require(gameweek, PREDICTIONS_FILE)
        ]

    def save_predictions(
        self, gameweek: str, predictions: List[PredictionRecord]
    ) -> None:
        self.file_adapter.write_json(
            [p.to_dict() for p in predictions], self._file(gameweek, PREDICTIONS_FILE)
        )

    def has_results(self, gameweek: str) -> bool:
        return self.file_adapter.file_exists(self._file(gameweek, RESULTS_FILE))

    def get_results(self, gameweek: str) -> List[ResultRecord]:
        return [ResultRecord.from_dict(r) for r in self._require(gameweek, RESULTS_FILE)]

    def save_results(self, gameweek: str, results: List[ResultRecord]) -> None:
        self.file_adapter.write_json(
            [r.to_dict() for r in results], self._file(gameweek, RESULTS_FILE)
        )

    def has_evaluation(self, gameweek: str) -> bool:
        return self.file_adapter.file_exists(self._file(gameweek, EVALUATION_FILE))

    def get_evaluation(self, gameweek: str) -> Optional[EvaluationRecord]:
        data = self.file_adapter.read_json(self._file(gameweek, EVALUATION_FILE))
        return EvaluationRecord.from_dict(data) if data is not None else None

    def save_evaluation(self, gameweek: str, evaluation: EvaluationRecord) -> None:
        self.file_adapter.write_json(
            evaluation.to_dict(), self._file(gameweek, EVALUATION_FILE)
        )
