from abc import ABC, abstractmethod
from typing import List, Optional

from ..evaluation.entities import EvaluationRecord
from ..predictions.entities import PredictionRecord
from .entities import MatchRecord, ResultRecord


class GameweekRepository(ABC):
    """Per-period artifacts of one season."""

    @property
    @abstractmethod
    def season(self) -> str:
        pass

    @abstractmethod
    def list_gameweeks(self) -> List[str]:
        """Gameweek names ordered by number, oldest first."""
        pass

    @abstractmethod
    def has_matches(self, gameweek: str) -> bool:
        pass

    @abstractmethod
    def get_matches(self, gameweek: str) -> List[MatchRecord]:
        pass

    @abstractmethod
    def save_matches(self, gameweek: str, matches: List[dict]) -> None:
        pass

    @abstractmethod
    def has_predictions(self, gameweek: str) -> bool:
        pass

    @abstractmethod
    def get_predictions(self, gameweek: str) -> List[PredictionRecord]:
        pass

    @abstractmethod
    def save_predictions(
        self, gameweek: str, predictions: List[PredictionRecord]
    ) -> None:
        pass

    @abstractmethod
    def has_results(self, gameweek: str) -> bool:
        pass

    @abstractmethod
    def get_results(self, gameweek: str) -> List[ResultRecord]:
        pass

    @abstractmethod
    def save_results(self, gameweek: str, results: List[ResultRecord]) -> None:
        pass

    @abstractmethod
    def has_evaluation(self, gameweek: str) -> bool:
        pass

    @abstractmethod
    def get_evaluation(self, gameweek: str) -> Optional[EvaluationRecord]:
        pass

    @abstractmethod
    def save_evaluation(self, gameweek: str, evaluation: EvaluationRecord) -> None:
        pass

    def list_evaluations(self) -> List[EvaluationRecord]:
        evaluations = []
        for gameweek in self.list_gameweeks():
            evaluation = self.get_evaluation(gameweek)
            if evaluation is not None:
                evaluations.append(evaluation)
        return evaluations
