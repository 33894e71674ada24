from abc import ABC, abstractmethod

from .entities import EnsembleWeights


class WeightRepository(ABC):
    @abstractmethod
    def load(self) -> EnsembleWeights:
        pass

    @abstractmethod
    def save(self, weights: EnsembleWeights) -> None:
        pass
