from abc import ABC, abstractmethod

from .entities import BiasCalibration


class BiasRepository(ABC):
    @abstractmethod
    def load(self) -> BiasCalibration:
        pass

    @abstractmethod
    def save(self, calibration: BiasCalibration) -> None:
        pass
