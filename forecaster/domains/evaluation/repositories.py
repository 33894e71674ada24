from abc import ABC, abstractmethod

from .entities import PerformanceLog


class PerformanceLogRepository(ABC):
    @abstractmethod
    def load(self) -> PerformanceLog:
        pass

    @abstractmethod
    def save(self, log: PerformanceLog) -> None:
        pass
