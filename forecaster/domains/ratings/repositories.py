from abc import ABC, abstractmethod

from .entities import RatingBook


class RatingRepository(ABC):
    @abstractmethod
    def load(self) -> RatingBook:
        pass

    @abstractmethod
    def save(self, book: RatingBook) -> None:
        pass

    def has_processed(self, period: str) -> bool:
        return self.load().has_processed(period)
