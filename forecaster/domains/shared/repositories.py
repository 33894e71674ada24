from abc import ABC, abstractmethod
from typing import Any, Dict, List


class ChangeLogRepository(ABC):
    """Single append-only audit trail shared by every derived-state mutation."""

    @abstractmethod
    def append(self, entry_type: str, details: Dict[str, Any], **tags: Any) -> None:
        pass

    @abstractmethod
    def entries(self) -> List[Dict[str, Any]]:
        pass
