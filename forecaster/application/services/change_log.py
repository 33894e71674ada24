import logging
from typing import Any, Dict

from ...domains.shared.exceptions import InfrastructureException
from ...domains.shared.repositories import ChangeLogRepository

logger = logging.getLogger(__name__)


def record_change(
    changelog: ChangeLogRepository, entry_type: str, details: Dict[str, Any], **tags: Any
) -> bool:
    """Append an audit entry; a failing change log never fails the caller."""
    try:
        changelog.append(entry_type, details, **tags)
        return True
    except (InfrastructureException, OSError) as e:
        logger.warning(f"Could not append {entry_type} to change log: {e}")
        return False
