from datetime import datetime, timezone
from typing import Optional, Union

import pandas as pd


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_kickoff(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse a provider kickoff ("2026-02-10 19:30:00", UTC) into an aware datetime.

    Returns None for missing or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    parsed = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def hours_until(moment: datetime, now: Optional[datetime] = None) -> float:
    return hours_between(now or utc_now(), moment)


def hours_since(moment: datetime, now: Optional[datetime] = None) -> float:
    return hours_between(moment, now or utc_now())


def isoformat_now() -> str:
    return utc_now().isoformat()
