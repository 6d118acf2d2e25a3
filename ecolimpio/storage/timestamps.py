"""Fixed-width UTC timestamps so ISO strings compare correctly in SQL"""

from datetime import date, datetime, timezone

_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def to_db(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(_FORMAT)


def date_to_db(value: date) -> str:
    return value.isoformat()
