from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.
    SQLite drops tzinfo on DateTime(timezone=True) columns; Postgres keeps it.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def one_month_from(moment: datetime) -> datetime:
    """
    Same day next month. Days that do not exist in the next month roll over
    into the month after (Jan 31 -> Mar 3, or Mar 2 in a leap year).
    """
    first_of_next_month = moment.replace(day=1) + relativedelta(months=1)
    return first_of_next_month + timedelta(days=moment.day - 1)
