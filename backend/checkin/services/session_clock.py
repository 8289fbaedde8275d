"""Scheduled time window checks for lecture sessions."""
from datetime import datetime, date as date_type, time as time_type
from typing import Optional, Tuple

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%H:%M'

def local_now() -> datetime:
    """Current local wall-clock time."""
    return datetime.now()

def parse_date(value: str) -> date_type:
    """Parse a YYYY-MM-DD string."""
    return datetime.strptime(value, DATE_FORMAT).date()

def parse_time(value: str) -> time_type:
    """Parse an HH:MM string."""
    return datetime.strptime(value, TIME_FORMAT).time()

def session_window(start_time: str, end_time: str, date: str) -> Tuple[datetime, datetime]:
    """Combine the session date with its start and end wall-clock times."""
    day = parse_date(date)
    return (
        datetime.combine(day, parse_time(start_time)),
        datetime.combine(day, parse_time(end_time))
    )

def is_session_active(
    start_time: str,
    end_time: str,
    date: str,
    now: Optional[datetime] = None
) -> bool:
    """
    Check whether ``now`` falls inside the session's window.

    The session must be on today's local calendar date, and ``now`` must lie
    in [start, end] with both ends inclusive. A window with start >= end is
    empty. Strings that do not parse mean the session is not active.
    """
    if now is None:
        now = local_now()

    try:
        start, end = session_window(start_time, end_time, date)
    except (TypeError, ValueError):
        return False

    if start >= end or now.date() != start.date():
        return False

    return start <= now <= end
