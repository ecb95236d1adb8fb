"""Timezone and calendar-date utilities.

Ledger dates are plain calendar dates; "today" is resolved in US/Eastern so
the trailing "now" valuation point lands in the market's calendar month.
"""

from datetime import date, datetime
from typing import Union

import pytz
from dateutil import parser as date_parser

EASTERN_TZ = pytz.timezone("US/Eastern")


def now_eastern() -> datetime:
    """Return current time in US/Eastern timezone."""
    return datetime.now(EASTERN_TZ)


def today_eastern() -> date:
    """Return today's calendar date in US/Eastern timezone."""
    return now_eastern().date()


def parse_calendar_date(value: Union[str, date, datetime]) -> date:
    """
    Parse a calendar date from a string, date or datetime.

    Accepts ISO dates as well as the looser formats dateutil understands
    (e.g. "01/15/2024", "Jan 15 2024"). Aware datetimes are converted to
    US/Eastern before the date is taken.

    Raises:
        ValueError: if the string cannot be parsed.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(EASTERN_TZ)
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid date: {value!r}") from e
    return parse_calendar_date(parsed)
