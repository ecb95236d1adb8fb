"""Core utilities and shared functionality."""

from folio.core.timezone import (
    now_eastern,
    today_eastern,
    parse_calendar_date,
    EASTERN_TZ,
)
from folio.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    InsufficientSharesError,
    InsufficientCashError,
)
from folio.core.numeric import ZERO, ONE, SHARE_EPSILON, to_decimal, safe_divide

__all__ = [
    "now_eastern",
    "today_eastern",
    "parse_calendar_date",
    "EASTERN_TZ",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "InsufficientSharesError",
    "InsufficientCashError",
    "ZERO",
    "ONE",
    "SHARE_EPSILON",
    "to_decimal",
    "safe_divide",
]
