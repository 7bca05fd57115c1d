"""Relative duration expressions such as ``"1h"``, ``"30 minutes"``, ``"2d ago"``."""

import re

MINUTE = 60
HOUR = 3600
DAY = 86400
WEEK = 604800
YEAR = 31557600

_DURATION_RE = re.compile(
    r"^(\+|-)? ?(\d+|\d+\.\d+) ?"
    r"(seconds?|secs?|s|minutes?|mins?|m|hours?|hrs?|h|days?|d|weeks?|w|years?|yrs?|y)"
    r"(?: (ago|from now))?$",
    re.IGNORECASE,
)


def parse_duration(expression: str) -> int:
    """Convert a duration expression to signed whole seconds.

    Raises ValueError when the expression is not understood.
    """
    match = _DURATION_RE.match(expression.strip())
    if match is None:
        raise ValueError(f"invalid duration: {expression!r}")
    sign, amount, unit, direction = match.groups()
    value = float(amount)
    unit = unit.lower()

    if unit in ("sec", "secs", "second", "seconds", "s"):
        seconds = round(value)
    elif unit in ("minute", "minutes", "min", "mins", "m"):
        seconds = round(value * MINUTE)
    elif unit in ("hour", "hours", "hr", "hrs", "h"):
        seconds = round(value * HOUR)
    elif unit in ("day", "days", "d"):
        seconds = round(value * DAY)
    elif unit in ("week", "weeks", "w"):
        seconds = round(value * WEEK)
    else:
        seconds = round(value * YEAR)

    if sign == "-" or (direction or "").lower() == "ago":
        return -seconds
    return seconds


def is_numeric(expression: str) -> bool:
    """True for a plain (optionally signed) integer string."""
    return re.fullmatch(r"[+-]?\d+", expression.strip()) is not None
