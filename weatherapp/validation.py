"""
Date range validation.

Runs before any network call, so a bad request never touches the upstream
services or the database.
"""

from __future__ import annotations

from datetime import date, timedelta
import re

from .errors import InvalidDateFormat, DateOrderError, RangeTooLarge


# Keeps API calls fast and stored blobs small.
MAX_RANGE_DAYS = 31

# Days shown by default when a plain search is auto-saved.
DEFAULT_RANGE_DAYS = 4

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_iso_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string into a real calendar date."""
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        raise InvalidDateFormat("Dates must be in YYYY-MM-DD format.")
    try:
        return date.fromisoformat(value)
    except ValueError:
        # e.g. 2024-02-30 or 2024-13-01
        raise InvalidDateFormat("Dates must be in YYYY-MM-DD format.") from None


def validate_date_range(start_date: str, end_date: str) -> tuple[date, date]:
    """
    Business rule validations for date ranges.

    Returns the parsed (start, end) pair, raises a WeatherError subclass otherwise.
    """
    start = parse_iso_date(start_date)
    end = parse_iso_date(end_date)

    if start > end:
        raise DateOrderError("Start date must be before end date.")

    if (end - start).days > MAX_RANGE_DAYS:
        raise RangeTooLarge(f"Date range must be {MAX_RANGE_DAYS} days or fewer.")

    return start, end


def default_date_range(today: date) -> tuple[str, str]:
    """Range used when a search is saved without explicit dates."""
    return today.isoformat(), (today + timedelta(days=DEFAULT_RANGE_DAYS)).isoformat()
