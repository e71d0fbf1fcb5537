"""Date parsing utilities."""

import re
from datetime import date, datetime
from dateutil import parser as date_parser

_US_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_US_DASH = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")


def parse_date(value) -> date:
    """Parse a ledger date into a calendar date.

    Supports:
    - date/datetime objects (spreadsheet cells)
    - "MM/DD/YYYY", "YYYY-MM-DD", "MM-DD-YYYY"
    - anything else dateutil understands, e.g. "January 15, 2024"

    The calendar day written in the input is returned as-is; timestamps with
    an offset are never converted to another zone, so the result does not
    depend on the process timezone.

    Args:
        value: Date string or date/datetime object

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or not str(value).strip():
        raise ValueError("Empty date string")

    date_str = str(value).strip()

    try:
        match = _US_SLASH.match(date_str) or _US_DASH.match(date_str)
        if match:
            month, day, year = (int(part) for part in match.groups())
            return date(year, month, day)

        match = _ISO.match(date_str)
        if match:
            year, month, day = (int(part) for part in match.groups())
            return date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")

    try:
        dt = date_parser.parse(date_str, ignoretz=True)
        return dt.date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
