"""Parsing of date and time arguments given on the command line."""

import datetime as dt


def parse_date_input(date_str: str) -> dt.date:
    """Parse a date in YYYY-MM-DD format.

    Raises:
        ValueError: If the format is invalid
    """
    try:
        return dt.datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")


def parse_datetime_input(value: str) -> dt.datetime:
    """Parse an ISO 8601 timestamp; a value without an offset is taken as UTC.

    Example:
        >>> parse_datetime_input("2024-03-04T09:00")
        datetime.datetime(2024, 3, 4, 9, 0, tzinfo=datetime.timezone.utc)

    Raises:
        ValueError: If the value is not an ISO 8601 timestamp
    """
    try:
        parsed = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(
            f"Invalid timestamp: {value}. Expected ISO format such as 2024-03-04T09:00"
        )
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed
