"""
Click time estimation.

The estimated click instant is the purchase instant minus the conversion
duration reported by the bot. Purchase tokens use the Brazilian day-first
format "DD/MM/YYYY HH:MM" (24h clock, seconds assumed zero) and are treated
as naive local times, the same clock UTMify reports event times in.
"""

import re
from datetime import datetime, timedelta

from sale_attribution.core.exceptions import MalformedTimestamp
from sale_attribution.models.schemas import ConversionDuration


PURCHASE_TOKEN_PATTERN = re.compile(r"(\d{2})/(\d{2})/(\d{4}) (\d{2}):(\d{2})")

CLICK_TIME_FORMAT = "%d/%m/%Y %H:%M"

QUERY_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_purchase_datetime(token: str) -> datetime:
    """
    Parse a "DD/MM/YYYY HH:MM" token.

    Raises:
        MalformedTimestamp: If the token does not have the expected shape or any
            component is out of range (month 13, 31/02, hour 24, ...).
    """
    if not isinstance(token, str):
        raise MalformedTimestamp(token, "expected a string")

    match = PURCHASE_TOKEN_PATTERN.fullmatch(token.strip())
    if not match:
        raise MalformedTimestamp(token, "expected DD/MM/YYYY HH:MM")

    day, month, year, hour, minute = (int(group) for group in match.groups())
    try:
        return datetime(year, month, day, hour, minute)
    except ValueError as e:
        raise MalformedTimestamp(token, str(e)) from e


def subtract_duration(instant: datetime, duration: ConversionDuration) -> datetime:
    """Subtract days, then hours, then minutes, then seconds."""
    instant -= timedelta(days=duration.days)
    instant -= timedelta(hours=duration.hours)
    instant -= timedelta(minutes=duration.minutes)
    instant -= timedelta(seconds=duration.seconds)
    return instant


def estimate_click_time(purchase_datetime: str, duration: ConversionDuration) -> datetime:
    """
    Estimate when the ad click that led to a purchase happened.

    Args:
        purchase_datetime: Purchase token in "DD/MM/YYYY HH:MM" form.
        duration: Elapsed time between click and purchase.

    Returns:
        Naive datetime of the estimated click.

    Raises:
        MalformedTimestamp: If purchase_datetime cannot be parsed.

    Example:
        >>> estimate_click_time("01/03/2024 00:10", ConversionDuration(days=1, hours=0, minutes=0, seconds=0))
        datetime.datetime(2024, 2, 29, 0, 10)
    """
    return subtract_duration(parse_purchase_datetime(purchase_datetime), duration)


def format_click_time(instant: datetime) -> str:
    return instant.strftime(CLICK_TIME_FORMAT)


def format_query_timestamp(instant: datetime) -> str:
    return instant.strftime(QUERY_TIMESTAMP_FORMAT)
