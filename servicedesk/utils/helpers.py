"""Shared parsing helpers.

parse_instant: ISO date/datetime string → aware UTC datetime (raises ValidationError)
parse_int_id:  path/query id → int or None
"""
import logging
from datetime import date, datetime, timezone

from servicedesk.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def parse_instant(value, field: str = "date"):
    """Parse an ISO-8601 date or datetime into an aware UTC datetime.

    Returns None for empty input. Supports:
    - YYYY-MM-DD              → midnight UTC of that day
    - YYYY-MM-DDTHH:MM:SS     → treated as UTC when no offset is given
    - YYYY-MM-DDTHH:MM:SSZ    → trailing Z accepted
    - datetime / date objects

    Raises:
        ValidationError: value is present but not a recognisable date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Rejected %s value %r", field, value)
            raise ValidationError(
                f"Invalid {field}", details={field: f"{field} must be an ISO-8601 date"},
            ) from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_int_id(value):
    """Coerce an identity reference to int. Returns None on bad input."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
