"""Wire form of temporal values for the Data API (``{"$date": millis}``).

The Data API stores dates with millisecond precision as UTC instants, so
values are normalised to aware UTC ``datetime`` truncated to the
millisecond before they are stored or compared.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

DATE_KEY = "$date"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def normalize_temporal(value: Any) -> Any:
    """Return *value* as an aware UTC datetime if it is a date or datetime.

    Naive datetimes are taken as UTC, dates as midnight UTC.  Anything else
    is returned unchanged.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.replace(microsecond=value.microsecond // 1000 * 1000)
    if isinstance(value, date):
        return datetime.combine(value, time(0), tzinfo=timezone.utc)
    return value


def is_date_wire(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and len(value) == 1
        and DATE_KEY in value
        and isinstance(value[DATE_KEY], int)
        and not isinstance(value[DATE_KEY], bool)
    )


def encode_value(value: Any) -> Any:
    """Encode date/datetime as ``{"$date": epoch_millis}``, decimals as numbers."""
    if isinstance(value, date):
        return {DATE_KEY: (normalize_temporal(value) - _EPOCH) // _MILLISECOND}
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def decode_value(value: Any) -> Any:
    """Inverse of ``encode_value`` for values read back from the Data API."""
    if is_date_wire(value):
        return _EPOCH + value[DATE_KEY] * _MILLISECOND
    return value
