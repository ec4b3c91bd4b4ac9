"""
FieldSync Core Primitives — Record Coercion
=============================================
Conversions applied once, at the store-adapter boundary.

Stored payloads are loosely typed: numbers may arrive as strings,
timestamps as ISO strings or epoch milliseconds. These helpers turn
them into Decimal / int / aware datetime, and back into JSON-safe
values for writing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"Expected a number, got {value!r}.")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Expected a number, got {value!r}.") from exc


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"Expected an integer, got {value!r}.")
    if isinstance(value, int):
        return value
    number = to_decimal(value)
    if number != number.to_integral_value():
        raise ValueError(f"Expected an integer, got {value!r}.")
    return int(number)


def to_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return bool(value)


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Accepts an aware/naive datetime, an ISO-8601 string or epoch
    milliseconds. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Expected an ISO-8601 timestamp, got {value!r}.") from exc
    else:
        raise ValueError(f"Expected a timestamp, got {value!r}.")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def decimal_to_str(value: Decimal) -> str:
    return str(value)


def datetime_to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None
