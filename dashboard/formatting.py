from __future__ import annotations

from datetime import datetime, timezone, tzinfo


def serialize_ts(dt: datetime | None) -> str | None:
    # Naive datetimes are taken as local time, same as astimezone() does.
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def time_label(dt: datetime, tz: tzinfo | None = None) -> str:
    return dt.astimezone(tz).strftime("%H:%M:%S")


def datetime_label(dt: datetime, tz: tzinfo | None = None) -> str:
    return dt.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def format_ms(value: float) -> str:
    return f"{value:.2f} ms"


def format_pct(value: float) -> str:
    return f"{value:.2f}%"


def format_expiry(days_remaining: int) -> str:
    return f"Expires in {days_remaining} days"


def format_check_outcome(success: bool, error: str | None) -> str:
    if success:
        return "OK"
    return f"Error: {error or 'Unknown'}"
