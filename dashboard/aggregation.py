from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Sequence

from dashboard.formatting import (
    datetime_label,
    format_check_outcome,
    format_expiry,
    format_ms,
    format_pct,
    serialize_ts,
    time_label,
)
from dashboard.models import CheckResult

NANOS_PER_MS = 1_000_000
SECONDS_PER_DAY = 24 * 60 * 60

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"
UNKNOWN = "unknown"

COLOR_SUCCESS = "#22c55e"
COLOR_FAILURE = "#ef4444"


@dataclass
class Summary:
    total: int
    successes: int
    availability_pct: float
    avg_latency_ms: float
    min_latency_ms: float
    max_latency_ms: float
    health: str
    last_result: CheckResult | None = None

    def display(self) -> dict[str, str]:
        return {
            "availability": format_pct(self.availability_pct),
            "avg_latency": format_ms(self.avg_latency_ms),
            "min_latency": format_ms(self.min_latency_ms),
            "max_latency": format_ms(self.max_latency_ms),
        }

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["last_result"] = (
            self.last_result.model_dump(mode="json") if self.last_result else None
        )
        out["display"] = self.display()
        return out


@dataclass
class SeriesPoint:
    timestamp: str
    time: str
    duration_ms: float
    success: int
    status: str
    color: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CertificateSummary:
    expires_at: str
    days_remaining: int
    issuer: str | None = None
    subject: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["label"] = format_expiry(self.days_remaining)
        return out


def latency_ms(result: CheckResult) -> float:
    return result.duration_ns / NANOS_PER_MS


def health_status(last_result: CheckResult | None) -> str:
    if last_result is None:
        return UNKNOWN
    return HEALTHY if last_result.success else UNHEALTHY


def aggregate(results: Sequence[CheckResult]) -> Summary:
    total = len(results)
    if total == 0:
        return Summary(
            total=0,
            successes=0,
            availability_pct=0.0,
            avg_latency_ms=0.0,
            min_latency_ms=0.0,
            max_latency_ms=0.0,
            health=UNKNOWN,
        )

    successes = sum(1 for r in results if r.success)
    # Failed checks count towards latency too.
    durations = [latency_ms(r) for r in results]
    last = results[-1]
    return Summary(
        total=total,
        successes=successes,
        availability_pct=100 * successes / total,
        avg_latency_ms=sum(durations) / total,
        min_latency_ms=min(durations),
        max_latency_ms=max(durations),
        health=health_status(last),
        last_result=last,
    )


def to_series_point(result: CheckResult, tz: tzinfo | None = None) -> SeriesPoint:
    ok = result.success
    return SeriesPoint(
        timestamp=serialize_ts(result.timestamp) or "",
        time=time_label(result.timestamp, tz),
        duration_ms=latency_ms(result),
        success=1 if ok else 0,
        status="success" if ok else "failure",
        color=COLOR_SUCCESS if ok else COLOR_FAILURE,
        error=result.error or "Unknown error",
    )


def to_series(
    results: Sequence[CheckResult], tz: tzinfo | None = None
) -> list[SeriesPoint]:
    return [to_series_point(r, tz) for r in results]


def days_until(expiry: datetime, now: datetime | None = None) -> int:
    current = now or datetime.now(timezone.utc)
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    # Negative once expired; callers show it as is.
    return math.ceil((expiry - current).total_seconds() / SECONDS_PER_DAY)


def certificate_summary(
    results: Sequence[CheckResult], now: datetime | None = None
) -> CertificateSummary | None:
    if not results:
        return None
    last = results[-1]
    if last.cert_expiry is None:
        return None
    return CertificateSummary(
        expires_at=serialize_ts(last.cert_expiry) or "",
        days_remaining=days_until(last.cert_expiry, now),
        issuer=last.cert_issuer,
        subject=last.cert_subject,
    )


def availability_strip(
    results: Sequence[CheckResult], limit: int = 60, tz: tzinfo | None = None
) -> dict[str, Any]:
    """Most recent `limit` checks, oldest first, padded on the left."""
    recent = list(results[-limit:]) if limit > 0 else []
    cells = [
        {
            "timestamp": serialize_ts(r.timestamp),
            "success": r.success,
            "title": f"{datetime_label(r.timestamp, tz)} - "
            f"{format_check_outcome(r.success, r.error)}",
        }
        for r in recent
    ]
    return {
        "limit": limit,
        "cells": cells,
        "placeholders": max(0, limit - len(recent)),
    }
