from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Union

from dashboard.formatting import serialize_ts

CUSTOM_TOKEN = "custom"
DEFAULT_TOKEN = "1h"

RANGE_OPTIONS: tuple[tuple[str, str], ...] = (
    ("1h", "Last 1 Hour"),
    ("6h", "Last 6 Hours"),
    ("12h", "Last 12 Hours"),
    ("24h", "Last 24 Hours"),
    ("168h", "Last 7 Days"),
    ("720h", "Last 30 Days"),
    ("2160h", "Last Quarter"),
    ("8760h", "Last Year"),
    (CUSTOM_TOKEN, "Custom"),
)

RELATIVE_TOKENS = frozenset(token for token, _ in RANGE_OPTIONS if token != CUSTOM_TOKEN)


class InvalidRangeError(ValueError):
    pass


@dataclass(frozen=True)
class RelativeRange:
    token: str = DEFAULT_TOKEN

    def __post_init__(self) -> None:
        if self.token not in RELATIVE_TOKENS:
            raise InvalidRangeError(f"Unknown range: {self.token!r}")


@dataclass(frozen=True)
class CustomRange:
    start: datetime | None = None
    end: datetime | None = None

    @property
    def complete(self) -> bool:
        return self.start is not None and self.end is not None


RangeSelection = Union[RelativeRange, CustomRange]


@dataclass(frozen=True)
class Pending:
    """An incomplete custom range. Nothing should be queried for it."""


PENDING = Pending()


@dataclass(frozen=True)
class HistoryQuery:
    duration: str | None = None
    start: str | None = None
    end: str | None = None

    def params(self) -> dict[str, str]:
        if self.duration is not None:
            return {"duration": self.duration}
        return {"from": self.start or "", "to": self.end or ""}


def resolve(selection: RangeSelection) -> HistoryQuery | Pending:
    if isinstance(selection, RelativeRange):
        # The backend interprets the duration; no arithmetic here.
        return HistoryQuery(duration=selection.token)
    if not selection.complete:
        return PENDING
    # No start <= end check, the backend decides what an empty range means.
    return HistoryQuery(
        start=serialize_ts(selection.start),
        end=serialize_ts(selection.end),
    )


def parse_bound(raw: str | None, field: str) -> datetime | None:
    """Parse a datetime-local style value; blank means unset."""
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidRangeError(f"Invalid '{field}' time: {raw!r}") from exc


def parse_selection(
    range_token: str | None,
    start: str | None = None,
    end: str | None = None,
) -> RangeSelection:
    token = range_token or DEFAULT_TOKEN
    if token == CUSTOM_TOKEN:
        return CustomRange(start=parse_bound(start, "from"), end=parse_bound(end, "to"))
    return RelativeRange(token)


@dataclass(frozen=True)
class RangeState:
    """Range picker state.

    Keeps the last relative token and the custom bounds side by side so
    flipping between the two modes loses neither of them.
    """

    token: str = DEFAULT_TOKEN
    is_custom: bool = False
    custom_start: datetime | None = None
    custom_end: datetime | None = None

    def choose(self, token: str) -> RangeState:
        if token == CUSTOM_TOKEN:
            return replace(self, is_custom=True)
        RelativeRange(token)
        return replace(self, token=token, is_custom=False)

    def with_start(self, start: datetime | None) -> RangeState:
        return replace(self, custom_start=start)

    def with_end(self, end: datetime | None) -> RangeState:
        return replace(self, custom_end=end)

    @property
    def selection(self) -> RangeSelection:
        if self.is_custom:
            return CustomRange(self.custom_start, self.custom_end)
        return RelativeRange(self.token)
