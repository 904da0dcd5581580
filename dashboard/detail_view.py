from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Protocol, Sequence

from dashboard.aggregation import Summary, aggregate
from dashboard.models import CheckResult
from dashboard.ranges import HistoryQuery, Pending, RangeState, resolve

logger = logging.getLogger(__name__)


class HistorySource(Protocol):
    def get_history(self, endpoint_id: str, query: HistoryQuery) -> list[CheckResult]: ...


class DetailView:
    """History shown for one endpoint.

    Every fetch gets a ticket; only the newest ticket may replace the
    results, so a slow older response never overwrites a newer one.
    """

    def __init__(self, endpoint_id: str, range_state: RangeState | None = None) -> None:
        self.endpoint_id = endpoint_id
        self.range_state = range_state or RangeState()
        self._results: list[CheckResult] = []
        self._applied_query: HistoryQuery | None = None
        self._inflight_query: HistoryQuery | None = None
        self._ticket = 0
        self._lock = threading.Lock()

    def choose_range(self, token: str) -> None:
        self.range_state = self.range_state.choose(token)

    def set_custom_start(self, start: datetime | None) -> None:
        self.range_state = self.range_state.with_start(start)

    def set_custom_end(self, end: datetime | None) -> None:
        self.range_state = self.range_state.with_end(end)

    @property
    def results(self) -> list[CheckResult]:
        with self._lock:
            return list(self._results)

    @property
    def applied_query(self) -> HistoryQuery | None:
        return self._applied_query

    def summary(self) -> Summary:
        return aggregate(self.results)

    def begin(self) -> tuple[int, HistoryQuery] | None:
        query = resolve(self.range_state.selection)
        if isinstance(query, Pending):
            # Keep showing what we have until both bounds are set.
            return None
        with self._lock:
            if query == self._inflight_query:
                return None
            if self._inflight_query is None and query == self._applied_query:
                return None
            self._ticket += 1
            self._inflight_query = query
            return self._ticket, query

    def complete(self, ticket: int, results: Sequence[CheckResult]) -> bool:
        with self._lock:
            if ticket != self._ticket:
                logger.debug(
                    "Discarding stale history response %s for %s (latest %s)",
                    ticket,
                    self.endpoint_id,
                    self._ticket,
                )
                return False
            self._results = list(results)
            self._applied_query = self._inflight_query
            self._inflight_query = None
            return True

    def fail(self, ticket: int) -> None:
        with self._lock:
            if ticket == self._ticket:
                self._inflight_query = None

    def refresh(self, source: HistorySource) -> bool:
        started = self.begin()
        if started is None:
            return False
        ticket, query = started
        try:
            results = source.get_history(self.endpoint_id, query)
        except Exception:
            self.fail(ticket)
            raise
        return self.complete(ticket, results)
