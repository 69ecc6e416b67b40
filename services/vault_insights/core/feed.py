"""
InsightsFeed - fetch → compute → publish, per activity view.

One view is keyed by (vault_id, time_range, action_type). Each refresh
takes a generation ticket before fetching; when the fetch returns, the
result is published only if no newer ticket was issued for the same view
in the meantime. Superseded results are discarded, never merged.

Publication swaps one frozen FeedSnapshot reference under the lock, so
readers see either the old snapshot or the new one, never a mix.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ..intel.insights_core import compute_insights
from ..intel.insights_core.classifier import FILTER_ALL, action_type_for_filter
from ..intel.insights_core.models import InsightSummary, TimeRange
from ..ports.data_source import ActivityQuery, DataSourceError, VaultDataSource


@dataclass(frozen=True)
class FeedSnapshot:
    """Published result for one view."""
    query: ActivityQuery
    summary: Optional[InsightSummary]
    total: int
    fetched_at: datetime
    generation: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InsightsFeed:
    """Keeps the latest insight summary per view, refreshed on demand or on a timer."""

    def __init__(
        self,
        source: VaultDataSource,
        logger: Any,
        page_limit: int = 100,
        stale_after_s: float = 30.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.logger = logger
        self.page_limit = max(1, int(page_limit))
        self.stale_after_s = float(stale_after_s)
        self._clock = clock or _utcnow

        self._lock = threading.Lock()
        self._generation = 0
        self._latest_ticket: dict[ActivityQuery, int] = {}
        self._snapshots: dict[ActivityQuery, FeedSnapshot] = {}

    @staticmethod
    def query_for(
        vault_id: str,
        time_range: TimeRange | str = TimeRange.H24,
        filters: Iterable[str] = (FILTER_ALL,),
    ) -> ActivityQuery:
        """Build the view key; raises ValueError for an unknown time range."""
        return ActivityQuery(
            vault_id=vault_id,
            time_range=TimeRange(time_range).value,
            action_type=action_type_for_filter(filters),
        )

    # ------------------------------------------------------------
    # Tickets
    # ------------------------------------------------------------

    def _issue(self, query: ActivityQuery) -> int:
        with self._lock:
            self._generation += 1
            self._latest_ticket[query] = self._generation
            return self._generation

    def _publish(self, ticket: int, snapshot: FeedSnapshot) -> bool:
        with self._lock:
            if self._latest_ticket.get(snapshot.query) != ticket:
                return False
            self._snapshots[snapshot.query] = snapshot
            return True

    # ------------------------------------------------------------
    # Public
    # ------------------------------------------------------------

    def refresh(self, query: ActivityQuery) -> Optional[FeedSnapshot]:
        """
        Fetch page 1 for the view and publish its summary.

        Returns the snapshot now current for the view, which is the previous
        one when the fetch failed or was superseded.
        """
        ticket = self._issue(query)
        try:
            page = self.source.fetch_activities(
                query.vault_id,
                page=1,
                limit=self.page_limit,
                action_type=query.action_type,
                time_range=query.time_range,
            )
        except DataSourceError as e:
            self.logger.warn(f"refresh failed for {query.vault_id} ({query.time_range}): {e}")
            return self.current(query)

        snapshot = FeedSnapshot(
            query=query,
            summary=compute_insights(page.items),
            total=page.total,
            fetched_at=self._clock(),
            generation=ticket,
        )

        if not self._publish(ticket, snapshot):
            self.logger.debug(f"discarded superseded refresh #{ticket} for {query.vault_id}")
            return self.current(query)

        if snapshot.summary is None:
            self.logger.info(f"no activity for {query.vault_id} ({query.time_range})")
        else:
            self.logger.ok(
                f"insights {query.vault_id} ({query.time_range}): "
                f"{snapshot.summary.transaction_count} tx, driver={snapshot.summary.hypothesis}"
            )
        return snapshot

    def current(self, query: ActivityQuery) -> Optional[FeedSnapshot]:
        with self._lock:
            return self._snapshots.get(query)

    def is_stale(self, query: ActivityQuery, now: Optional[datetime] = None) -> bool:
        snapshot = self.current(query)
        if snapshot is None:
            return True
        now = now or self._clock()
        return (now - snapshot.fetched_at).total_seconds() > self.stale_after_s

    def poll(
        self,
        query: ActivityQuery,
        stop_event: threading.Event,
        interval_s: float = 60.0,
        on_snapshot: Optional[Callable[[FeedSnapshot], None]] = None,
    ) -> None:
        """Refresh the view every interval_s until stop_event is set."""
        self.logger.info(f"polling {query.vault_id} ({query.time_range}) every {interval_s}s")
        while not stop_event.is_set():
            snapshot = self.refresh(query)
            if snapshot is not None and on_snapshot is not None:
                on_snapshot(snapshot)
            stop_event.wait(interval_s)
        self.logger.info(f"polling stopped for {query.vault_id}")
