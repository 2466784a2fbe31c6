"""
Tick processing: fetch, derive, select
"""
import logging
from typing import Sequence

from vmgr.errors import FetchFailure
from vmgr.metrics import MetricsSnapshot
from vmgr.rates import DerivedRow, RateDerivationEngine
from vmgr.selection import ListSelectionModel, SelectionState
from vmgr.stats_source import RawCounterSource


class VmMonitor:
    """
    Owns the derivation engine and the selection model for one host.

    ``collect`` does the slow libvirt round-trip and may run in a worker
    thread; ``apply`` mutates state and must run on the thread that also
    handles key events.
    """

    def __init__(self, source: RawCounterSource,
                 engine: RateDerivationEngine | None = None,
                 selection: ListSelectionModel | None = None):
        self.source = source
        self.engine = engine or RateDerivationEngine()
        self.selection = selection or ListSelectionModel()
        self.ticks = 0

    @property
    def rows(self) -> list[DerivedRow]:
        return self.selection.rows

    @property
    def state(self) -> SelectionState:
        return self.selection.state

    def selected_row(self) -> DerivedRow | None:
        return self.selection.selected_row()

    def collect(self) -> list[MetricsSnapshot]:
        """Fetches one snapshot per VM. Raises FetchFailure or ConnectionLost."""
        return self.source.fetch_snapshots()

    def apply(self, batch: Sequence[MetricsSnapshot]) -> list[DerivedRow]:
        """Derives the new rows and hands them to the selection model."""
        rows = self.engine.process(batch)
        self.selection.ingest(rows)
        self.ticks += 1
        logging.debug(f"Tick {self.ticks}: {len(rows)} VMs, selected={self.selection.selected_index}")
        return rows

    def tick(self) -> bool:
        """
        Runs a whole tick synchronously, for callers without a worker thread
        or event loop. VmgrApp splits the same steps between ``collect`` in
        a worker and ``apply`` on the event loop.
        Returns False when the fetch failed; the previous rows are then kept.
        """
        try:
            batch = self.collect()
        except FetchFailure as e:
            logging.warning(f"Skipping tick, stats fetch failed: {e}")
            return False
        self.apply(batch)
        return True
