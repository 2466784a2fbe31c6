"""
Derive display rows from two time-separated counter snapshots
"""
from dataclasses import dataclass
from typing import Iterable

from vmgr.constants import NANOSECONDS_PER_SECOND, StatusLabel
from vmgr.metrics import MetricsSnapshot, VmIdentity

# binary scaling used for every byte total shown on screen
DISPLAY_UNIT = 1024


@dataclass(frozen=True)
class DerivedRow:
    """What the dashboard shows for one VM during one tick."""
    identity: VmIdentity
    cpu_percent: float
    mem_total_display: str
    status_label: str
    net_interface_name: str
    net_rx_display: float
    net_tx_display: float
    disk_name: str
    disk_path: str
    disk_read_display: float
    disk_write_display: float

    @property
    def name(self) -> str:
        return self.identity.name

    @property
    def cpu_usage_display(self) -> str:
        return f"{self.cpu_percent:.2f}%"


def saturating_sub(current: int, previous: int) -> int:
    """Subtracts two cumulative counters, clamping at zero when the counter was reset."""
    if current <= previous:
        return 0
    return current - previous


def cpu_percent(previous: MetricsSnapshot, current: MetricsSnapshot) -> float:
    """
    CPU utilisation between two snapshots of the same VM, rounded to 2 decimals.

    A counter reset (VM restart) or a non-positive elapsed time gives 0.00.
    """
    elapsed = current.captured_at - previous.captured_at
    if elapsed <= 0.0:
        return 0.0
    delta_ns = saturating_sub(current.cpu_time_ns, previous.cpu_time_ns)
    return round(delta_ns / NANOSECONDS_PER_SECOND / elapsed * 100, 2)


def derive(previous: MetricsSnapshot | None, current: MetricsSnapshot) -> DerivedRow:
    """Builds the row for ``current``; ``previous`` is None on first observation."""
    if previous is None:
        percent = 0.0
    else:
        percent = cpu_percent(previous, current)

    # memory is a level, always taken from the current snapshot
    mem_total = current.mem_rss_bytes + current.mem_cache_bytes

    return DerivedRow(
        identity=current.identity,
        cpu_percent=percent,
        mem_total_display=f"{mem_total // DISPLAY_UNIT} Mb",
        status_label=StatusLabel.ON if current.running else StatusLabel.OFF,
        net_interface_name=current.net_interface_name,
        net_rx_display=round(current.net_rx_bytes / DISPLAY_UNIT, 2),
        net_tx_display=round(current.net_tx_bytes / DISPLAY_UNIT, 2),
        disk_name=current.disk_name,
        disk_path=current.disk_path,
        disk_read_display=round(current.disk_read_bytes / DISPLAY_UNIT, 2),
        disk_write_display=round(current.disk_write_bytes / DISPLAY_UNIT, 2),
    )


class RateDerivationEngine:
    """Keeps the last snapshot of every VM and turns each new batch into rows."""

    def __init__(self):
        self._previous: dict[str, MetricsSnapshot] = {}  # vm name -> last snapshot
        self.rows: list[DerivedRow] = []

    def previous_for(self, name: str) -> MetricsSnapshot | None:
        return self._previous.get(name)

    def process(self, batch: Iterable[MetricsSnapshot]) -> list[DerivedRow]:
        """
        Derives one row per snapshot, in batch order.

        VMs missing from the batch are forgotten; the batch becomes the
        previous snapshots for the next call.
        """
        current: dict[str, MetricsSnapshot] = {}
        rows = []
        for snapshot in batch:
            rows.append(derive(self._previous.get(snapshot.name), snapshot))
            current[snapshot.name] = snapshot

        self._previous = current
        self.rows = rows
        return rows
