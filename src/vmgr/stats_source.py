"""
Raw per-VM counters fetched from libvirt
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError
from dataclasses import dataclass
from typing import Any

import libvirt

from vmgr.connection_manager import ConnectionManager
from vmgr.errors import FetchFailure
from vmgr.metrics import MetricsSnapshot, VmIdentity, parse_counters

STATS_FLAGS = (
    libvirt.VIR_DOMAIN_STATS_STATE
    | libvirt.VIR_DOMAIN_STATS_CPU_TOTAL
    | libvirt.VIR_DOMAIN_STATS_BALLOON
    | libvirt.VIR_DOMAIN_STATS_VCPU
    | libvirt.VIR_DOMAIN_STATS_INTERFACE
    | libvirt.VIR_DOMAIN_STATS_BLOCK
)

LIST_FLAGS = (
    libvirt.VIR_CONNECT_GET_ALL_DOMAINS_STATS_ACTIVE
    | libvirt.VIR_CONNECT_GET_ALL_DOMAINS_STATS_INACTIVE
)


@dataclass
class RawCounters:
    """One VM's unparsed stats as returned by libvirt."""
    identity: VmIdentity
    counters: dict[str, Any]


class RawCounterSource:
    """Fetches a fresh absolute counter reading for every VM on the host."""

    def __init__(self, connection_manager: ConnectionManager, timeout: float = 5):
        self.connection_manager = connection_manager
        self.timeout = timeout
        self._pending: Future | None = None

    def fetch(self) -> list[RawCounters]:
        """
        Returns the raw counters of every known VM, in libvirt's order.

        Raises:
            ConnectionLost: if the host connection is dead
            FetchFailure: if the stats call fails, times out, or an earlier
                timed-out call is still running
        """
        conn = self.connection_manager.require()

        # a timed-out call is not waited for, but no new one starts until it returns
        if self._pending is not None and not self._pending.done():
            raise FetchFailure("previous stats fetch still in flight")

        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(conn.getAllDomainStats, STATS_FLAGS, LIST_FLAGS)
        self._pending = future
        try:
            records = future.result(timeout=self.timeout) or []
        except TimeoutError:
            raise FetchFailure(f"getAllDomainStats timed out after {self.timeout} seconds") from None
        except libvirt.libvirtError as e:
            # a dead session shows up here first
            self.connection_manager.require()
            raise FetchFailure(str(e)) from e
        finally:
            executor.shutdown(wait=False)

        batch = []
        seen = set()
        for domain, counters in records:
            try:
                identity = VmIdentity(id=domain.ID(), name=domain.name())
            except libvirt.libvirtError as e:
                logging.warning(f"Skipping VM that vanished during the stats fetch: {e}")
                continue
            if identity.name in seen:
                logging.warning(f"Duplicate VM name '{identity.name}' in stats batch, ignoring")
                continue
            seen.add(identity.name)
            batch.append(RawCounters(identity=identity, counters=dict(counters or {})))
        return batch

    def fetch_snapshots(self) -> list[MetricsSnapshot]:
        """Fetches and parses one snapshot per VM."""
        return [parse_counters(raw.identity, raw.counters) for raw in self.fetch()]
