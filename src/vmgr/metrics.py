"""
Typed per-VM counter snapshots built from libvirt domain stats
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import libvirt

from vmgr.constants import CounterDefaults
from vmgr.errors import MalformedCounter


@dataclass(frozen=True)
class VmIdentity:
    """A VM as seen in one batch. ``name`` is stable across ticks, ``id`` is not."""
    id: int
    name: str


@dataclass(frozen=True)
class MetricsSnapshot:
    """One VM's counters read at a single point in time."""
    identity: VmIdentity
    captured_at: float
    running: bool = False
    cpu_time_ns: int = CounterDefaults.ZERO
    mem_rss_bytes: int = CounterDefaults.ZERO
    mem_cache_bytes: int = CounterDefaults.ZERO
    net_interface_name: str = CounterDefaults.UNKNOWN
    net_rx_bytes: int = CounterDefaults.ZERO
    net_tx_bytes: int = CounterDefaults.ZERO
    disk_name: str = CounterDefaults.UNKNOWN
    disk_path: str = CounterDefaults.UNKNOWN
    disk_read_bytes: int = CounterDefaults.ZERO
    disk_write_bytes: int = CounterDefaults.ZERO

    @property
    def name(self) -> str:
        return self.identity.name


def _parse_counter(value: Any) -> int:
    # bool is an int subclass but never a valid counter
    if isinstance(value, bool):
        raise ValueError("boolean is not a counter")
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise ValueError("not a finite number")
    number = int(value)
    if number < 0:
        raise ValueError("counters are unsigned")
    return number


def _parse_running(value: Any) -> bool:
    return _parse_counter(value) == libvirt.VIR_DOMAIN_RUNNING


def _parse_text(value: Any) -> str:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if not isinstance(value, str):
        raise ValueError("not a string")
    return value


# libvirt stat key -> (snapshot field, parser)
COUNTER_FIELDS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "state.state": ("running", _parse_running),
    "cpu.time": ("cpu_time_ns", _parse_counter),
    "balloon.rss": ("mem_rss_bytes", _parse_counter),
    "balloon.disk_caches": ("mem_cache_bytes", _parse_counter),
    "net.0.name": ("net_interface_name", _parse_text),
    "net.0.rx.bytes": ("net_rx_bytes", _parse_counter),
    "net.0.tx.bytes": ("net_tx_bytes", _parse_counter),
    "block.0.name": ("disk_name", _parse_text),
    "block.0.path": ("disk_path", _parse_text),
    "block.0.rd.bytes": ("disk_read_bytes", _parse_counter),
    "block.0.wr.bytes": ("disk_write_bytes", _parse_counter),
}


def parse_field(key: str, value: Any) -> Any:
    """
    Parses one known counter.

    Raises:
        MalformedCounter: if the value cannot be turned into the field's type
    """
    _, parser = COUNTER_FIELDS[key]
    try:
        return parser(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedCounter(key, value) from e


def parse_counters(identity: VmIdentity, counters: Mapping[str, Any],
                   captured_at: float | None = None) -> MetricsSnapshot:
    """
    Builds a MetricsSnapshot from one VM's raw stats mapping.

    Unknown keys are ignored, missing ones keep their defaults and a
    malformed value only costs its own field.
    """
    if captured_at is None:
        captured_at = time.monotonic()

    values = {}
    for key, (field_name, _) in COUNTER_FIELDS.items():
        if key not in counters:
            continue
        try:
            values[field_name] = parse_field(key, counters[key])
        except MalformedCounter as e:
            logging.warning(f"VM '{identity.name}': {e}, using default")

    return MetricsSnapshot(identity=identity, captured_at=captured_at, **values)
