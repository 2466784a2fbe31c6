"""Unit tests for vmgr.monitor."""
from unittest.mock import MagicMock

from conftest import make_snapshot

from vmgr.errors import FetchFailure
from vmgr.monitor import VmMonitor


def monitor_with(*batches):
    source = MagicMock()
    source.fetch_snapshots.side_effect = list(batches)
    return VmMonitor(source)


def test_tick_derives_rows_and_selects_first():
    monitor = monitor_with([make_snapshot(name="a"), make_snapshot(name="b")])

    assert monitor.tick() is True
    assert [row.name for row in monitor.rows] == ["a", "b"]
    assert monitor.selected_row().name == "a"
    assert monitor.ticks == 1


def test_second_tick_computes_cpu_rate():
    monitor = monitor_with(
        [make_snapshot(name="a", cpu_time_ns=0, captured_at=10.0)],
        [make_snapshot(name="a", cpu_time_ns=250_000_000, captured_at=11.0)],
    )
    monitor.tick()
    monitor.tick()
    assert monitor.rows[0].cpu_percent == 25.0


def test_failed_fetch_keeps_previous_rows():
    monitor = monitor_with(
        [make_snapshot(name="a")],
        FetchFailure("host busy"),
    )
    monitor.tick()

    assert monitor.tick() is False
    assert [row.name for row in monitor.rows] == ["a"]
    assert monitor.ticks == 1


def test_selection_follows_vm_across_ticks():
    monitor = monitor_with(
        [make_snapshot(name="a"), make_snapshot(name="b"), make_snapshot(name="c")],
        [make_snapshot(name="c"), make_snapshot(name="b")],
    )
    monitor.tick()
    monitor.selection.move_next()
    monitor.tick()

    assert monitor.state.selected_index == 1
    assert monitor.selected_row().name == "b"
    assert monitor.state.scroll_offset == 4


def test_apply_is_usable_without_a_source():
    monitor = VmMonitor(source=None)
    rows = monitor.apply([make_snapshot(name="x", running=False)])
    assert rows[0].status_label == "off"
    assert monitor.state.row_count == 1


def test_tick_matches_collect_then_apply():
    batches = (
        [make_snapshot(name="a", cpu_time_ns=0, captured_at=1.0)],
        [make_snapshot(name="a", cpu_time_ns=500_000_000, captured_at=2.0)],
    )
    synchronous = monitor_with(*batches)
    split = monitor_with(*batches)
    for _ in batches:
        synchronous.tick()
        split.apply(split.collect())

    assert synchronous.rows == split.rows
    assert synchronous.rows[0].cpu_percent == 50.0
