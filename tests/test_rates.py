"""Unit tests for vmgr.rates."""
from conftest import make_snapshot

from vmgr.rates import RateDerivationEngine, cpu_percent, derive, saturating_sub

ONE_SECOND_NS = 1_000_000_000


class TestSaturatingSub:

    def test_regular_difference(self):
        assert saturating_sub(10, 4) == 6

    def test_reset_counter_clamps_to_zero(self):
        assert saturating_sub(4, 10) == 0

    def test_equal_values(self):
        assert saturating_sub(7, 7) == 0


class TestDerive:
    """CPU percentage and display fields for one (previous, current) pair."""

    def test_first_observation_has_no_rate(self):
        current = make_snapshot(cpu_time_ns=50 * ONE_SECOND_NS, captured_at=100.0)
        assert derive(None, current).cpu_percent == 0.0

    def test_one_second_of_cpu_over_one_second(self):
        previous = make_snapshot(cpu_time_ns=ONE_SECOND_NS, captured_at=0.0)
        current = make_snapshot(cpu_time_ns=2 * ONE_SECOND_NS, captured_at=1.0)
        assert derive(previous, current).cpu_percent == 100.0

    def test_one_second_of_cpu_over_two_seconds(self):
        previous = make_snapshot(cpu_time_ns=ONE_SECOND_NS, captured_at=0.0)
        current = make_snapshot(cpu_time_ns=2 * ONE_SECOND_NS, captured_at=2.0)
        assert derive(previous, current).cpu_percent == 50.0

    def test_counter_reset_gives_zero(self):
        previous = make_snapshot(cpu_time_ns=90 * ONE_SECOND_NS, captured_at=0.0)
        current = make_snapshot(cpu_time_ns=ONE_SECOND_NS, captured_at=1.0)
        assert derive(previous, current).cpu_percent == 0.0

    def test_zero_elapsed_gives_zero(self):
        previous = make_snapshot(cpu_time_ns=0, captured_at=5.0)
        current = make_snapshot(cpu_time_ns=ONE_SECOND_NS, captured_at=5.0)
        assert cpu_percent(previous, current) == 0.0

    def test_negative_elapsed_gives_zero(self):
        previous = make_snapshot(cpu_time_ns=0, captured_at=5.0)
        current = make_snapshot(cpu_time_ns=ONE_SECOND_NS, captured_at=4.0)
        assert cpu_percent(previous, current) == 0.0

    def test_rounded_to_two_decimals(self):
        previous = make_snapshot(cpu_time_ns=0, captured_at=0.0)
        current = make_snapshot(cpu_time_ns=ONE_SECOND_NS, captured_at=3.0)
        row = derive(previous, current)
        assert row.cpu_percent == 33.33
        assert row.cpu_usage_display == "33.33%"

    def test_memory_is_current_level_not_delta(self):
        previous = make_snapshot(mem_rss_bytes=10 * 1024 * 1024, captured_at=0.0)
        current = make_snapshot(mem_rss_bytes=2048 * 1024, mem_cache_bytes=1024 * 1024,
                                captured_at=1.0)
        assert derive(previous, current).mem_total_display == "3072 Mb"

    def test_io_totals_scaled_by_1024(self):
        current = make_snapshot(net_rx_bytes=2048, net_tx_bytes=1536,
                                disk_read_bytes=512, disk_write_bytes=10240)
        row = derive(None, current)
        assert row.net_rx_display == 2.0
        assert row.net_tx_display == 1.5
        assert row.disk_read_display == 0.5
        assert row.disk_write_display == 10.0

    def test_status_label(self):
        assert derive(None, make_snapshot(running=True)).status_label == "on"
        assert derive(None, make_snapshot(running=False)).status_label == "off"


class TestRateDerivationEngine:
    """Matching snapshots across ticks by VM name."""

    def test_matches_previous_by_name_not_position(self):
        engine = RateDerivationEngine()
        engine.process([
            make_snapshot(name="a", cpu_time_ns=0, captured_at=0.0),
            make_snapshot(name="b", cpu_time_ns=0, captured_at=0.0),
        ])

        rows = engine.process([
            make_snapshot(name="b", cpu_time_ns=ONE_SECOND_NS // 2, captured_at=1.0),
            make_snapshot(name="a", cpu_time_ns=ONE_SECOND_NS, captured_at=1.0),
        ])

        assert [row.name for row in rows] == ["b", "a"]
        assert rows[0].cpu_percent == 50.0
        assert rows[1].cpu_percent == 100.0

    def test_new_vm_is_first_observation(self):
        engine = RateDerivationEngine()
        engine.process([make_snapshot(name="a", captured_at=0.0)])

        rows = engine.process([
            make_snapshot(name="a", captured_at=1.0),
            make_snapshot(name="new", cpu_time_ns=9 * ONE_SECOND_NS, captured_at=1.0),
        ])

        assert rows[1].cpu_percent == 0.0

    def test_vanished_vm_leaves_no_state(self):
        engine = RateDerivationEngine()
        engine.process([make_snapshot(name="gone", captured_at=0.0)])
        engine.process([make_snapshot(name="other", captured_at=1.0)])

        assert engine.previous_for("gone") is None
        rows = engine.process([make_snapshot(name="gone", cpu_time_ns=ONE_SECOND_NS,
                                             captured_at=2.0)])
        assert rows[0].cpu_percent == 0.0

    def test_vm_restart_with_new_id_keeps_name_match(self):
        engine = RateDerivationEngine()
        engine.process([make_snapshot(name="a", vm_id=4, cpu_time_ns=30 * ONE_SECOND_NS,
                                      captured_at=0.0)])

        rows = engine.process([make_snapshot(name="a", vm_id=9, cpu_time_ns=ONE_SECOND_NS,
                                             captured_at=1.0)])

        assert rows[0].identity.id == 9
        assert rows[0].cpu_percent == 0.0

    def test_empty_batch(self):
        engine = RateDerivationEngine()
        engine.process([make_snapshot(name="a")])
        assert engine.process([]) == []
        assert engine.rows == []
