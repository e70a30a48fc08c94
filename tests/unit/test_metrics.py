"""
Unit tests for Metrics System (core/metrics.py)

Tests:
- Latency recording and histogram calculation
- Counter increment with and without labels
- Metrics export
- LatencyTimer context manager
- Counters emitted by quoting
"""

import pytest

from pumpdotfun_sdk.core.bonding_curve import ReserveSnapshot, quote_buy
from pumpdotfun_sdk.core.metrics import (
    LatencyTimer,
    MetricsCollector,
    get_metrics,
    init_metrics,
)


class TestMetricsCollector:
    """Test metrics collection functionality"""

    def test_record_latency(self, metrics_collector):
        metrics_collector.record_latency("plan_build", 10.5)
        metrics_collector.record_latency("plan_build", 30.0)
        metrics_collector.record_latency("plan_build", 20.0)

        stats = metrics_collector.get_histogram_stats("plan_build")

        assert stats.count == 3
        assert stats.min == pytest.approx(10.5)
        assert stats.max == pytest.approx(30.0)
        assert stats.p50 == pytest.approx(20.0)
        assert metrics_collector.get_counter("plan_build_count") == 3

    def test_latency_with_labels(self, metrics_collector):
        metrics_collector.record_latency("plan_build", 1.0, labels={"flow": "buy"})
        metrics_collector.record_latency("plan_build", 1.0, labels={"flow": "sell"})
        metrics_collector.record_latency("plan_build", 1.0, labels={"flow": "sell"})

        assert metrics_collector.get_counter("plan_build_count", labels={"flow": "buy"}) == 1
        assert metrics_collector.get_counter("plan_build_count", labels={"flow": "sell"}) == 2

    def test_histogram_disabled(self):
        collector = MetricsCollector(enable_histogram=False)

        collector.record_latency("tx_sign", 5.0)

        assert collector.get_histogram_stats("tx_sign") is None
        assert collector.get_counter("tx_sign_count") == 1

    def test_increment_counter(self, metrics_collector):
        metrics_collector.increment_counter("transactions_signed")
        metrics_collector.increment_counter("transactions_signed", value=4)

        assert metrics_collector.get_counter("transactions_signed") == 5
        assert metrics_collector.get_counter("unknown") == 0

    def test_export_metrics(self, metrics_collector):
        metrics_collector.increment_counter("trades_submitted")
        metrics_collector.record_latency("trade", 12.0)

        exported = metrics_collector.export_metrics()

        assert exported["counters"]["trades_submitted"] == 1
        assert exported["histograms"]["trade"]["count"] == 1

    def test_reset(self, metrics_collector):
        metrics_collector.increment_counter("trades_submitted")
        metrics_collector.record_latency("trade", 1.0)

        metrics_collector.reset()

        assert metrics_collector.get_counter("trades_submitted") == 0
        assert metrics_collector.get_histogram_stats("trade") is None


class TestLatencyTimer:
    """Test LatencyTimer context manager"""

    def test_records_latency(self, metrics_collector):
        with LatencyTimer(metrics_collector, "rpc_request", labels={"method": "getSlot"}) as timer:
            pass

        assert timer.latency_ms is not None
        assert timer.latency_ms >= 0
        assert metrics_collector.get_counter("rpc_request_count", labels={"method": "getSlot"}) == 1

    def test_records_latency_on_exception(self, metrics_collector):
        with pytest.raises(ValueError):
            with LatencyTimer(metrics_collector, "tx_sign"):
                raise ValueError("boom")

        assert metrics_collector.get_histogram_stats("tx_sign").count == 1


def test_quotes_increment_global_counter():
    metrics = get_metrics()
    before = metrics.get_counter("bonding_curve_buy_quotes")

    quote_buy(1_000, ReserveSnapshot(0, 1_000_000_000, 1_000_000), 1.0)

    assert metrics.get_counter("bonding_curve_buy_quotes") == before + 1


def test_init_metrics_reconfigures_module_collectors(restore_global_metrics):
    collector = init_metrics(enable_histogram=False)
    before = collector.get_counter("bonding_curve_buy_quotes")

    quote_buy(1_000, ReserveSnapshot(0, 1_000_000_000, 1_000_000), 1.0)

    assert collector is restore_global_metrics
    assert collector.enable_histogram is False
    assert collector.get_counter("bonding_curve_buy_quotes") == before + 1


def test_configure_disabling_histogram_drops_samples(metrics_collector):
    metrics_collector.record_latency("tx_sign", 2.0)

    metrics_collector.configure(enable_histogram=False)
    metrics_collector.record_latency("tx_sign", 3.0)

    assert metrics_collector.get_histogram_stats("tx_sign") is None
    assert metrics_collector.get_counter("tx_sign_count") == 2
