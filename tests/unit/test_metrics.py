"""
Unit tests for EventBus statistics, breakdown and debug views.
"""

import pytest

from beacon.core.event.metrics import EventMetrics, EventMetricsRecorder, build_breakdown
from beacon.core.event.types import ListenerRecord


@pytest.mark.unit
class TestRecorder:
    """Raw counters and immutable snapshots."""

    def test_counts_emits_and_errors(self):
        recorder = EventMetricsRecorder()
        recorder.record_emit("a")
        recorder.record_emit("a")
        recorder.record_emit("b")
        recorder.record_error("a")

        assert recorder.total_emits == 3
        assert recorder.total_errors == 1

    def test_snapshot_is_detached(self):
        recorder = EventMetricsRecorder()
        recorder.record_emit("a")
        snapshot = recorder.snapshot(total_listeners=2)
        recorder.record_emit("a")

        assert snapshot.events_emitted == {"a": 1}
        assert snapshot.total_listeners == 2

    def test_reset(self):
        recorder = EventMetricsRecorder()
        recorder.record_emit("a")
        recorder.reset()

        assert recorder.total_emits == 0

    def test_reset_drops_per_name_keys(self):
        recorder = EventMetricsRecorder()
        for index in range(50):
            recorder.record_emit(f"order:{index}")
            recorder.record_error(f"order:{index}")

        assert len(recorder.snapshot(total_listeners=0).events_emitted) == 50

        recorder.reset()
        snapshot = recorder.snapshot(total_listeners=0)

        assert snapshot.events_emitted == {}
        assert snapshot.listener_errors == {}

    def test_clear_resets_counters(self, bus):
        bus.on("order:*", lambda: 1 / 0)
        for index in range(5):
            bus.emit(f"order:{index}")

        bus.clear()
        summary = bus.get_metrics_summary()

        assert summary["events_by_type"] == {}
        assert summary["errors_by_event"] == {}

    def test_summary_error_rate(self):
        metrics = EventMetrics(
            events_emitted={"a": 40},
            listener_errors={"a": 2},
            total_listeners=3,
        )

        summary = metrics.get_summary()

        assert summary["error_rate"] == 5.0
        assert summary["total_events_emitted"] == 40
        assert summary["total_errors"] == 2

    def test_summary_error_rate_counts_failures_per_emission(self):
        metrics = EventMetrics(events_emitted={"a": 1}, listener_errors={"a": 3})

        assert metrics.get_summary()["error_rate"] == 300.0

    def test_summary_without_emits(self):
        assert EventMetrics().get_summary()["error_rate"] == 0.0


@pytest.mark.unit
class TestBusStats:
    """get_stats reflects registry, history and counters."""

    def test_stats_totals(self, bus):
        bus.on("a", lambda: None)
        bus.on("a", lambda: None)
        bus.on("b:*", lambda: None)
        bus.emit("a")
        bus.emit("zzz")

        stats = bus.get_stats()

        assert stats.total_listeners == 3
        assert stats.event_types == 2
        assert stats.total_emits == 2
        assert stats.history_size == 2
        assert stats.max_history_size == 100
        assert stats.max_listeners == 50

    def test_stats_follow_setters(self, bus):
        bus.set_max_listeners(5)
        bus.set_max_history_size(10)

        assert bus.get_stats().as_dict()["max_listeners"] == 5
        assert bus.get_stats().as_dict()["max_history_size"] == 10

    def test_breakdown_sorted_by_count(self, bus):
        bus.on("one", lambda: None)
        bus.on("three", lambda: None)
        bus.on("three", lambda: None)
        bus.on("three", lambda: None)
        bus.on("two", lambda: None)
        bus.on("two", lambda: None)

        breakdown = bus.get_breakdown()

        assert [(item.pattern, item.listener_count) for item in breakdown] == [
            ("three", 3),
            ("two", 2),
            ("one", 1),
        ]
        assert all(item.oldest_listener > 0 for item in breakdown)

    def test_breakdown_oldest_listener(self):
        records = (
            ListenerRecord(pattern="a", callback=print, registered_at=100.0),
            ListenerRecord(pattern="a", callback=print, registered_at=50.0),
        )

        assert build_breakdown([("a", records)])[0].oldest_listener == 50.0

    def test_debug_info(self, bus):
        bus.on("a", lambda: None)
        for index in range(12):
            bus.emit(f"e{index}")

        info = bus.get_debug_info()

        assert info["stats"]["total_emits"] == 12
        assert [item.pattern for item in info["breakdown"]] == ["a"]
        assert len(info["recent_events"]) == 10
        assert info["recent_events"][-1].event_name == "e11"
        assert info["pending_deliveries"] == 0
        assert "hits" in info["matcher_cache"]

    def test_describe_listeners(self, bus):
        def handler(payload):
            return None

        bus.on("lead:*", handler, priority=2)
        bus.once("lead:*", handler, context=object())

        listing = bus.describe_listeners()["lead:*"]

        assert [entry["priority"] for entry in listing] == [2, 0]
        assert listing[0]["listener_id"].endswith("handler@lead:*")
        assert listing[1]["once"] is True
        assert listing[1]["has_context"] is True
