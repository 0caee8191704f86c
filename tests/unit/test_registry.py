"""
Unit tests for ListenerRegistry.

Tests per-pattern ordering, removal and pruning, and the merged delivery
batch built for an event name.
"""

import pytest

from beacon.core.event.registry import ListenerRegistry
from beacon.core.event.types import ListenerRecord


def _noop(payload, event_name):
    return None


def _other(payload, event_name):
    return None


@pytest.fixture
def registry():
    return ListenerRegistry()


def _record(pattern, callback=_noop, priority=0, **kwargs):
    return ListenerRecord(pattern=pattern, callback=callback, priority=priority, **kwargs)


@pytest.mark.unit
class TestOrdering:
    """Entries stay sorted by priority desc, then registration order."""

    def test_higher_priority_first(self, registry):
        low = _record("a", priority=1)
        high = _record("a", priority=5)
        registry.add_listener(low)
        registry.add_listener(high)

        assert registry.collect("a") == [high, low]

    def test_equal_priority_keeps_registration_order(self, registry):
        first = _record("a")
        second = _record("a")
        third = _record("a")
        for record in (first, second, third):
            registry.add_listener(record)

        assert registry.collect("a") == [first, second, third]

    def test_negative_priorities_run_last(self, registry):
        late = _record("a", priority=-10)
        normal = _record("a")
        registry.add_listener(late)
        registry.add_listener(normal)

        assert registry.collect("a") == [normal, late]

    def test_merged_batch_is_resorted_across_patterns(self, registry):
        """Wildcard and exact entries interleave by priority, then sequence."""
        wildcard_low = _record("order:*", priority=1)
        exact_high = _record("order:paid", priority=10)
        wildcard_high = _record("order:*", priority=10)
        for record in (wildcard_low, exact_high, wildcard_high):
            registry.add_listener(record)

        assert registry.collect("order:paid") == [exact_high, wildcard_high, wildcard_low]

    def test_add_listener_returns_pattern_count(self, registry):
        assert registry.add_listener(_record("a")) == 1
        assert registry.add_listener(_record("a")) == 2
        assert registry.add_listener(_record("b")) == 1


@pytest.mark.unit
class TestRemoval:
    """Removal by callback, by record, by pattern and globally."""

    def test_remove_listener_removes_first_matching_callback(self, registry):
        first = _record("a")
        second = _record("a")
        registry.add_listener(first)
        registry.add_listener(second)

        assert registry.remove_listener("a", _noop) is first
        assert registry.collect("a") == [second]

    def test_remove_unknown_pair_returns_none(self, registry):
        registry.add_listener(_record("a"))

        assert registry.remove_listener("a", _other) is None
        assert registry.remove_listener("missing", _noop) is None
        assert registry.count("a") == 1

    def test_last_removal_prunes_pattern(self, registry):
        registry.add_listener(_record("a"))
        registry.remove_listener("a", _noop)

        assert "a" not in registry
        assert registry.patterns() == []

    def test_remove_record_targets_exact_instance(self, registry):
        first = _record("a")
        second = _record("a")
        registry.add_listener(first)
        registry.add_listener(second)

        assert registry.remove_record(second) is True
        assert registry.remove_record(second) is False
        assert registry.collect("a") == [first]

    def test_remove_all_returns_count(self, registry):
        registry.add_listener(_record("a"))
        registry.add_listener(_record("a"))
        registry.add_listener(_record("b"))

        assert registry.remove_all("a") == 2
        assert registry.remove_all("a") == 0
        assert registry.patterns() == ["b"]

    def test_clear_all_returns_previous_total(self, registry):
        registry.add_listener(_record("a"))
        registry.add_listener(_record("b"))

        assert registry.clear_all() == 2
        assert len(registry) == 0
        assert registry.total_count() == 0


@pytest.mark.unit
class TestLookup:
    """Batch construction and introspection."""

    def test_collect_returns_fresh_list(self, registry):
        registry.add_listener(_record("a"))
        batch = registry.collect("a")
        batch.clear()

        assert len(registry.collect("a")) == 1

    def test_collect_with_no_match_is_empty(self, registry):
        registry.add_listener(_record("lead:*"))

        assert registry.collect("business:created") == []

    def test_count_does_not_expand_wildcards(self, registry):
        registry.add_listener(_record("lead:*"))

        assert registry.count("lead:created") == 0
        assert registry.count("lead:*") == 1

    def test_patterns_in_first_registration_order(self, registry):
        for pattern in ("b", "a", "c", "a"):
            registry.add_listener(_record(pattern))

        assert registry.patterns() == ["b", "a", "c"]

    def test_entries_are_snapshots(self, registry):
        registry.add_listener(_record("a"))
        entries = dict(registry.entries())
        registry.add_listener(_record("a"))

        assert len(entries["a"]) == 1
