"""
Tests for tracker module.
"""

import pytest

from debarrel.models import PreservationReason
from debarrel.refactoring.tracker import BarrelTracker

BASE = "/project"
BARREL = "/project/src/utils/index.ts"
INNER = "/project/src/utils/inner/index.ts"
APP = "/project/src/app.ts"


def never_protected(path):
    return False


@pytest.fixture
def tracker():
    """Tracker with one registered barrel."""
    tracker = BarrelTracker()
    tracker.register(BARREL)
    return tracker


class TestRegistration:
    """Tests for barrel registration."""

    def test_register_once(self, tracker):
        """Test that registering twice reports the second call."""
        assert not tracker.register(BARREL)
        assert BARREL in tracker
        assert tracker.has(BARREL)

    def test_consumers_of_untracked_barrels_are_ignored(self, tracker):
        """Test that adding a consumer to an unknown barrel is a no-op."""
        tracker.add_consumer("/project/other.ts", APP)
        assert "/project/other.ts" not in tracker

    def test_record_untraceable(self, tracker):
        """Test that untraceable bindings are collected."""
        tracker.record_untraceable(BARREL, APP, "missing")
        assert [item.name for item in tracker.untraceable_imports] == ["missing"]


class TestClassify:
    """Tests for BarrelTracker.classify."""

    def test_no_consumers_is_deleted(self, tracker):
        """Test that an unused barrel is deleted."""
        result = tracker.classify(BASE, never_protected)
        assert result.deleted == [BARREL]
        assert result.preserved == []

    def test_rewritten_consumer_is_deleted(self, tracker):
        """Test that a fully rewritten consumer releases the barrel."""
        tracker.add_consumer(BARREL, APP)
        tracker.mark_rewritten(BARREL, APP)
        assert tracker.classify(BASE, never_protected).deleted == [BARREL]

    def test_unrewritten_script_consumer(self, tracker):
        """Test that a remaining TypeScript consumer is a namespace-import holdout."""
        tracker.add_consumer(BARREL, APP)
        result = tracker.classify(BASE, never_protected)
        assert result.deleted == []
        assert len(result.preserved) == 1
        assert result.preserved[0].reason is PreservationReason.NAMESPACE_IMPORT
        assert result.preserved[0].consumers == [APP]

    def test_non_script_consumer(self, tracker):
        """Test that a Vue consumer gets its own reason."""
        tracker.add_consumer(BARREL, "/project/src/App.vue")
        tracker.add_consumer(BARREL, APP)
        reasons = {barrel.reason: barrel.consumers for barrel in tracker.classify(BASE, never_protected).preserved}
        assert reasons == {
            PreservationReason.NON_TS_IMPORT: ["/project/src/App.vue"],
            PreservationReason.NAMESPACE_IMPORT: [APP],
        }

    def test_dynamic_consumer_wins(self, tracker):
        """Test that a dynamic import preserves the barrel regardless of other consumers."""
        tracker.add_consumer(BARREL, APP)
        tracker.mark_rewritten(BARREL, APP)
        tracker.add_dynamic_consumer(BARREL, "/project/src/lazy.ts")
        preserved = tracker.classify(BASE, never_protected).preserved
        assert [(barrel.reason, barrel.consumers) for barrel in preserved] == [
            (PreservationReason.DYNAMIC_IMPORT, ["/project/src/lazy.ts"])
        ]

    def test_protected_barrel(self, tracker):
        """Test that skipped barrels are reported without consumers."""
        tracker.add_consumer(BARREL, APP)
        preserved = tracker.classify(BASE, lambda path: path == BARREL).preserved
        assert [(barrel.reason, barrel.consumers) for barrel in preserved] == [(PreservationReason.SKIP, [])]

    def test_barrel_consumers_propagate(self, tracker):
        """Test that a barrel only consumed by a deletable barrel is deletable too."""
        tracker.register(INNER)
        tracker.add_consumer(INNER, BARREL)
        tracker.add_consumer(BARREL, APP)
        tracker.mark_rewritten(BARREL, APP)
        assert sorted(tracker.classify(BASE, never_protected).deleted) == sorted([BARREL, INNER])

    def test_preserved_outer_keeps_inner(self, tracker):
        """Test that an inner barrel stays when its consuming barrel stays."""
        tracker.register(INNER)
        tracker.add_consumer(INNER, BARREL)
        tracker.add_consumer(BARREL, APP)
        result = tracker.classify(BASE, never_protected)
        assert result.deleted == []
        assert {barrel.path for barrel in result.preserved} == {BARREL, INNER}

    def test_out_of_scope_barrels_are_ignored(self, tracker):
        """Test that barrels outside the base or in node_modules are not reported."""
        tracker.register("/elsewhere/index.ts")
        tracker.register("/project/node_modules/pkg/index.ts")
        result = tracker.classify(BASE, never_protected)
        assert result.deleted == [BARREL]
        assert result.preserved == []
