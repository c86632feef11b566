"""Tests for active-tab time accounting."""

from __future__ import annotations

import random

import pytest

from tab_tracker.models import TimingRecord
from tab_tracker.storage import TIMING_KEY, MemoryStorage
from tab_tracker.timing_store import TimingStore
from tab_tracker.tracker import ActiveTimeTracker


@pytest.fixture
def timing(storage: MemoryStorage) -> TimingStore:
    return TimingStore(storage)


@pytest.fixture
def tracker(timing: TimingStore) -> ActiveTimeTracker:
    return ActiveTimeTracker(timing)


def total(timing: TimingStore, tab_id: int) -> int:
    record = timing.get(tab_id)
    assert record is not None
    return record.total_active_time


class TestStartTracking:
    """Opening and closing active intervals."""

    def test_first_activation_creates_record(self, tracker, timing):
        tracker.start_tracking(1, 1_000)
        assert timing.get(1) == TimingRecord(opened_at=1_000, total_active_time=0)
        assert tracker.active_id == 1
        assert tracker.active_since == 1_000

    def test_switching_closes_previous_interval(self, tracker, timing):
        tracker.start_tracking(1, 0)
        tracker.start_tracking(2, 5_000)
        assert total(timing, 1) == 5_000
        assert total(timing, 2) == 0
        assert tracker.active_id == 2

    def test_zero_id_and_zero_timestamp_are_tracked(self, tracker, timing):
        """Tab id 0 active since t=0 still accumulates time."""
        tracker.start_tracking(0, 0)
        tracker.start_tracking(1, 2_500)
        assert total(timing, 0) == 2_500

    def test_reactivating_active_tab_rebases_without_double_count(self, tracker, timing):
        tracker.start_tracking(1, 0)
        tracker.start_tracking(1, 1_000)
        tracker.start_tracking(1, 1_500)
        assert total(timing, 1) == 1_500
        assert tracker.active_since == 1_500
        tracker.stop_tracking(4_000)
        assert total(timing, 1) == 4_000

    def test_missing_record_for_active_tab_is_recreated(self, tracker, timing):
        tracker.start_tracking(1, 0)
        timing.remove(1)
        tracker.start_tracking(2, 3_000)
        assert timing.get(1) == TimingRecord(opened_at=3_000, total_active_time=3_000)

    def test_clock_going_backwards_never_subtracts(self, tracker, timing):
        tracker.start_tracking(1, 5_000)
        tracker.start_tracking(2, 4_000)
        assert total(timing, 1) == 0

    def test_every_interval_change_is_persisted(self, tracker, storage):
        tracker.start_tracking(1, 0)
        tracker.start_tracking(2, 1_200)
        persisted = storage.raw(TIMING_KEY)
        assert persisted["1"] == {"openedAt": 0, "totalActiveTime": 1_200}
        assert persisted["2"] == {"openedAt": 1_200, "totalActiveTime": 0}


class TestStopTracking:
    """Deactivation, as on focus loss."""

    def test_stop_clears_active_state(self, tracker, timing):
        tracker.start_tracking(1, 0)
        tracker.stop_tracking(2_000)
        assert tracker.active_id is None
        assert tracker.active_since is None
        assert total(timing, 1) == 2_000

    def test_stop_without_active_tab_is_noop(self, tracker, storage):
        tracker.stop_tracking(2_000)
        assert tracker.active_id is None
        assert storage.writes == 0

    def test_disjoint_intervals_accumulate(self, tracker, timing):
        tracker.start_tracking(1, 1_000)
        tracker.stop_tracking(4_000)
        tracker.start_tracking(1, 10_000)
        tracker.stop_tracking(12_500)
        assert total(timing, 1) == 3_000 + 2_500

    def test_time_while_unfocused_is_not_counted(self, tracker, timing):
        tracker.start_tracking(1, 0)
        tracker.stop_tracking(1_000)
        tracker.stop_tracking(50_000)
        tracker.start_tracking(1, 60_000)
        tracker.start_tracking(2, 61_000)
        assert total(timing, 1) == 2_000


class TestSnapshot:
    """Read-only projections of live totals."""

    def test_active_tab_gets_current_active_time(self, tracker):
        tracker.start_tracking(1, 0)
        tracker.start_tracking(2, 3_000)
        views = tracker.current_snapshot(7_000)
        assert views[2].total_active_time == 0
        assert views[2].current_active_time == 4_000
        assert views[1].current_active_time is None
        assert views[1].total_active_time == 3_000

    def test_snapshot_does_not_mutate_state(self, tracker, timing, storage):
        tracker.start_tracking(2, 3_000)
        writes = storage.writes
        first = tracker.current_snapshot(7_000)
        second = tracker.current_snapshot(7_000)
        assert first == second
        assert total(timing, 2) == 0
        assert tracker.active_since == 3_000
        assert storage.writes == writes

    def test_payload_omits_current_time_for_inactive_tabs(self, tracker):
        tracker.start_tracking(1, 0)
        tracker.stop_tracking(1_000)
        payload = tracker.current_snapshot(2_000)[1].to_payload()
        assert payload == {"openedAt": 0, "totalActiveTime": 1_000}


class TestFlush:
    """Periodic fold-in of the running interval."""

    def test_flush_folds_and_rebases(self, tracker, timing):
        tracker.start_tracking(1, 0)
        assert tracker.flush(30_000) is True
        assert total(timing, 1) == 30_000
        assert tracker.active_since == 30_000

    def test_flush_without_active_tab(self, tracker):
        assert tracker.flush(30_000) is False

    def test_repeated_flushes_do_not_drift(self, tracker, timing):
        tracker.start_tracking(1, 0)
        for tick in range(1, 101):
            tracker.flush(tick * 30_000 + tick % 7)
        tracker.start_tracking(2, 3_000_123)
        assert total(timing, 1) == 3_000_123

    def test_flush_between_activations(self, tracker, timing):
        tracker.start_tracking(1, 0)
        tracker.flush(30_000)
        tracker.start_tracking(2, 31_000)
        tracker.flush(60_000)
        tracker.start_tracking(1, 75_000)
        assert total(timing, 1) == 31_000
        assert total(timing, 2) == 44_000


class TestNoDoubleCounting:
    """Random event sequences never account more time than has passed."""

    @pytest.mark.parametrize("seed", [1, 7, 42, 2024])
    def test_total_never_exceeds_elapsed(self, tracker, timing, seed):
        rng = random.Random(seed)
        now = 0
        unfocused = 0
        for _ in range(300):
            step = rng.randint(0, 5_000)
            now += step
            if tracker.active_id is None:
                unfocused += step
            action = rng.random()
            if action < 0.6:
                tracker.start_tracking(rng.randint(1, 5), now)
            elif action < 0.8:
                tracker.stop_tracking(now)
            else:
                tracker.flush(now)

            views = tracker.current_snapshot(now)
            accounted = sum(
                view.total_active_time + (view.current_active_time or 0)
                for view in views.values()
            )
            assert accounted <= now
            assert accounted == now - unfocused
