"""Tests for the timing and tab info stores."""

from __future__ import annotations

from conftest import make_tab

from tab_tracker.info_store import TabInfoStore
from tab_tracker.models import TabInfo, TimingRecord
from tab_tracker.storage import INFO_KEY, TIMING_KEY, MemoryStorage, WriteResult
from tab_tracker.timing_store import TimingStore


class FailingStorage(MemoryStorage):
    def set_all(self, values):
        return WriteResult(ok=False, error="disk full")


class TestTimingStore:
    """Per-tab timing records and their persistence."""

    def test_upsert_and_get(self, storage):
        store = TimingStore(storage)
        store.upsert(3, TimingRecord(opened_at=10, total_active_time=20))
        assert store.get(3) == TimingRecord(opened_at=10, total_active_time=20)
        assert 3 in store
        assert len(store) == 1

    def test_every_mutation_replaces_full_map(self, storage):
        store = TimingStore(storage)
        store.upsert(1, TimingRecord(opened_at=0))
        store.upsert(2, TimingRecord(opened_at=5))
        store.remove(1)
        assert storage.writes == 3
        assert storage.raw(TIMING_KEY) == {"2": {"openedAt": 5, "totalActiveTime": 0}}

    def test_remove_missing_returns_none(self, storage):
        store = TimingStore(storage)
        assert store.remove(99) is None

    def test_snapshot_is_a_copy(self, storage):
        store = TimingStore(storage)
        store.upsert(1, TimingRecord(opened_at=0, total_active_time=100))
        snapshot = store.snapshot_all()
        snapshot[1].total_active_time = 999
        snapshot[2] = TimingRecord(opened_at=1)
        assert store.get(1).total_active_time == 100
        assert store.get(2) is None

    def test_load_skips_malformed_entries(self, storage):
        snapshot = {
            TIMING_KEY: {
                "1": {"openedAt": 100, "totalActiveTime": 50},
                "two": {"openedAt": 1},
                "3": {"totalActiveTime": 5},
            }
        }
        store = TimingStore.load(storage, snapshot)
        assert store.snapshot_all() == {1: TimingRecord(opened_at=100, total_active_time=50)}

    def test_failed_write_keeps_memory_state(self, caplog):
        store = TimingStore(FailingStorage())
        store.upsert(1, TimingRecord(opened_at=0, total_active_time=10))
        assert store.get(1).total_active_time == 10
        assert "disk full" in caplog.text


class TestTabInfoStore:
    """Tab metadata capture."""

    def test_record_info_captures_fields(self, storage):
        store = TabInfoStore(storage)
        info = store.record_info(4, make_tab(4, title="  Docs   page "), now=1_234)
        assert info == TabInfo(
            title="Docs page",
            url="https://example.com/4",
            fav_icon_url="https://example.com/4/favicon.ico",
            last_updated=1_234,
        )
        assert store.get(4) == info
        assert storage.raw(INFO_KEY)["4"]["lastUpdated"] == 1_234

    def test_internal_pages_are_skipped(self, storage):
        store = TabInfoStore(storage)
        assert store.record_info(1, make_tab(1, url="chrome://newtab/"), now=0) is None
        assert store.record_info(2, make_tab(2, url=""), now=0) is None
        assert store.get(1) is None
        assert storage.writes == 0

    def test_missing_title_gets_placeholder(self, storage):
        store = TabInfoStore(storage)
        info = store.record_info(1, make_tab(1, title=""), now=0)
        assert info.title == "Untitled"

    def test_refresh_replaces_info(self, storage):
        store = TabInfoStore(storage)
        store.record_info(1, make_tab(1, title="Loading"), now=0)
        store.record_info(1, make_tab(1, title="Loaded"), now=500)
        assert store.get(1).title == "Loaded"
        assert store.get(1).last_updated == 500

    def test_custom_ignored_prefixes(self, storage):
        store = TabInfoStore(storage, ignored_url_prefixes=("https://intranet.",))
        assert store.record_info(1, make_tab(1, url="https://intranet.corp/x"), now=0) is None
        assert store.record_info(2, make_tab(2, url="chrome://settings"), now=0) is not None

    def test_remove_and_load(self, storage):
        store = TabInfoStore(storage)
        store.record_info(1, make_tab(1), now=0)
        store.record_info(2, make_tab(2), now=0)
        store.remove(1)
        reloaded = TabInfoStore.load(storage, storage.get_all([INFO_KEY]))
        assert set(reloaded.snapshot_all()) == {2}
        assert reloaded.get(2).title == "Page 2"
