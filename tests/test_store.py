"""
Tests for the durable store: readings log, streak row, lifecycle and
schema migrations.
"""
from __future__ import annotations

import threading

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine

from calmtrack.core.errors import EngineRejected, InvalidRecord, StorageUnavailable
from calmtrack.db.store import _MIGRATIONS_DIR, SCHEMA_VERSION, Store
from calmtrack.schemas.reading import ReadingInput
from calmtrack.schemas.streak import StreakState

from conftest import make_reading


# ---------------------------------------------------------------------------
# Readings
# ---------------------------------------------------------------------------

class TestAddReading:
    def test_returns_increasing_ids(self, store):
        first = store.add_reading(make_reading(100))
        second = store.add_reading(make_reading(200))
        assert second > first

    def test_accepts_model_instance(self, store):
        reading = ReadingInput(time="10:00 AM", timestamp=5, stress=2, label="moderate")
        reading_id = store.add_reading(reading)
        [stored] = store.get_all_readings()
        assert stored.id == reading_id
        assert stored.label == "moderate"
        assert stored.message == ""

    def test_missing_timestamp_is_invalid(self, store):
        data = make_reading(100)
        del data["timestamp"]
        with pytest.raises(InvalidRecord) as exc_info:
            store.add_reading(data)
        fields = [e["field"] for e in exc_info.value.details["errors"]]
        assert "timestamp" in fields
        assert store.get_all_readings() == []

    def test_out_of_range_stress_is_invalid(self, store):
        data = make_reading(100)
        data["stress"] = 4
        with pytest.raises(InvalidRecord):
            store.add_reading(data)

    def test_stress_label_mismatch_is_invalid(self, store):
        data = make_reading(100, "calm")
        data["stress"] = 3
        with pytest.raises(InvalidRecord):
            store.add_reading(data)

    def test_duplicate_timestamps_allowed(self, store):
        store.add_reading(make_reading(100))
        store.add_reading(make_reading(100))
        assert len(store.get_all_readings()) == 2

    def test_ids_not_reused_after_clear(self, store):
        store.add_reading(make_reading(100))
        last = store.add_reading(make_reading(200))
        store.clear_all_readings()
        assert store.add_reading(make_reading(300)) > last


class TestRecentReadings:
    def test_most_recent_in_ascending_order(self, store):
        for ts in (100, 300, 200):
            store.add_reading(make_reading(ts))
        recent = store.get_recent_readings(2)
        assert [r.timestamp for r in recent] == [200, 300]

    def test_fewer_than_limit_returns_all(self, store):
        for ts in (30, 10, 20):
            store.add_reading(make_reading(ts))
        assert [r.timestamp for r in store.get_recent_readings(10)] == [10, 20, 30]

    def test_empty_store(self, store):
        assert store.get_recent_readings(5) == []

    def test_default_limit_is_ten(self, store):
        for ts in range(15):
            store.add_reading(make_reading(ts))
        recent = store.get_recent_readings()
        assert [r.timestamp for r in recent] == list(range(5, 15))

    def test_ties_broken_by_insertion_order(self, store):
        a = store.add_reading(make_reading(100, message="a"))
        b = store.add_reading(make_reading(100, message="b"))
        assert [r.id for r in store.get_recent_readings(2)] == [a, b]

    @pytest.mark.parametrize("limit", [0, -1, True, 2.5, "3"])
    def test_invalid_limit(self, store, limit):
        with pytest.raises(InvalidRecord):
            store.get_recent_readings(limit)


class TestClear:
    def test_clear_empties_readings(self, store):
        store.add_reading(make_reading(1))
        store.add_reading(make_reading(2))
        store.clear_all_readings()
        assert store.get_all_readings() == []

    def test_clear_is_idempotent(self, store):
        store.clear_all_readings()
        store.clear_all_readings()
        assert store.get_all_readings() == []

    def test_clear_leaves_streak_untouched(self, store):
        state = StreakState(current_streak=2, last_check_date="2024-01-02", best_streak=4,
                            total_calm_days=7, weekly_calendar={"2024-01-02": True})
        store.save_streak_state(state)
        store.add_reading(make_reading(1))
        store.clear_all_readings()
        assert store.load_streak_state() == state


# ---------------------------------------------------------------------------
# Streak state
# ---------------------------------------------------------------------------

class TestStreakState:
    def test_absent_before_first_save(self, store):
        assert store.load_streak_state() is None

    def test_round_trip(self, store):
        state = StreakState(
            current_streak=3,
            last_check_date="2024-01-03",
            best_streak=5,
            total_calm_days=11,
            weekly_calendar={"2024-01-01": True, "2024-01-02": False, "2024-01-03": True},
        )
        store.save_streak_state(state)
        assert store.load_streak_state() == state

    def test_save_overwrites_wholesale(self, store):
        store.save_streak_state(StreakState(current_streak=1, last_check_date="2024-01-01",
                                            best_streak=1, total_calm_days=1,
                                            weekly_calendar={"2024-01-01": True}))
        newer = StreakState(last_check_date="2024-01-02", best_streak=1, total_calm_days=1,
                            weekly_calendar={"2024-01-02": False})
        store.save_streak_state(newer)
        assert store.load_streak_state() == newer


class TestRecordCheckin:
    def test_persists_reading_and_state(self, store):
        state = StreakState(current_streak=1, last_check_date="2024-01-01", best_streak=1,
                            total_calm_days=1, weekly_calendar={"2024-01-01": True})
        reading_id = store.record_checkin(make_reading(100), state)
        [stored] = store.get_all_readings()
        assert stored.id == reading_id
        assert store.load_streak_state() == state

    def test_invalid_reading_writes_nothing(self, store):
        data = make_reading(100)
        del data["timestamp"]
        with pytest.raises(InvalidRecord):
            store.record_checkin(data, StreakState(current_streak=1, best_streak=1))
        assert store.get_all_readings() == []
        assert store.load_streak_state() is None


class TestApplyCheckin:
    _DAY_ONE = StreakState(current_streak=1, last_check_date="2024-01-02", best_streak=1,
                           total_calm_days=1, weekly_calendar={"2024-01-02": True})

    def test_fold_receives_none_before_first_save(self, store):
        seen = []

        def fold(previous):
            seen.append(previous)
            return self._DAY_ONE

        reading_id, state = store.apply_checkin(make_reading(100), fold)
        assert seen == [None]
        assert state == self._DAY_ONE
        assert store.load_streak_state() == self._DAY_ONE
        assert [r.id for r in store.get_all_readings()] == [reading_id]

    def test_fold_receives_saved_state(self, store):
        store.save_streak_state(self._DAY_ONE)
        seen = []

        def fold(previous):
            seen.append(previous)
            return previous

        store.apply_checkin(make_reading(100), fold)
        assert seen == [self._DAY_ONE]

    def test_concurrent_fold_waits_for_running_one(self, store):
        entered = threading.Event()
        release = threading.Event()
        seen = []

        def slow_fold(previous):
            entered.set()
            release.wait(5)
            return self._DAY_ONE

        def second_fold(previous):
            seen.append(previous)
            return previous

        first = threading.Thread(target=store.apply_checkin, args=(make_reading(1), slow_fold))
        first.start()
        assert entered.wait(5)
        second = threading.Thread(target=store.apply_checkin, args=(make_reading(2), second_fold))
        second.start()
        second.join(0.2)
        assert second.is_alive()

        release.set()
        first.join(5)
        second.join(5)
        assert seen == [self._DAY_ONE]
        assert store.load_streak_state() == self._DAY_ONE
        assert len(store.get_all_readings()) == 2

    def test_failing_fold_writes_nothing(self, store):
        def fold(previous):
            raise ValueError("bad day")

        with pytest.raises(ValueError):
            store.apply_checkin(make_reading(100), fold)
        assert store.get_all_readings() == []
        assert store.load_streak_state() is None


# ---------------------------------------------------------------------------
# Lifecycle and migrations
# ---------------------------------------------------------------------------

class TestLifecycle:
    def test_schema_version(self, store):
        assert store.schema_version() == SCHEMA_VERSION == 2

    def test_open_is_idempotent(self, store):
        assert store.open() is store

    def test_reopen_keeps_data(self, db_url):
        with Store(db_url) as s:
            s.add_reading(make_reading(42))
        with Store(db_url) as s:
            assert [r.timestamp for r in s.get_all_readings()] == [42]

    def test_operations_after_close_fail(self, db_url):
        s = Store(db_url).open()
        s.close()
        assert not s.is_open
        with pytest.raises(StorageUnavailable):
            s.get_all_readings()

    def test_unopenable_path_is_unavailable(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        with pytest.raises(StorageUnavailable) as exc_info:
            Store(f"sqlite:///{blocker / 'calmtrack.db'}").open()
        assert exc_info.value.code == "STORAGE_UNAVAILABLE"

    def test_in_memory_store(self):
        with Store("sqlite://") as s:
            s.add_reading(make_reading(7))
            assert len(s.get_all_readings()) == 1


class TestMigrations:
    def test_upgrade_from_version_one_keeps_readings(self, db_url):
        with Store(db_url, target_version=1) as old:
            assert old.schema_version() == 1
            old.add_reading(make_reading(100, "stressed", "before upgrade"))

        with Store(db_url) as new:
            assert new.schema_version() == 2
            [reading] = new.get_all_readings()
            assert reading.message == "before upgrade"
            assert new.load_streak_state() is None

    def test_version_one_has_no_streak_table(self, db_url):
        with Store(db_url, target_version=1) as old:
            with pytest.raises(EngineRejected) as exc_info:
                old.load_streak_state()
        assert exc_info.value.details["operation"] == "load_streak_state"
        assert exc_info.value.__cause__ is not None

    def test_upgrade_keeps_existing_streak_table(self, db_url):
        state = StreakState(current_streak=1, last_check_date="2024-01-01", best_streak=1,
                            total_calm_days=1, weekly_calendar={"2024-01-01": True})
        with Store(db_url) as s:
            s.save_streak_state(state)
        _stamp(db_url, "0001")
        with Store(db_url, target_version=1) as s:
            assert s.schema_version() == 1

        # 0002 runs again but finds streak_state already there
        with Store(db_url) as s:
            assert s.schema_version() == 2
            assert s.load_streak_state() == state


def _stamp(db_url: str, revision: str) -> None:
    """Rewrite the recorded schema version without touching any table."""
    engine = create_engine(db_url)
    try:
        with engine.begin() as connection:
            cfg = Config()
            cfg.set_main_option("script_location", str(_MIGRATIONS_DIR))
            cfg.attributes["connection"] = connection
            command.stamp(cfg, revision)
    finally:
        engine.dispose()
