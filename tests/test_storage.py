"""Tests for GameStorage persistence."""

import json

import pytest

from snake_survival.events import EndReason, EventType
from snake_survival.storage import (
    STORAGE_KEY,
    FileStore,
    GameStorage,
    MemoryStore,
    StorageData,
    StorageFullError,
)


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def storage(clock):
    return GameStorage(MemoryStore(), clock=clock)


def _play(storage, clock, score, seconds=10.0, reason=EndReason.SELF_COLLISION):
    storage.start_session()
    clock.advance(seconds)
    assert storage.end_session(score, 3 + score, reason)


class TestLoad:
    def test_empty_store_gives_defaults(self, storage):
        stats = storage.get_statistics()
        assert stats.total_games_played == 0
        assert storage.get_history() == []
        assert storage.load_saved_state() is None

    def test_corrupt_document_resets(self, caplog):
        store = MemoryStore()
        store.set(STORAGE_KEY, "{not json")
        storage = GameStorage(store)
        assert storage.get_history() == []
        assert "Invalid stored game data" in caplog.text

    def test_non_utf8_file_resets(self, tmp_path, caplog):
        (tmp_path / f"{STORAGE_KEY}.json").write_bytes(b"\xff\xfe\x00garbage")
        storage = GameStorage(FileStore(tmp_path))
        assert storage.get_history() == []
        assert storage.get_statistics().total_games_played == 0
        assert "not valid UTF-8" in caplog.text

    def test_persisted_across_instances(self, clock):
        store = MemoryStore()
        first = GameStorage(store, clock=clock)
        _play(first, clock, 4)
        second = GameStorage(store, clock=clock)
        assert second.get_statistics().best_score == 4
        assert len(second.get_history()) == 1


class TestSessions:
    def test_end_without_session(self, storage):
        assert not storage.end_session(1, 3, EndReason.USER_QUIT)
        assert storage.get_history() == []

    def test_summary_fields(self, storage, clock):
        storage.start_session()
        storage.record_event(EventType.FOOD_EATEN, (1, 2), {"score": 1})
        storage.record_event(EventType.TRAP_HIT, (3, 4), {"previous_snake_length": 6})
        clock.advance(12.5)
        storage.end_session(1, 3, EndReason.OBSTACLE_COLLISION)

        [summary] = storage.get_history()
        assert summary.id.startswith("game_1000000_")
        assert summary.score == 1
        assert summary.snake_length == 3
        assert summary.duration == pytest.approx(12.5)
        assert summary.traps_encountered == 1
        assert summary.end_reason is EndReason.OBSTACLE_COLLISION
        assert [e.type for e in summary.game_events] == [
            EventType.FOOD_EATEN, EventType.TRAP_HIT,
        ]
        assert not storage.has_active_session

    def test_statistics_aggregate(self, storage, clock):
        _play(storage, clock, 10, seconds=5)
        _play(storage, clock, 20, seconds=15)
        _play(storage, clock, 0, seconds=1)
        stats = storage.get_statistics()
        assert stats.total_games_played == 3
        assert stats.best_score == 20
        assert stats.average_score == pytest.approx(10.0)
        assert stats.total_playtime == pytest.approx(21.0)
        assert stats.games_this_session == 3
        assert stats.last_played == clock.now

    def test_event_counters(self, storage):
        storage.start_session()
        storage.record_event(EventType.FOOD_EATEN, (0, 0))
        storage.record_event(EventType.FOOD_EATEN, (0, 1))
        storage.record_event(EventType.WALL_PASSTHROUGH, (0, 2))
        storage.record_event(EventType.SPEED_INCREASE, (0, 3), {"new_speed": 145})
        stats = storage.get_statistics()
        assert stats.total_food_eaten == 2
        assert stats.total_wall_passthroughs == 1
        assert stats.total_traps_hit == 0

    def test_history_most_recent_first(self, storage, clock):
        for score in (1, 2, 3):
            _play(storage, clock, score)
        assert [s.score for s in storage.get_history()] == [3, 2, 1]

    def test_history_capped(self, storage, clock):
        for score in range(55):
            _play(storage, clock, score, seconds=1)
        history = storage.get_history()
        assert len(history) == 50
        assert history[0].score == 54
        assert history[-1].score == 5

    def test_statistics_returns_copy(self, storage):
        storage.get_statistics().best_score = 999
        assert storage.get_statistics().best_score == 0


class TestSavedGame:
    def test_save_requires_session(self, storage):
        assert not storage.save_state({"score": 1}, 150)
        assert storage.load_saved_state() is None

    def test_save_and_resume(self, clock):
        store = MemoryStore()
        storage = GameStorage(store, clock=clock)
        storage.start_session()
        storage.record_event(EventType.TRAP_HIT, (5, 5), {"previous_snake_length": 4})
        assert storage.save_state({"score": 7, "phase": "playing"}, 140)

        reopened = GameStorage(store, clock=clock)
        saved = reopened.load_saved_state()
        assert saved.game_state["score"] == 7
        assert saved.tick_interval_ms == 140
        assert saved.session_start_time == 1_000.0
        assert reopened.resume_saved_session()
        clock.advance(30)
        reopened.end_session(7, 4, EndReason.USER_QUIT)
        [summary] = reopened.get_history()
        assert summary.duration == pytest.approx(30)
        assert summary.traps_encountered == 1
        assert len(summary.game_events) == 1

    def test_resume_without_save(self, storage):
        assert not storage.resume_saved_session()

    def test_end_session_clears_save(self, storage):
        storage.start_session()
        storage.save_state({"score": 0}, 150)
        storage.end_session(0, 3, EndReason.USER_QUIT)
        assert storage.load_saved_state() is None

    def test_clear_saved_state(self, storage):
        storage.start_session()
        storage.save_state({"score": 0}, 150)
        assert storage.clear_saved_state()
        assert storage.load_saved_state() is None


class TestQuota:
    def test_full_store_evicts_oldest(self, clock):
        store = MemoryStore()
        storage = GameStorage(store, clock=clock)
        for score in range(20):
            _play(storage, clock, score, seconds=1)
        store.quota = len(store.get(STORAGE_KEY)) + 100

        storage.start_session()
        clock.advance(1)
        assert storage.end_session(99, 3, EndReason.USER_QUIT)
        scores = [s.score for s in storage.get_history()]
        assert len(scores) == 11
        assert scores[0] == 99
        assert 9 not in scores

    def test_save_fails_after_eviction(self, storage, caplog):
        storage.store = MemoryStore(quota=10)
        storage.start_session()
        assert not storage.end_session(1, 3, EndReason.USER_QUIT)
        assert "even after eviction" in caplog.text

    def test_memory_store_quota(self):
        store = MemoryStore(quota=4)
        with pytest.raises(StorageFullError):
            store.set("k", "12345")


class TestAdmin:
    def test_clear_history_keeps_session_count(self, storage, clock):
        _play(storage, clock, 5)
        _play(storage, clock, 6)
        assert storage.clear_history()
        stats = storage.get_statistics()
        assert storage.get_history() == []
        assert stats.best_score == 0
        assert stats.total_games_played == 0
        assert stats.games_this_session == 2

    def test_export_import(self, storage, clock):
        _play(storage, clock, 8)
        exported = storage.export_data()
        assert json.loads(exported)["version"] == 1

        other = GameStorage(MemoryStore(), clock=clock)
        assert other.import_data(exported)
        assert other.get_statistics().best_score == 8
        assert other.get_history()[0].score == 8

    def test_import_rejects_garbage(self, storage, clock):
        _play(storage, clock, 3)
        assert not storage.import_data("nonsense")
        assert not storage.import_data(json.dumps({"history": "nope"}))
        assert storage.get_statistics().best_score == 3

    def test_storage_info(self, storage, clock):
        _play(storage, clock, 2)
        info = storage.get_storage_info()
        assert info["history_count"] == 1
        assert not info["has_saved_game"]
        assert info["used"] > 0

    def test_storage_data_defaults(self):
        data = StorageData()
        assert data.settings.max_history_size == 50
        assert data.settings.auto_save


class TestFileStore:
    def test_roundtrip(self, tmp_path):
        store = FileStore(tmp_path / "data")
        assert store.get("k") is None
        store.set("k", '{"a": 1}')
        assert store.get("k") == '{"a": 1}'
        assert (tmp_path / "data" / "k.json").exists()
        store.delete("k")
        assert store.get("k") is None

    def test_storage_on_disk(self, tmp_path, clock):
        storage = GameStorage(FileStore(tmp_path), clock=clock)
        _play(storage, clock, 12)
        reopened = GameStorage(FileStore(tmp_path), clock=clock)
        assert reopened.get_statistics().best_score == 12
