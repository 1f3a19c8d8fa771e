"""Persistence of session history, statistics, and saved games.

:class:`GameStorage` keeps one JSON document in a :class:`KeyValueStore`.
Every failure is logged and reported to the caller as ``False`` (or as
defaults on load) so that persistence problems never stall a running game.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from snake_survival.events import EndReason, EventType

logger = logging.getLogger(__name__)

STORAGE_KEY = "snake-game-data"
STORAGE_VERSION = 1
MAX_HISTORY_SIZE = 50
# Sessions dropped from the front of the history when the store is full.
_QUOTA_EVICTION = 10


class StorageFullError(OSError):
    """Raised by a store whose quota cannot hold the written value."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store with an optional byte quota."""

    def __init__(self, quota: int | None = None) -> None:
        self.quota = quota
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota is not None and len(value.encode()) > self.quota:
            raise StorageFullError(
                f"Value of {len(value.encode())} bytes exceeds quota {self.quota}."
            )
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore:
    """Stores each key as ``<root>/<key>.json``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Stored document schema
# ---------------------------------------------------------------------------


class GameEvent(BaseModel):
    """A domain event recorded during a session."""

    type: EventType
    timestamp: float
    position: tuple[int, int]
    data: dict[str, Any] | None = None


class SessionSummary(BaseModel):
    """A finished session as kept in the history."""

    id: str
    timestamp: float
    score: int
    duration: float
    snake_length: int
    traps_encountered: int
    game_events: list[GameEvent] = Field(default_factory=list)
    end_reason: EndReason


class GameStatistics(BaseModel):
    """Aggregates over every finished session."""

    total_games_played: int = 0
    best_score: int = 0
    average_score: float = 0.0
    total_playtime: float = 0.0
    total_food_eaten: int = 0
    total_traps_hit: int = 0
    total_wall_passthroughs: int = 0
    games_this_session: int = 0
    last_played: float = 0.0


class SavedGame(BaseModel):
    """An in-progress game that can be resumed."""

    game_state: dict[str, Any]
    tick_interval_ms: int
    session_start_time: float
    events: list[GameEvent] = Field(default_factory=list)
    traps_encountered: int = 0


class StorageSettings(BaseModel):
    auto_save: bool = True
    max_history_size: int = Field(default=MAX_HISTORY_SIZE, ge=1)


class StorageData(BaseModel):
    """The single document persisted under :data:`STORAGE_KEY`."""

    version: int = STORAGE_VERSION
    history: list[SessionSummary] = Field(default_factory=list)
    statistics: GameStatistics = Field(default_factory=GameStatistics)
    saved_game: SavedGame | None = None
    settings: StorageSettings = Field(default_factory=StorageSettings)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class GameStorage:
    """Session recording and saved-game persistence over a key-value store.

    Tracks the currently open session (start time, events, traps hit) in
    memory; :meth:`end_session` turns it into a :class:`SessionSummary`.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.clock = clock
        self.data = self._load()
        self._session_start: float | None = None
        self._events: list[GameEvent] = []
        self._traps_encountered = 0

    @property
    def has_active_session(self) -> bool:
        return self._session_start is not None

    # -- raw document I/O ----------------------------------------------------

    def _load(self) -> StorageData:
        try:
            raw = self.store.get(STORAGE_KEY)
        except UnicodeDecodeError:
            logger.warning("Stored game data is not valid UTF-8; resetting to defaults.")
            return StorageData()
        except OSError:
            logger.exception("Failed to read game data; using defaults.")
            return StorageData()
        if not raw:
            return StorageData()
        try:
            return self._migrate(StorageData.model_validate_json(raw))
        except ValidationError:
            logger.warning("Invalid stored game data; resetting to defaults.")
            return StorageData()

    @staticmethod
    def _migrate(data: StorageData) -> StorageData:
        # Version 1 is the only schema so far.
        return data

    def _save(self) -> bool:
        cap = self.data.settings.max_history_size
        if len(self.data.history) > cap:
            self.data.history = self.data.history[-cap:]
        try:
            self.store.set(STORAGE_KEY, self.data.model_dump_json())
            return True
        except StorageFullError:
            logger.warning(
                "Storage full; dropping the %d oldest sessions and retrying.",
                _QUOTA_EVICTION,
            )
            self.data.history = self.data.history[_QUOTA_EVICTION:]
            try:
                self.store.set(STORAGE_KEY, self.data.model_dump_json())
                return True
            except OSError:
                logger.error("Failed to save game data even after eviction.")
                return False
        except OSError:
            logger.exception("Failed to save game data.")
            return False

    # -- session recording -----------------------------------------------------

    def start_session(self) -> None:
        """Open a new session record."""
        self._session_start = self.clock()
        self._events = []
        self._traps_encountered = 0
        self.data.statistics.games_this_session += 1

    def record_event(
        self,
        event_type: EventType,
        position: tuple[int, int],
        data: dict[str, Any] | None = None,
    ) -> None:
        """Append an event to the open session and update running totals."""
        self._events.append(
            GameEvent(
                type=event_type,
                timestamp=self.clock(),
                position=position,
                data=data,
            )
        )
        stats = self.data.statistics
        if event_type is EventType.FOOD_EATEN:
            stats.total_food_eaten += 1
        elif event_type is EventType.TRAP_HIT:
            stats.total_traps_hit += 1
            self._traps_encountered += 1
        elif event_type is EventType.WALL_PASSTHROUGH:
            stats.total_wall_passthroughs += 1

    def end_session(
        self, score: int, snake_length: int, reason: EndReason,
    ) -> bool:
        """Close the open session into the history.

        Returns ``False`` when no session is open or the write failed.
        """
        if not self.has_active_session:
            return False

        now = self.clock()
        duration = now - self._session_start
        summary = SessionSummary(
            id=f"game_{int(self._session_start * 1000)}_{uuid.uuid4().hex[:9]}",
            timestamp=self._session_start,
            score=score,
            duration=duration,
            snake_length=snake_length,
            traps_encountered=self._traps_encountered,
            game_events=list(self._events),
            end_reason=reason,
        )
        self.data.history.append(summary)

        stats = self.data.statistics
        stats.total_games_played += 1
        stats.total_playtime += duration
        stats.last_played = now
        stats.best_score = max(stats.best_score, score)
        stats.average_score += (score - stats.average_score) / stats.total_games_played

        self.data.saved_game = None
        self._session_start = None
        self._events = []
        self._traps_encountered = 0
        logger.info(
            "Session %s ended (%s) with score %d.", summary.id, reason.value, score,
        )
        return self._save()

    # -- saved games -----------------------------------------------------------

    def save_state(self, state: dict[str, Any], tick_interval_ms: int) -> bool:
        """Persist an in-progress game so it can be resumed later."""
        if not self.has_active_session:
            return False
        self.data.saved_game = SavedGame(
            game_state=state,
            tick_interval_ms=tick_interval_ms,
            session_start_time=self._session_start,
            events=list(self._events),
            traps_encountered=self._traps_encountered,
        )
        return self._save()

    def load_saved_state(self) -> SavedGame | None:
        return self.data.saved_game

    def resume_saved_session(self) -> bool:
        """Reopen session tracking from the saved game."""
        saved = self.data.saved_game
        if saved is None:
            return False
        self._session_start = saved.session_start_time
        self._events = list(saved.events)
        self._traps_encountered = saved.traps_encountered
        return True

    def clear_saved_state(self) -> bool:
        self.data.saved_game = None
        return self._save()

    # -- history and statistics -----------------------------------------------

    def get_history(self) -> list[SessionSummary]:
        """Return finished sessions, most recent first."""
        return list(reversed(self.data.history))

    def get_statistics(self) -> GameStatistics:
        return self.data.statistics.model_copy()

    def clear_history(self) -> bool:
        """Drop all history and statistics except the per-process game count."""
        games_this_session = self.data.statistics.games_this_session
        self.data.history = []
        self.data.statistics = GameStatistics(games_this_session=games_this_session)
        return self._save()

    def export_data(self) -> str:
        return self.data.model_dump_json(indent=2)

    def import_data(self, payload: str) -> bool:
        """Replace all stored data with an exported document."""
        try:
            imported = StorageData.model_validate_json(payload)
        except ValidationError:
            logger.warning("Rejected invalid game data import.")
            return False
        self.data = self._migrate(imported)
        return self._save()

    def get_storage_info(self) -> dict[str, Any]:
        used = len(json.dumps(self.data.model_dump(mode="json")).encode())
        return {
            "used": used,
            "history_count": len(self.data.history),
            "has_saved_game": self.data.saved_game is not None,
        }
