from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Protocol


@dataclass(frozen=True)
class GameStats:
    high_score: int = 0
    total_games_played: int = 0
    total_lines_cleared: int = 0
    total_play_time_ms: int = 0
    best_combo: int = 0


class StatsRecorder(Protocol):
    """Persistence requests issued by the controller. Implementations may block or fail."""

    def increment_games_played(self) -> None: ...

    def add_lines_cleared(self, count: int) -> None: ...

    def update_best_combo(self, combo: int) -> None: ...

    def save_high_score(self, score: int) -> None: ...

    def add_play_time(self, play_time_ms: int) -> None: ...


class InMemoryStatsRecorder:
    """Keeps lifetime statistics in memory.

    High score and best combo only move up; the other counters accumulate.
    """

    def __init__(self, stats: GameStats | None = None) -> None:
        self._stats = stats or GameStats()
        self._lock = threading.Lock()

    @property
    def stats(self) -> GameStats:
        return self._stats

    def increment_games_played(self) -> None:
        with self._lock:
            self._stats = replace(self._stats, total_games_played=self._stats.total_games_played + 1)

    def add_lines_cleared(self, count: int) -> None:
        with self._lock:
            self._stats = replace(self._stats, total_lines_cleared=self._stats.total_lines_cleared + count)

    def update_best_combo(self, combo: int) -> None:
        with self._lock:
            if combo > self._stats.best_combo:
                self._stats = replace(self._stats, best_combo=combo)

    def save_high_score(self, score: int) -> None:
        with self._lock:
            if score > self._stats.high_score:
                self._stats = replace(self._stats, high_score=score)

    def add_play_time(self, play_time_ms: int) -> None:
        with self._lock:
            self._stats = replace(self._stats, total_play_time_ms=self._stats.total_play_time_ms + play_time_ms)
