"""Runtime glue around the game engine: the single-writer controller,
fall-tick scheduling and the statistics interface it reports to."""

from .controller import GameController
from .scheduler import ThreadingScheduler, TickHandle, TickScheduler
from .stats import GameStats, InMemoryStatsRecorder, StatsRecorder

__all__ = [
    "GameController",
    "ThreadingScheduler",
    "TickHandle",
    "TickScheduler",
    "GameStats",
    "InMemoryStatsRecorder",
    "StatsRecorder",
]
