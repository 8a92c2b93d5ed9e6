from __future__ import annotations

import threading
from typing import Callable, Protocol


class TickHandle(Protocol):
    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    """Runs ``callback`` once after ``delay_ms``; the handle cancels it."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TickHandle: ...


class ThreadingScheduler:
    """Default scheduler backed by daemon ``threading.Timer`` threads."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return timer
