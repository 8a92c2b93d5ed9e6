from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional

from chroma_chaos.game import (
    BestComboUpdated,
    GameEngine,
    GameOver,
    GameSession,
    GameSettings,
    GameStarted,
    LinesCleared,
    MoveDirection,
    Transition,
)

from .scheduler import ThreadingScheduler, TickHandle, TickScheduler
from .stats import StatsRecorder

logger = logging.getLogger(__name__)

Subscriber = Callable[[GameSession], None]


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("statistics update failed", exc_info=exc)


def _notify(callback: Subscriber, session: GameSession) -> None:
    try:
        callback(session)
    except Exception:
        logger.exception("state subscriber %r failed", callback)


class GameController:
    """Single writer around a :class:`GameEngine`.

    Every command reads the current snapshot, computes the next one and
    publishes it under one lock, so concurrent callers (input handlers and
    the fall timer) never lose an update. Statistics requests are handed to
    an executor and never wait on, or roll back, the game state.
    """

    def __init__(
        self,
        engine: Optional[GameEngine] = None,
        recorder: Optional[StatsRecorder] = None,
        scheduler: Optional[TickScheduler] = None,
        executor: Optional[Executor] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine or GameEngine()
        self.recorder = recorder
        self.scheduler = scheduler or ThreadingScheduler()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="chroma-stats")
        self._clock = clock
        self._lock = threading.RLock()
        self._state: Optional[GameSession] = None
        self._subscribers: List[Subscriber] = []
        self._timer: Optional[TickHandle] = None
        self._timer_generation = 0
        self._started_at = 0.0
        self._closed = False

    @property
    def state(self) -> Optional[GameSession]:
        return self._state

    @property
    def tick_pending(self) -> bool:
        return self._timer is not None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for every new snapshot; it gets the current one right away."""
        with self._lock:
            self._subscribers.append(callback)
            if self._state is not None:
                _notify(callback, self._state)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # Commands

    def start_new_game(self, settings: Optional[GameSettings] = None) -> GameSession:
        with self._lock:
            if self._closed:
                raise RuntimeError("controller is closed")
            self._cancel_tick()
            self._started_at = self._clock()
            transition = self.engine.start_new_game(settings)
            s = transition.session.settings
            logger.debug("new game %dx%d (%s)", s.grid_width, s.grid_height, s.difficulty.value)
            self._commit(transition, rearm=True)
            return self._state

    def move_block(self, direction: MoveDirection) -> Optional[GameSession]:
        return self._run(lambda s: self.engine.move_block(s, direction))

    def rotate_block(self) -> Optional[GameSession]:
        return self._run(self.engine.rotate_block)

    def drop_block(self) -> Optional[GameSession]:
        return self._run(self.engine.drop_block)

    def pause(self) -> Optional[GameSession]:
        return self._run(self.engine.pause)

    def resume(self) -> Optional[GameSession]:
        return self._run(self.engine.resume)

    def tick(self) -> Optional[GameSession]:
        return self._run(self.engine.tick, rearm=True)

    def close(self) -> None:
        """Stop the fall timer and flush pending statistics requests."""
        with self._lock:
            self._closed = True
            self._cancel_tick()
            self._subscribers.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "GameController":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # Internals

    def _run(self, step: Callable[[GameSession], Transition], rearm: bool = False) -> Optional[GameSession]:
        with self._lock:
            if self._state is None or self._closed:
                return self._state
            self._commit(step(self._state), rearm)
            return self._state

    def _commit(self, transition: Transition, rearm: bool) -> None:
        previous = self._state
        session = transition.session
        if session is not previous:
            self._state = session
            for callback in list(self._subscribers):
                _notify(callback, session)
        self._dispatch(transition)
        self._update_timer(previous, session, rearm)

    def _dispatch(self, transition: Transition) -> None:
        for event in transition.events:
            if isinstance(event, GameOver):
                logger.info("game over: score=%d level=%d", event.score, transition.session.level)
            if self.recorder is None:
                continue
            if isinstance(event, GameStarted):
                self._submit(self.recorder.increment_games_played)
            elif isinstance(event, LinesCleared):
                self._submit(self.recorder.add_lines_cleared, event.count)
            elif isinstance(event, BestComboUpdated):
                self._submit(self.recorder.update_best_combo, event.combo)
            elif isinstance(event, GameOver):
                play_time_ms = int((self._clock() - self._started_at) * 1000)
                self._submit(self.recorder.save_high_score, event.score)
                self._submit(self.recorder.add_play_time, play_time_ms)

    def _submit(self, fn: Callable[..., None], *args: Any) -> None:
        self._executor.submit(fn, *args).add_done_callback(_log_failure)

    def _update_timer(self, previous: Optional[GameSession], session: GameSession, rearm: bool) -> None:
        if session.is_game_over or session.is_paused:
            self._cancel_tick()
            return
        interval_changed = previous is None or previous.fall_interval_ms != session.fall_interval_ms
        # Pausing dropped the timer, so a resumed game lands in the last clause.
        if rearm or interval_changed or self._timer is None:
            self._arm_tick(session.fall_interval_ms)

    def _arm_tick(self, delay_ms: int) -> None:
        self._cancel_tick()
        generation = self._timer_generation
        self._timer = self.scheduler.schedule(delay_ms, lambda: self._on_timer(generation))

    def _cancel_tick(self) -> None:
        # Bumping the generation also rejects a callback that is already running.
        self._timer_generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._timer_generation:
                return
            self._timer = None
            self.tick()
