from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np

from .generator import BlockGenerator
from .grid import Grid, is_valid_position, lock_block
from .matching import resolve_chains
from .pieces import Block
from .rules import Difficulty, ScoringRules


class MoveDirection(IntEnum):
    LEFT = 0
    RIGHT = 1
    DOWN = 2


_DELTAS = {
    MoveDirection.LEFT: (-1, 0),
    MoveDirection.RIGHT: (1, 0),
    MoveDirection.DOWN: (0, 1),
}


@dataclass(frozen=True)
class GameSettings:
    """Per-game options chosen before a session starts."""

    grid_width: int = 12
    grid_height: int = 20
    enable_special_blocks: bool = True
    difficulty: Difficulty = Difficulty.NORMAL

    # Ranges offered by the settings editor; the engine itself accepts any positive size.
    WIDTH_RANGE = (8, 15)
    HEIGHT_RANGE = (10, 20)

    def __post_init__(self) -> None:
        if self.grid_width < 1 or self.grid_height < 1:
            raise ValueError(f"grid size must be positive, got {self.grid_width}x{self.grid_height}")
        if not isinstance(self.difficulty, Difficulty):
            raise ValueError(f"unknown difficulty: {self.difficulty!r}")

    def clamped(self) -> "GameSettings":
        lo_w, hi_w = self.WIDTH_RANGE
        lo_h, hi_h = self.HEIGHT_RANGE
        return replace(
            self,
            grid_width=min(max(self.grid_width, lo_w), hi_w),
            grid_height=min(max(self.grid_height, lo_h), hi_h),
        )

    def spawn_x(self) -> int:
        return self.grid_width // 2 - 1


@dataclass(frozen=True)
class GameSession:
    settings: GameSettings
    grid: Grid
    current_block: Optional[Block] = None
    next_block: Optional[Block] = None
    score: int = 0
    level: int = 1
    total_lines_cleared: int = 0
    combo: int = 0
    chain_count: int = 0
    is_game_over: bool = False
    is_paused: bool = False
    fall_interval_ms: int = 1000

    @property
    def accepts_input(self) -> bool:
        return not (self.is_paused or self.is_game_over) and self.current_block is not None


# Outbound requests for the statistics collaborator.
@dataclass(frozen=True)
class GameStarted:
    pass


@dataclass(frozen=True)
class LinesCleared:
    count: int


@dataclass(frozen=True)
class BestComboUpdated:
    combo: int


@dataclass(frozen=True)
class GameOver:
    score: int


GameEvent = Union[GameStarted, LinesCleared, BestComboUpdated, GameOver]


class Transition(NamedTuple):
    session: GameSession
    events: Tuple[GameEvent, ...] = ()


class GameEngine:
    """Pure state transitions over :class:`GameSession` snapshots.

    The only state held here is the block generator's random stream; every
    method returns a new session and leaves its argument untouched.
    """

    def __init__(self, rules: Optional[ScoringRules] = None, generator: Optional[BlockGenerator] = None) -> None:
        self.rules = rules or ScoringRules()
        self.generator = generator or BlockGenerator()

    def _new_block(self, settings: GameSettings) -> Block:
        return self.generator.generate_block(settings.enable_special_blocks)

    def start_new_game(self, settings: Optional[GameSettings] = None) -> Transition:
        settings = settings or GameSettings()
        grid = Grid.empty(settings.grid_width, settings.grid_height)
        current = self._new_block(settings).at(settings.spawn_x(), 0)
        # A board narrower than the first block ends the game before it starts.
        fits = is_valid_position(grid, current)
        session = GameSession(
            settings=settings,
            grid=grid,
            current_block=current if fits else None,
            next_block=self._new_block(settings),
            is_game_over=not fits,
            fall_interval_ms=self.rules.fall_interval_ms(1, settings.difficulty),
        )
        if not fits:
            return Transition(session, (GameStarted(), GameOver(0)))
        return Transition(session, (GameStarted(),))

    def move_block(self, session: GameSession, direction: MoveDirection) -> Transition:
        if not session.accepts_input:
            return Transition(session)
        block = session.current_block
        dx, dy = _DELTAS[MoveDirection(direction)]
        candidate = block.moved(dx, dy)
        if is_valid_position(session.grid, candidate):
            return Transition(replace(session, current_block=candidate))
        if direction == MoveDirection.DOWN:
            return self._place_block(session, block)
        return Transition(session)

    def rotate_block(self, session: GameSession) -> Transition:
        if not session.accepts_input:
            return Transition(session)
        candidate = session.current_block.rotated()
        if is_valid_position(session.grid, candidate):
            return Transition(replace(session, current_block=candidate))
        return Transition(session)

    def drop_block(self, session: GameSession) -> Transition:
        if not session.accepts_input:
            return Transition(session)
        block = session.current_block
        while is_valid_position(session.grid, block.moved(0, 1)):
            block = block.moved(0, 1)
        return self._place_block(session, block)

    def tick(self, session: GameSession) -> Transition:
        return self.move_block(session, MoveDirection.DOWN)

    def pause(self, session: GameSession) -> Transition:
        if session.is_game_over or session.is_paused:
            return Transition(session)
        return Transition(replace(session, is_paused=True))

    def resume(self, session: GameSession) -> Transition:
        if session.is_game_over or not session.is_paused:
            return Transition(session)
        return Transition(replace(session, is_paused=False))

    def _place_block(self, session: GameSession, block: Block) -> Transition:
        settings = session.settings
        chain = resolve_chains(lock_block(session.grid, block), self.rules)
        cleared = chain.cells_cleared
        total_lines = session.total_lines_cleared + cleared
        level = self.rules.level_for_lines(total_lines)
        combo = self.rules.next_combo(session.combo, cleared)
        score = session.score + chain.score

        spawned = None
        if session.next_block is not None:
            spawned = session.next_block.at(settings.spawn_x(), 0)
        game_over = spawned is None or not is_valid_position(chain.grid, spawned)

        next_session = replace(
            session,
            grid=chain.grid,
            current_block=None if game_over else spawned,
            next_block=self._new_block(settings),
            score=score,
            level=level,
            total_lines_cleared=total_lines,
            combo=combo,
            chain_count=chain.chain_count,
            is_game_over=game_over,
            fall_interval_ms=self.rules.fall_interval_ms(level, settings.difficulty),
        )
        events: list[GameEvent] = []
        if cleared:
            events.append(LinesCleared(cleared))
            events.append(BestComboUpdated(combo))
        if game_over:
            events.append(GameOver(score))
        return Transition(next_session, tuple(events))


def board_array(session: GameSession) -> np.ndarray:
    """Grid color codes with the falling block overlaid as negative codes."""
    state = session.grid.to_array()
    block = session.current_block
    if block is not None and not session.is_game_over:
        for x, y in block.cells():
            if session.grid.is_inside(x, y):
                state[y, x] = -int(block.color)
    return state
