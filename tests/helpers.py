from __future__ import annotations

from itertools import cycle
from typing import Callable, Iterable, List, Optional

from chroma_chaos.game import Block, Color, Grid, GameSession, GameSettings, Position, Shape

R, B, G, Y, P = Color.RED, Color.BLUE, Color.GREEN, Color.YELLOW, Color.PURPLE
_ = None


def block(shape: Shape, color: Color, x: int = 0, y: int = 0, rotation: int = 0, block_id: str = "b") -> Block:
    return Block(id=block_id, color=color, shape=shape, rotation=rotation, position=Position(x, y))


class FixedGenerator:
    """Hands out copies of a fixed block sequence, cycling forever."""

    def __init__(self, blocks: Iterable[Block]) -> None:
        self._blocks = cycle(list(blocks))
        self.calls: List[bool] = []

    def generate_block(self, include_special: bool = False) -> Block:
        self.calls.append(include_special)
        return next(self._blocks)


def session_with(
    rows,
    current: Optional[Block],
    next_block: Optional[Block] = None,
    **fields,
) -> GameSession:
    grid = Grid.from_rows(rows)
    settings = GameSettings(grid_width=grid.width, grid_height=grid.height, enable_special_blocks=False)
    return GameSession(settings=settings, grid=grid, current_block=current, next_block=next_block, **fields)


class _Handle:
    def __init__(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Records scheduled ticks; tests fire them explicitly."""

    def __init__(self) -> None:
        self.handles: List[_Handle] = []

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(delay_ms, callback)
        self.handles.append(handle)
        return handle

    def live(self) -> List[_Handle]:
        return [h for h in self.handles if not (h.cancelled or h.fired)]

    def fire(self) -> None:
        live = self.live()
        assert len(live) == 1, f"expected one pending tick, found {len(live)}"
        live[0].fired = True
        live[0].callback()
