"""Color-run detection and the chain-reaction clearing loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Set, Tuple

import numpy as np

from .grid import Coordinate, Grid
from .rules import ScoringRules


def _runs(line: np.ndarray, min_length: int) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` spans of same-color runs at least ``min_length`` long."""
    spans: List[Tuple[int, int]] = []
    n = len(line)
    start = 0
    while start < n:
        color = line[start]
        if color == 0:
            start += 1
            continue
        end = start + 1
        while end < n and line[end] == color:
            end += 1
        if end - start >= min_length:
            spans.append((start, end))
        start = end
    return spans


def find_clearable_cells(grid: Grid, min_length: int = 4) -> FrozenSet[Coordinate]:
    """Cells belonging to a horizontal or vertical same-color run of ``min_length`` or more.

    A cell that sits on both a horizontal and a vertical run is listed once.
    """
    colors = grid.colors
    found: Set[Coordinate] = set()
    for y in range(grid.height):
        for start, end in _runs(colors[y, :], min_length):
            found.update((x, y) for x in range(start, end))
    for x in range(grid.width):
        for start, end in _runs(colors[:, x], min_length):
            found.update((x, y) for y in range(start, end))
    return frozenset(found)


def clear_cells(grid: Grid, cells: Iterable[Coordinate]) -> Grid:
    colors = grid.colors.copy()
    specials = grid.specials.copy()
    for x, y in cells:
        colors[y, x] = 0
        specials[y, x] = 0
    return Grid(colors, specials)


def apply_gravity(grid: Grid) -> Grid:
    """Let every column fall independently, keeping its top-to-bottom order."""
    colors = np.zeros_like(grid.colors)
    specials = np.zeros_like(grid.specials)
    for x in range(grid.width):
        column = grid.colors[:, x]
        filled = np.flatnonzero(column)
        if filled.size == 0:
            continue
        colors[-filled.size :, x] = column[filled]
        specials[-filled.size :, x] = grid.specials[filled, x]
    return Grid(colors, specials)


@dataclass(frozen=True)
class ChainStep:
    cells: FrozenSet[Coordinate]
    multiplier: float
    score: int


@dataclass(frozen=True)
class ChainResult:
    grid: Grid
    steps: Tuple[ChainStep, ...] = ()

    @property
    def chain_count(self) -> int:
        return len(self.steps)

    @property
    def cells_cleared(self) -> int:
        return sum(len(step.cells) for step in self.steps)

    @property
    def score(self) -> int:
        return sum(step.score for step in self.steps)


def resolve_chains(grid: Grid, rules: ScoringRules) -> ChainResult:
    """Clear runs, drop columns and rescan until the grid is stable.

    Each pass removes at least ``rules.min_line_length`` occupied cells, so
    the loop runs at most ``width * height // min_line_length`` times.
    """
    steps: List[ChainStep] = []
    while True:
        cells = find_clearable_cells(grid, rules.min_line_length)
        if not cells:
            break
        step = len(steps) + 1
        multiplier = rules.combo_multiplier(step)
        steps.append(ChainStep(cells=cells, multiplier=multiplier, score=rules.score_for_step(len(cells), step)))
        grid = apply_gravity(clear_cells(grid, cells))
    return ChainResult(grid=grid, steps=tuple(steps))
