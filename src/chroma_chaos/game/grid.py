from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .pieces import Block, Color, SpecialType


Coordinate = Tuple[int, int]


@dataclass(frozen=True)
class GridCell:
    color: Optional[Color] = None
    is_special: bool = False
    special_type: Optional[SpecialType] = None

    EMPTY: ClassVar["GridCell"]

    @property
    def is_occupied(self) -> bool:
        return self.color is not None


GridCell.EMPTY = GridCell()


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


class Grid:
    """Immutable width x height cell grid.

    Cells are stored as two int8 arrays indexed ``[y, x]``: color codes
    (0 for empty) and special-type codes (0 for none). Both arrays are
    read-only; every operation that changes cells builds a new Grid.
    """

    __slots__ = ("colors", "specials")

    def __init__(self, colors: np.ndarray, specials: Optional[np.ndarray] = None) -> None:
        colors = np.array(colors, dtype=np.int8)
        if colors.ndim != 2 or colors.shape[0] < 1 or colors.shape[1] < 1:
            raise ValueError(f"grid must be a non-empty 2D array, got shape {colors.shape}")
        if specials is None:
            specials = np.zeros_like(colors)
        else:
            specials = np.array(specials, dtype=np.int8)
            if specials.shape != colors.shape:
                raise ValueError("specials must match the color array shape")
        # Special tags only live on occupied cells.
        specials[colors == 0] = 0
        self.colors = _frozen(colors)
        self.specials = _frozen(specials)

    @classmethod
    def empty(cls, width: int, height: int) -> "Grid":
        if width < 1 or height < 1:
            raise ValueError(f"grid dimensions must be positive, got {width}x{height}")
        return cls(np.zeros((int(height), int(width)), dtype=np.int8))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Union[Color, GridCell, None]]]) -> "Grid":
        """Build a grid from rows of colors (or cells), top row first."""
        if not rows or not rows[0]:
            raise ValueError("grid needs at least one row and one column")
        width = len(rows[0])
        colors = np.zeros((len(rows), width), dtype=np.int8)
        specials = np.zeros_like(colors)
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"row {y} has length {len(row)}, expected {width}")
            for x, value in enumerate(row):
                if isinstance(value, GridCell):
                    colors[y, x] = int(value.color or 0)
                    specials[y, x] = int(value.special_type or 0)
                elif value is not None:
                    colors[y, x] = int(value)
        return cls(colors, specials)

    @property
    def width(self) -> int:
        return int(self.colors.shape[1])

    @property
    def height(self) -> int:
        return int(self.colors.shape[0])

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_occupied(self, x: int, y: int) -> bool:
        return bool(self.colors[y, x] != 0)

    def cell(self, x: int, y: int) -> GridCell:
        code = int(self.colors[y, x])
        if code == 0:
            return GridCell.EMPTY
        special = int(self.specials[y, x])
        return GridCell(
            color=Color(code),
            is_special=special != 0,
            special_type=SpecialType(special) if special else None,
        )

    def rows(self) -> List[List[GridCell]]:
        return [[self.cell(x, y) for x in range(self.width)] for y in range(self.height)]

    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.colors))

    def to_array(self) -> np.ndarray:
        return self.colors.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return np.array_equal(self.colors, other.colors) and np.array_equal(self.specials, other.specials)

    def __hash__(self) -> int:
        return hash((self.colors.shape, self.colors.tobytes(), self.specials.tobytes()))

    def __repr__(self) -> str:
        return f"Grid({self.width}x{self.height}, occupied={self.occupied_count()})"

    def pretty(self) -> str:
        lines: List[str] = []
        for row in self.colors:
            lines.append("".join(Color(int(v)).name[0] if v else "·" for v in row))
        return "\n".join(lines)


def is_valid_position(grid: Grid, block: Block) -> bool:
    """Check the block against the side walls, the floor and occupied cells.

    Cells above the top edge (y < 0) are allowed so a block can spawn
    straddling it.
    """
    for x, y in block.cells():
        if x < 0 or x >= grid.width or y >= grid.height:
            return False
        if y >= 0 and grid.colors[y, x] != 0:
            return False
    return True


def lock_block(grid: Grid, block: Block) -> Grid:
    """Merge ``block`` into a copy of ``grid``; out-of-range cells are dropped."""
    colors = grid.colors.copy()
    specials = grid.specials.copy()
    special = int(block.special_type or 0)
    for x, y in _inside(grid, block.cells()):
        colors[y, x] = int(block.color)
        specials[y, x] = special
    return Grid(colors, specials)


def _inside(grid: Grid, cells: Iterable[Coordinate]) -> Iterable[Coordinate]:
    return ((x, y) for x, y in cells if grid.is_inside(x, y))
