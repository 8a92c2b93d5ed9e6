from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import FrozenSet, List, NamedTuple, Optional, Tuple

import numpy as np


class Color(IntEnum):
    RED = 1
    BLUE = 2
    GREEN = 3
    YELLOW = 4
    PURPLE = 5
    ORANGE = 6
    CYAN = 7


# RGB values used by renderers; game rules only compare Color identity.
PALETTE = {
    Color.RED: (229, 57, 53),
    Color.BLUE: (33, 150, 243),
    Color.GREEN: (76, 175, 80),
    Color.YELLOW: (255, 235, 59),
    Color.PURPLE: (156, 39, 176),
    Color.ORANGE: (255, 152, 0),
    Color.CYAN: (0, 188, 212),
}


class Shape(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


class SpecialType(IntEnum):
    BOMB = 1
    COLOR_CLEAR = 2
    LINE_CLEAR = 3
    SCORE_MULTIPLIER = 4
    WILDCARD = 5
    PERSISTENT = 6
    SHAPE_SHIFTING = 7


Offset = Tuple[int, int]
Matrix = np.ndarray


BASE_SHAPES = {
    Shape.I: np.array([[1, 1, 1, 1]], dtype=bool),
    Shape.O: np.array([[1, 1], [1, 1]], dtype=bool),
    Shape.T: np.array([[0, 1, 0], [1, 1, 1]], dtype=bool),
    Shape.S: np.array([[0, 1, 1], [1, 1, 0]], dtype=bool),
    Shape.Z: np.array([[1, 1, 0], [0, 1, 1]], dtype=bool),
    Shape.J: np.array([[1, 0, 0], [1, 1, 1]], dtype=bool),
    Shape.L: np.array([[0, 0, 1], [1, 1, 1]], dtype=bool),
}
for _matrix in BASE_SHAPES.values():
    _matrix.flags.writeable = False

# Quarter turns for each canonical angle. Anything else keeps the 0° matrix.
_QUARTER_TURNS = {0: 0, 90: 1, 180: 2, 270: 3}


def rotate_matrix(matrix: Matrix, rotation: int) -> Matrix:
    """Rotate a shape matrix clockwise by ``rotation`` degrees."""
    k = _QUARTER_TURNS.get(rotation % 360, 0)
    if k == 0:
        return matrix
    return np.rot90(matrix, k, axes=(1, 0))  # clockwise when k>0


class Position(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class Block:
    """A falling piece. Rotation is in degrees and derived on demand."""

    id: str
    color: Color
    shape: Shape = Shape.I
    rotation: int = 0
    position: Position = Position(0, 0)
    is_special: bool = False
    special_type: Optional[SpecialType] = None

    def __post_init__(self) -> None:
        if self.is_special != (self.special_type is not None):
            raise ValueError("is_special must be set exactly when special_type is given")

    def matrix(self) -> Matrix:
        return rotate_matrix(BASE_SHAPES[self.shape], self.rotation)

    def occupied_cells(self) -> FrozenSet[Offset]:
        return occupied_cells(self)

    def cells(self) -> List[Offset]:
        """Absolute grid coordinates covered by the block."""
        x0, y0 = self.position
        return [(x0 + dx, y0 + dy) for dx, dy in sorted(self.occupied_cells())]

    def moved(self, dx: int, dy: int) -> "Block":
        return replace(self, position=Position(self.position.x + dx, self.position.y + dy))

    def at(self, x: int, y: int) -> "Block":
        return replace(self, position=Position(x, y))

    def rotated(self) -> "Block":
        return replace(self, rotation=(self.rotation + 90) % 360)


def occupied_cells(block: Block) -> FrozenSet[Offset]:
    """Filled (dx, dy) offsets inside the rotated bounding box of ``block``."""
    m = block.matrix()
    ys, xs = np.nonzero(m)
    return frozenset((int(dx), int(dy)) for dy, dx in zip(ys, xs))
