"""Game module for Chroma Chaos.

Exports the simulation engine and supporting types:
- Grid / GridCell: immutable cell grid, collision and block locking
- Block, Shape, Color, SpecialType: falling pieces and their palettes
- BlockGenerator: seedable random block source
- find_clearable_cells / resolve_chains: color-run clearing and chain reactions
- ScoringRules / Difficulty: score, level and fall-speed progression
- GameEngine / GameSession: the session state machine
"""

from .pieces import PALETTE, Block, Color, Position, Shape, SpecialType, occupied_cells
from .generator import BlockGenerator
from .grid import Grid, GridCell, is_valid_position, lock_block
from .rules import Difficulty, ScoringRules
from .matching import ChainResult, ChainStep, apply_gravity, clear_cells, find_clearable_cells, resolve_chains
from .core import (
    BestComboUpdated,
    GameEngine,
    GameOver,
    GameSession,
    GameSettings,
    GameStarted,
    LinesCleared,
    MoveDirection,
    Transition,
    board_array,
)

__all__ = [
    "PALETTE",
    "Block",
    "Color",
    "Position",
    "Shape",
    "SpecialType",
    "occupied_cells",
    "BlockGenerator",
    "Grid",
    "GridCell",
    "is_valid_position",
    "lock_block",
    "Difficulty",
    "ScoringRules",
    "ChainResult",
    "ChainStep",
    "apply_gravity",
    "clear_cells",
    "find_clearable_cells",
    "resolve_chains",
    "BestComboUpdated",
    "GameEngine",
    "GameOver",
    "GameSession",
    "GameSettings",
    "GameStarted",
    "LinesCleared",
    "MoveDirection",
    "Transition",
    "board_array",
]
