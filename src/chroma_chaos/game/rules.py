from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Difficulty(Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    EXPERT = "expert"


# Level-0 fall interval for each difficulty; NORMAL is the reference curve.
BASE_INTERVAL_MS = {
    Difficulty.EASY: 1200,
    Difficulty.NORMAL: 1000,
    Difficulty.HARD: 800,
    Difficulty.EXPERT: 600,
}


@dataclass
class ScoringRules:
    cell_points: int = 10
    min_line_length: int = 4
    lines_per_level: int = 10
    interval_step_ms: int = 50
    min_interval_ms: int = 100
    chain_multipliers: tuple[float, float, float, float, float] = (1.0, 1.5, 2.0, 2.5, 3.0)

    def __post_init__(self) -> None:
        if self.min_line_length < 2:
            raise ValueError(f"min_line_length must be at least 2, got {self.min_line_length}")
        if self.lines_per_level < 1:
            raise ValueError(f"lines_per_level must be positive, got {self.lines_per_level}")

    def combo_multiplier(self, step: int) -> float:
        if step <= 1:
            return self.chain_multipliers[0]
        return self.chain_multipliers[min(step, len(self.chain_multipliers)) - 1]

    def score_for_step(self, cells_cleared: int, step: int) -> int:
        if cells_cleared <= 0:
            return 0
        return int(cells_cleared * self.cell_points * self.combo_multiplier(step))

    def level_for_lines(self, total_lines_cleared: int) -> int:
        return total_lines_cleared // self.lines_per_level + 1

    def fall_interval_ms(self, level: int, difficulty: Difficulty = Difficulty.NORMAL) -> int:
        base = BASE_INTERVAL_MS[difficulty]
        return max(self.min_interval_ms, base - level * self.interval_step_ms)

    def next_combo(self, combo: int, cells_cleared: int) -> int:
        return combo + 1 if cells_cleared > 0 else 0
