from __future__ import annotations

import random
import uuid
from typing import Optional

from .pieces import Block, Color, Shape, SpecialType


class BlockGenerator:
    """Draws random blocks from the fixed shape and color palettes.

    Seeding (or passing a ``random.Random``) makes the sequence reproducible,
    block ids included.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        special_chance: float = 0.1,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not 0.0 <= special_chance <= 1.0:
            raise ValueError(f"special_chance must be in [0, 1], got {special_chance}")
        self.rng = rng or random.Random(seed)
        self.special_chance = float(special_chance)

    def _new_id(self) -> str:
        return uuid.UUID(int=self.rng.getrandbits(128), version=4).hex

    def _draw(self, special_type: Optional[SpecialType]) -> Block:
        shape = self.rng.choice(list(Shape))
        color = self.rng.choice(list(Color))
        return Block(
            id=self._new_id(),
            color=color,
            shape=shape,
            is_special=special_type is not None,
            special_type=special_type,
        )

    def generate_block(self, include_special: bool = False) -> Block:
        special_type = None
        if include_special and self.rng.random() < self.special_chance:
            special_type = self.rng.choice(list(SpecialType))
        return self._draw(special_type)

    def generate_special_block(self) -> Block:
        return self._draw(self.rng.choice(list(SpecialType)))
