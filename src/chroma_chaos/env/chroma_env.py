from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from chroma_chaos.game import (
    PALETTE,
    BlockGenerator,
    Color,
    GameEngine,
    GameSession,
    GameSettings,
    MoveDirection,
    ScoringRules,
    Shape,
    board_array,
)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    DOWN = 2
    ROTATE = 3
    DROP = 4
    NONE = 5


class ChromaChaosEnv(gym.Env):
    """Drives a :class:`GameEngine` one command per step.

    There is no fall timer; DOWN plays the role of the tick and NONE leaves
    the session unchanged.

    Observation: the board with the falling block overlaid as negative color
    codes, and the shape of the next block (0 when there is none). Reward is
    the score gained by the step.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(
        self,
        settings: Optional[GameSettings] = None,
        rules: Optional[ScoringRules] = None,
        render_mode: Optional[str] = None,
        special_chance: float = 0.1,
        max_episode_steps: int = 10000,
    ) -> None:
        super().__init__()
        self.settings = settings or GameSettings()
        self.rules = rules or ScoringRules()
        self.render_mode = render_mode
        self.special_chance = float(special_chance)
        self.max_episode_steps = int(max_episode_steps)
        self.engine = GameEngine(self.rules, BlockGenerator(special_chance=self.special_chance))
        self.session: Optional[GameSession] = None
        self._steps = 0

        h, w = self.settings.grid_height, self.settings.grid_width
        n_colors = len(Color)
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=-n_colors, high=n_colors, shape=(h, w), dtype=np.int8),
                "next_shape": spaces.Discrete(len(Shape) + 1),
            }
        )
        self.action_space = spaces.Discrete(len(Action))

    def _get_obs(self) -> Dict[str, Any]:
        assert self.session is not None
        nxt = self.session.next_block
        return {
            "board": board_array(self.session).astype(np.int8),
            "next_shape": int(nxt.shape) if nxt is not None else 0,
        }

    def _get_info(self) -> Dict[str, Any]:
        assert self.session is not None
        s = self.session
        return {
            "score": s.score,
            "level": s.level,
            "lines_cleared_total": s.total_lines_cleared,
            "combo": s.combo,
            "chain_count": s.chain_count,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        # Block draws follow the env's seeded np_random stream.
        block_seed = int(self.np_random.integers(0, 2**31 - 1))
        self.engine.generator = BlockGenerator(seed=block_seed, special_chance=self.special_chance)
        self.session = self.engine.start_new_game(self.settings).session
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action: int):
        if self.session is None:
            raise RuntimeError("call reset() before step()")
        action = Action(int(action))
        before = self.session.score

        if action == Action.LEFT:
            transition = self.engine.move_block(self.session, MoveDirection.LEFT)
        elif action == Action.RIGHT:
            transition = self.engine.move_block(self.session, MoveDirection.RIGHT)
        elif action == Action.DOWN:
            transition = self.engine.move_block(self.session, MoveDirection.DOWN)
        elif action == Action.ROTATE:
            transition = self.engine.rotate_block(self.session)
        elif action == Action.DROP:
            transition = self.engine.drop_block(self.session)
        else:
            transition = None
        if transition is not None:
            self.session = transition.session
        self._steps += 1

        reward = float(self.session.score - before)
        terminated = bool(self.session.is_game_over)
        truncated = self._steps >= self.max_episode_steps
        return self._get_obs(), reward, terminated, truncated, self._get_info()

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array" or self.session is None:
            return None
        board = board_array(self.session)
        cell = 12
        h, w = board.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                v = int(board[y, x])
                color = PALETTE[Color(abs(v))] if v else (30, 30, 36)
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
