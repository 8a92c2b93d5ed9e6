from __future__ import annotations

from typing import Tuple

import numpy as np
import pygame

from chroma_chaos.game import PALETTE, Color, GameSession, board_array


def _color_for_value(v: int) -> Tuple[int, int, int]:
    if v == 0:
        return (20, 20, 26)
    r, g, b = PALETTE.get(Color(abs(v)), (200, 200, 200))
    if v < 0:
        # Falling block: slightly brighter than settled cells
        return (min(255, r + 30), min(255, g + 30), min(255, b + 30))
    return (r, g, b)


class Renderer:
    def __init__(self, cell_size: int = 30, margin: int = 20, panel_width: int = 180) -> None:
        self.cell_size = cell_size
        self.margin = margin
        self.panel_width = panel_width
        self._font = None

    def window_size(self, width: int, height: int) -> Tuple[int, int]:
        return (
            width * self.cell_size + self.margin * 3 + self.panel_width,
            height * self.cell_size + self.margin * 2,
        )

    def _grid_surface(self, session: GameSession) -> pygame.Surface:
        state = board_array(session)
        h, w = state.shape
        surf = pygame.Surface((w * self.cell_size, h * self.cell_size))
        surf.fill((30, 30, 36))
        for y in range(h):
            for x in range(w):
                rect = pygame.Rect(
                    x * self.cell_size,
                    y * self.cell_size,
                    self.cell_size - 1,
                    self.cell_size - 1,
                )
                pygame.draw.rect(surf, _color_for_value(int(state[y, x])), rect)
                if session.grid.specials[y, x]:
                    pygame.draw.rect(surf, (255, 255, 255), rect, 2)
        return surf

    def _draw_panel(self, screen: pygame.Surface, session: GameSession) -> None:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 24)
        x0 = self.margin * 2 + session.grid.width * self.cell_size
        y0 = self.margin
        nxt = session.next_block
        if nxt is not None:
            shape = nxt.matrix()
            color = _color_for_value(int(nxt.color))
            for py, px in np.argwhere(shape):
                rect = pygame.Rect(x0 + px * self.cell_size, y0 + py * self.cell_size, self.cell_size - 1, self.cell_size - 1)
                pygame.draw.rect(screen, color, rect)
        lines = [
            f"Score: {session.score}",
            f"Level: {session.level}",
            f"Cleared: {session.total_lines_cleared}",
            f"Combo: {session.combo}",
            f"Chain: {session.chain_count}",
        ]
        if session.is_paused:
            lines.append("PAUSED - P to resume")
        if session.is_game_over:
            lines.append("GAME OVER - R to restart")
        y_text = y0 + 3 * self.cell_size
        for i, txt in enumerate(lines):
            img = self._font.render(txt, True, (230, 230, 230))
            screen.blit(img, (x0, y_text + i * 22))

    def draw(self, screen: pygame.Surface, session: GameSession) -> None:
        screen.fill((10, 10, 14))
        screen.blit(self._grid_surface(session), (self.margin, self.margin))
        self._draw_panel(screen, session)
        pygame.display.flip()
