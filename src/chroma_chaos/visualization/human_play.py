from __future__ import annotations

import argparse
import logging
from typing import Callable, Dict, Optional

import pygame

from chroma_chaos.game import BlockGenerator, Difficulty, GameEngine, GameSettings, MoveDirection
from chroma_chaos.runtime import GameController, InMemoryStatsRecorder
from .renderer import Renderer


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play Chroma Chaos")
    p.add_argument("--width", type=int, default=12)
    p.add_argument("--height", type=int, default=20)
    p.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=Difficulty.NORMAL.value)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--no-special", action="store_true", help="Disable special blocks")
    p.add_argument("--cell-size", type=int, default=28)
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def run(settings: GameSettings, seed: Optional[int] = None, cell_size: int = 28) -> None:
    recorder = InMemoryStatsRecorder()
    engine = GameEngine(generator=BlockGenerator(seed=seed))
    renderer = Renderer(cell_size=cell_size)

    pygame.init()
    try:
        with GameController(engine, recorder=recorder) as controller:
            key_to_command: Dict[int, Callable[[], object]] = {
                pygame.K_LEFT: lambda: controller.move_block(MoveDirection.LEFT),
                pygame.K_RIGHT: lambda: controller.move_block(MoveDirection.RIGHT),
                pygame.K_DOWN: lambda: controller.move_block(MoveDirection.DOWN),
                pygame.K_UP: controller.rotate_block,
                pygame.K_SPACE: controller.drop_block,
                pygame.K_r: lambda: controller.start_new_game(settings),
            }
            screen = pygame.display.set_mode(renderer.window_size(settings.grid_width, settings.grid_height))
            pygame.display.set_caption("Chroma Chaos")
            clock = pygame.time.Clock()
            controller.start_new_game(settings)

            running = True
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN:
                        if event.key == pygame.K_ESCAPE:
                            running = False
                        elif event.key == pygame.K_p:
                            session = controller.state
                            if session is not None and session.is_paused:
                                controller.resume()
                            else:
                                controller.pause()
                        else:
                            command = key_to_command.get(event.key)
                            if command is not None:
                                command()

                # The fall timer runs on its own thread; this loop only renders snapshots.
                session = controller.state
                if session is not None:
                    renderer.draw(screen, session)
                clock.tick(60)
    finally:
        pygame.quit()

    stats = recorder.stats
    print(f"High score: {stats.high_score}  best combo: {stats.best_combo}  games: {stats.total_games_played}")


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    settings = GameSettings(
        grid_width=args.width,
        grid_height=args.height,
        enable_special_blocks=not args.no_special,
        difficulty=Difficulty(args.difficulty),
    )
    run(settings, seed=args.seed, cell_size=args.cell_size)


if __name__ == "__main__":  # pragma: no cover
    main()
