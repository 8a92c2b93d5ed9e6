import threading
import time
import unittest
from itertools import count

from chroma_chaos.game import Difficulty, GameEngine, GameSettings, MoveDirection, ScoringRules, Shape
from chroma_chaos.runtime import GameController, InMemoryStatsRecorder, ThreadingScheduler

from helpers import B, R, FixedGenerator, ManualScheduler, block


class FailingRecorder:
    def __init__(self):
        self.calls = 0

    def _fail(self, *args):
        self.calls += 1
        raise IOError("disk full")

    increment_games_played = _fail
    add_lines_cleared = _fail
    update_best_combo = _fail
    save_high_score = _fail
    add_play_time = _fail


def o_blocks():
    # Alternating colors never line up four in a row on a 4x4 board.
    return FixedGenerator([block(Shape.O, R, block_id="red"), block(Shape.O, B, block_id="blue")])


SMALL = GameSettings(grid_width=4, grid_height=4, enable_special_blocks=False)


class FastRules(ScoringRules):
    def fall_interval_ms(self, level, difficulty=Difficulty.NORMAL):
        return 20


class TestGameController(unittest.TestCase):
    def setUp(self):
        self.scheduler = ManualScheduler()
        self.recorder = InMemoryStatsRecorder()
        ticks = count()
        self.controller = GameController(
            GameEngine(generator=o_blocks()),
            recorder=self.recorder,
            scheduler=self.scheduler,
            clock=lambda: 10.0 + 2.5 * next(ticks),
        )

    def tearDown(self):
        self.controller.close()

    def test_given_no_game_when_commanding_then_nothing_happens(self):
        self.assertIsNone(self.controller.move_block(MoveDirection.LEFT))
        self.assertEqual(self.scheduler.handles, [])

    def test_given_new_game_when_started_then_tick_armed_with_fall_interval(self):
        session = self.controller.start_new_game(SMALL)
        self.assertIs(self.controller.state, session)
        live = self.scheduler.live()
        self.assertEqual(len(live), 1)
        self.assertEqual(live[0].delay_ms, 950)

    def test_given_pending_tick_when_fired_then_block_falls_and_tick_rearmed(self):
        self.controller.start_new_game(SMALL)
        self.scheduler.fire()
        self.assertEqual(self.controller.state.current_block.position, (1, 1))
        self.assertEqual(len(self.scheduler.live()), 1)

    def test_given_running_game_when_paused_then_tick_cancelled_until_resume(self):
        self.controller.start_new_game(SMALL)
        pending = self.scheduler.live()[0]
        self.controller.pause()
        self.assertTrue(pending.cancelled)
        self.assertFalse(self.controller.tick_pending)
        self.assertEqual(self.scheduler.live(), [])
        before = self.controller.state
        self.controller.move_block(MoveDirection.RIGHT)
        self.assertIs(self.controller.state, before)
        self.controller.resume()
        self.assertEqual(len(self.scheduler.live()), 1)

    def test_given_restart_when_stale_timer_fires_then_new_session_untouched(self):
        self.controller.start_new_game(SMALL)
        stale = self.scheduler.live()[0]
        fresh = self.controller.start_new_game(SMALL)
        self.assertTrue(stale.cancelled)
        stale.callback()
        self.assertIs(self.controller.state, fresh)

    def test_given_game_over_when_reached_then_tick_cancelled_and_stats_reported(self):
        self.controller.start_new_game(SMALL)
        self.controller.drop_block()
        self.controller.drop_block()
        session = self.controller.state
        self.assertTrue(session.is_game_over)
        self.assertIsNone(session.current_block)
        self.assertEqual(self.scheduler.live(), [])
        self.controller.close()
        stats = self.recorder.stats
        self.assertEqual(stats.total_games_played, 1)
        self.assertEqual(stats.total_play_time_ms, 2500)
        self.assertEqual(stats.high_score, 0)

    def test_given_closed_controller_when_timer_fires_then_ignored(self):
        self.controller.start_new_game(SMALL)
        pending = self.scheduler.live()[0]
        before = self.controller.state
        self.controller.close()
        self.assertTrue(pending.cancelled)
        pending.callback()
        self.assertIs(self.controller.state, before)
        with self.assertRaises(RuntimeError):
            self.controller.start_new_game(SMALL)

    def test_given_subscriber_when_state_changes_then_each_snapshot_published(self):
        seen = []
        unsubscribe = self.controller.subscribe(seen.append)
        first = self.controller.start_new_game(SMALL)
        self.controller.move_block(MoveDirection.DOWN)
        self.controller.move_block(MoveDirection.LEFT)
        self.assertEqual(len(seen), 3)
        self.assertIs(seen[0], first)
        self.assertEqual(first.current_block.position, (1, 0))
        self.assertEqual(seen[-1].current_block.position, (0, 1))
        unsubscribe()
        self.controller.move_block(MoveDirection.RIGHT)
        self.assertEqual(len(seen), 3)

    def test_given_existing_state_when_subscribing_then_current_snapshot_delivered(self):
        session = self.controller.start_new_game(SMALL)
        seen = []
        self.controller.subscribe(seen.append)
        self.assertEqual(seen, [session])

    def test_given_running_game_when_resumed_then_pending_tick_kept(self):
        self.controller.start_new_game(SMALL)
        pending = self.scheduler.live()[0]
        self.controller.resume()
        self.controller.resume()
        self.assertFalse(pending.cancelled)
        self.assertEqual(self.scheduler.live(), [pending])

    def test_given_failing_subscriber_when_tick_fires_then_gravity_keeps_running(self):
        def explode(session):
            raise ValueError("redraw failed")

        with self.assertLogs("chroma_chaos.runtime.controller", level="ERROR"):
            self.controller.subscribe(explode)
            self.controller.start_new_game(SMALL)
            self.scheduler.fire()
        self.assertEqual(self.controller.state.current_block.position, (1, 1))
        self.assertTrue(self.controller.tick_pending)
        self.assertEqual(len(self.scheduler.live()), 1)

    def test_given_board_too_narrow_for_first_block_when_started_then_no_tick_armed(self):
        controller = GameController(
            GameEngine(generator=FixedGenerator([block(Shape.I, R)])),
            recorder=self.recorder,
            scheduler=self.scheduler,
        )
        session = controller.start_new_game(SMALL)
        controller.close()
        self.assertTrue(session.is_game_over)
        self.assertFalse(controller.tick_pending)
        self.assertEqual(self.scheduler.live(), [])
        self.assertEqual(self.recorder.stats.total_games_played, 1)


class TestConcurrentCommands(unittest.TestCase):
    def test_given_racing_threads_when_moving_then_every_move_applied(self):
        controller = GameController(GameEngine(generator=o_blocks()), scheduler=ManualScheduler())
        start = controller.start_new_game(GameSettings(enable_special_blocks=False))
        self.assertEqual(start.current_block.position, (5, 0))
        barrier = threading.Barrier(3)

        def shove():
            barrier.wait()
            controller.move_block(MoveDirection.LEFT)

        threads = [threading.Thread(target=shove) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
        controller.close()
        self.assertEqual(controller.state.current_block.position, (2, 0))

    def test_given_threading_scheduler_when_cancelled_then_callback_never_runs(self):
        fired = threading.Event()
        handle = ThreadingScheduler().schedule(20, fired.set)
        handle.cancel()
        self.assertFalse(fired.wait(0.15))

    def test_given_threading_scheduler_when_delay_passes_then_callback_runs(self):
        fired = threading.Event()
        ThreadingScheduler().schedule(10, fired.set)
        self.assertTrue(fired.wait(2.0))

    def test_given_real_timer_when_paused_then_block_stops_falling(self):
        fell = threading.Event()
        controller = GameController(GameEngine(rules=FastRules(), generator=o_blocks()), scheduler=ThreadingScheduler())
        try:
            controller.subscribe(lambda s: fell.set() if s.current_block and s.current_block.position.y > 0 else None)
            controller.start_new_game(GameSettings(grid_width=4, grid_height=20, enable_special_blocks=False))
            self.assertTrue(fell.wait(2.0))
            paused = controller.pause()
            self.assertTrue(paused.is_paused)
            time.sleep(0.15)
            self.assertIs(controller.state, paused)
            self.assertFalse(controller.tick_pending)
        finally:
            controller.close()


class TestPersistenceFailures(unittest.TestCase):
    def test_given_failing_recorder_when_playing_then_state_unaffected_and_logged(self):
        recorder = FailingRecorder()
        controller = GameController(GameEngine(generator=o_blocks()), recorder=recorder, scheduler=ManualScheduler())
        with self.assertLogs("chroma_chaos.runtime.controller", level="ERROR"):
            controller.start_new_game(SMALL)
            controller.drop_block()
            controller.drop_block()
            controller.close()
        self.assertTrue(controller.state.is_game_over)
        self.assertEqual(controller.state.grid.occupied_count(), 8)
        self.assertEqual(recorder.calls, 3)


class TestStatsRecorder(unittest.TestCase):
    def test_given_requests_when_recording_then_maxima_and_totals_kept(self):
        recorder = InMemoryStatsRecorder()
        recorder.save_high_score(300)
        recorder.save_high_score(120)
        recorder.update_best_combo(2)
        recorder.update_best_combo(5)
        recorder.update_best_combo(1)
        recorder.add_lines_cleared(8)
        recorder.add_lines_cleared(4)
        recorder.add_play_time(1000)
        recorder.increment_games_played()
        stats = recorder.stats
        self.assertEqual(stats.high_score, 300)
        self.assertEqual(stats.best_combo, 5)
        self.assertEqual(stats.total_lines_cleared, 12)
        self.assertEqual(stats.total_play_time_ms, 1000)
        self.assertEqual(stats.total_games_played, 1)


if __name__ == "__main__":
    unittest.main()
