import unittest

import numpy as np

from config import Config
from flightgame.collision import CrashReason, GameState, Outcome
from flightgame.controls import Key
from flightgame.core import World
from flightgame.obstacles import Obstacle, ObstacleLevel


class FlatConfig(Config):
    """Small terrain that ends up entirely at sea level."""
    TERRAIN_DETAIL_LEVEL = 2
    TERRAIN_SIZE = 5
    TERRAIN_SEED_CORNER = -0.5
    TERRAIN_SEED_EDGE_NS = -0.5
    TERRAIN_SEED_EDGE_WE = -0.5
    TERRAIN_SEED_CENTER = -0.5
    TERRAIN_RANDOM_INITIAL = 0.1


class TestWorld(unittest.TestCase):
    def setUp(self):
        self.world = World(FlatConfig, seed=1, obstacle_level=ObstacleLevel.MOVING)
        self.dt = FlatConfig.DT

    def test_terrain_ready_after_construction(self):
        self.assertTrue(self.world.terrain_ready())
        self.assertTrue(np.all(self.world.heightfield.heights == 0.0))
        self.assertEqual(len(self.world.obstacles), FlatConfig.OBSTACLE_COUNT)

    def test_tick_moves_aircraft_and_obstacles(self):
        before = [ob.origin.copy() for ob in self.world.obstacles]
        for _ in range(30):
            outcome = self.world.tick(self.dt, {Key.THROTTLE_UP: True})
        self.assertIs(outcome.state, GameState.PLAYING)
        self.assertEqual(self.world.ticks, 30)
        self.assertGreater(self.world.aircraft.throttle, 0.0)
        self.assertLess(self.world.aircraft.position[1], -0.9)
        moved = [not np.allclose(ob.origin, origin) for ob, origin in zip(self.world.obstacles, before)]
        self.assertTrue(all(moved))

    def test_restart_keeps_terrain_and_obstacles(self):
        heightfield = self.world.heightfield
        for _ in range(10):
            self.world.tick(self.dt, {Key.THROTTLE_UP: True})
        origins = [ob.origin.copy() for ob in self.world.obstacles]

        self.world.tick(self.dt, {Key.RESTART: True})

        self.assertIs(self.world.heightfield, heightfield)
        for ob, origin in zip(self.world.obstacles, origins):
            np.testing.assert_array_equal(ob.origin, origin)
        np.testing.assert_allclose(self.world.aircraft.position, FlatConfig.START_POSITION)
        self.assertEqual(self.world.aircraft.throttle, 0.0)
        self.assertIs(self.world.outcome.state, GameState.PLAYING)
        self.assertEqual(self.world.ticks, 0)
        self.assertIn({"type": "restart"}, self.world.events)

    def test_terminal_outcome_freezes_the_world(self):
        self.world.outcome = Outcome.crashed(CrashReason.WALL)
        position = self.world.aircraft.position.copy()
        origins = [ob.origin.copy() for ob in self.world.obstacles]

        outcome = self.world.tick(self.dt, {Key.THROTTLE_UP: True})

        self.assertIs(outcome.reason, CrashReason.WALL)
        np.testing.assert_array_equal(self.world.aircraft.position, position)
        self.assertEqual(self.world.aircraft.throttle, 0.0)
        for ob, origin in zip(self.world.obstacles, origins):
            np.testing.assert_array_equal(ob.origin, origin)

    def test_restart_after_crash(self):
        self.world.outcome = Outcome.crashed(CrashReason.OCEAN)
        outcome = self.world.tick(self.dt, [Key.RESTART])
        self.assertTrue(outcome.is_playing)

    def test_obstacle_collision(self):
        self.world.set_obstacle_level(ObstacleLevel.STATIC)
        tip = self.world.flight.tip.copy()
        self.world.obstacles.obstacles = [Obstacle(origin=tip, heading=0.0, speed=0.0)]

        outcome = self.world.tick(self.dt)

        self.assertIs(outcome.reason, CrashReason.OBSTACLE)
        self.assertEqual(self.world.events[-1]["type"], "crash")
        self.assertEqual(self.world.events[-1]["reason"], "obstacle")

    def test_no_collision_when_obstacles_disabled(self):
        self.world.set_obstacle_level(ObstacleLevel.NONE)
        tip = self.world.flight.tip.copy()
        self.world.obstacles.obstacles = [Obstacle(origin=tip, heading=0.0, speed=0.0)]
        self.assertTrue(self.world.tick(self.dt).is_playing)

    def test_long_ticks_are_clamped(self):
        self.world.tick(1.0)
        self.assertAlmostEqual(self.world.aircraft.elapsed, FlatConfig.MAX_TICK_DT)
        self.assertEqual(self.world.events[-1]["type"], "dt_clamped")

    def test_negative_dt_does_nothing(self):
        self.world.tick(-0.5)
        self.assertEqual(self.world.aircraft.elapsed, 0.0)

    def test_snapshot_is_detached(self):
        snap = self.world.snapshot()
        self.world.tick(self.dt)
        first = next(iter(self.world.obstacles))
        self.assertFalse(np.array_equal(snap.obstacles[0].origin, first.origin))


class TestWorldOutcomes(unittest.TestCase):
    def test_fuel_runs_out(self):
        class ShortFuel(FlatConfig):
            FUEL_TIME_LIMIT = 0.05

        world = World(ShortFuel, seed=0)
        outcome = world.tick(0.05)
        self.assertIs(outcome.reason, CrashReason.FUEL)
        self.assertEqual(outcome.message, "GAMEOVER! You ran out of fuel. Press R to restart.")

    def test_suspended_game_burns_no_extra_fuel(self):
        class ShortFuel(FlatConfig):
            FUEL_TIME_LIMIT = 0.5

        world = World(ShortFuel, seed=0)
        outcome = world.tick(1000.0)
        self.assertTrue(outcome.is_playing)
        self.assertAlmostEqual(world.aircraft.elapsed, ShortFuel.MAX_TICK_DT)

    def test_mountain_next_to_the_runway(self):
        class Coarse(Config):
            TERRAIN_DETAIL_LEVEL = 2
            TERRAIN_SIZE = 5

        # On a 5x5 grid the start tip interpolates against the 0.275 shoulder at (0, -0.5)
        world = World(Coarse, offset_fn=lambda *_: 0.0)
        self.assertIs(world.tick(Coarse.DT).reason, CrashReason.MOUNTAIN)

    def test_hard_landing_crashes_before_ground_contact(self):
        world = World(FlatConfig, seed=0)
        a = world.aircraft
        a.grounded = False
        a.position = np.array([0.0, 0.0, 0.0007])
        a.velocity = np.array([0.0, 0.0, -0.05])

        outcome = world.tick(FlatConfig.DT)

        self.assertIs(outcome.state, GameState.CRASHED)
        self.assertIs(outcome.reason, CrashReason.LAND)

    def test_soft_landing_touches_down(self):
        world = World(FlatConfig, seed=0)
        a = world.aircraft
        a.grounded = False
        a.position = np.array([0.0, 0.0, 0.0007])
        a.velocity = np.array([0.0, 0.0, -0.01])

        outcome = world.tick(FlatConfig.DT)

        self.assertIs(outcome.state, GameState.PLAYING)
        self.assertTrue(a.grounded)
        self.assertEqual(a.position[2], FlatConfig.GROUND_HEIGHT)
        self.assertEqual(a.velocity[2], 0.0)

    def test_win(self):
        world = World(FlatConfig, seed=0)
        a = world.aircraft
        a.position = np.array([0.0, 0.95, FlatConfig.GROUND_HEIGHT])
        a.velocity = np.array([0.0, -0.001, 0.0])

        outcome = world.tick(FlatConfig.DT)

        self.assertIs(outcome.state, GameState.WON)
        self.assertEqual(world.events[-1]["type"], "win")


class TestStagedTerrain(unittest.TestCase):
    def test_one_stage_per_tick(self):
        world = World(FlatConfig, seed=2, staged_terrain=True)
        self.assertFalse(world.terrain_ready())
        self.assertIsNone(world.heightfield)

        ticks = 0
        while not world.terrain_ready():
            world.tick(FlatConfig.DT)
            ticks += 1
            stages = [e for e in world.events if e["type"] == "terrain_stage"]
            self.assertEqual(len(stages), 1)

        self.assertEqual(ticks, 6)
        self.assertIsNotNone(world.heightfield)
        self.assertTrue(world.snapshot().terrain_ready)

    def test_terrain_advances_while_restart_is_held(self):
        world = World(FlatConfig, seed=2, staged_terrain=True)
        for _ in range(6):
            world.tick(FlatConfig.DT, {Key.RESTART: True})
            self.assertIn({"type": "restart"}, world.events)
        self.assertTrue(world.terrain_ready())

    def test_invalid_config_rejected(self):
        class Broken(Config):
            TERRAIN_DETAIL_LEVEL = 2

        with self.assertRaises(ValueError):
            World(Broken)


if __name__ == '__main__':
    unittest.main()
