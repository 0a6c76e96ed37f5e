# World aggregate: owns terrain, obstacles, the player aircraft and the outcome, and runs the tick loop
import numpy as np

from config import Config, validate_config
from flightgame.collision import Outcome, WorldSnapshot, evaluate
from flightgame.controls import Controls, InputState
from flightgame.dynamics import FlightModel
from flightgame.obstacles import Obstacle, ObstacleField, ObstacleLevel
from flightgame.terrain import TerrainGenerator


class World:
    """
    Aggregate of all simulation state, advanced by tick().

    Owns the terrain generator, the obstacle field, the player's flight
    model and the game outcome. Nothing here is shared across worlds.
    """

    def __init__(self, cfg=None, seed=None, staged_terrain=False, offset_fn=None, obstacle_level=None):
        """
        Args:
            cfg: Configuration class (Config or a subclass); validated here
            seed: Seed for the terrain and obstacle random generator
            staged_terrain: If True, generate terrain one stage per tick
                            instead of up front
            offset_fn: Optional diamond-square offset override (see TerrainGenerator)
            obstacle_level: Override for cfg.OBSTACLE_LEVEL
        """
        self.cfg = cfg or Config
        validate_config(self.cfg)

        self.rng = np.random.default_rng(seed)
        self.terrain = TerrainGenerator(self.cfg, rng=self.rng, offset_fn=offset_fn)
        self.obstacles = ObstacleField(self.cfg, rng=self.rng, level=obstacle_level)
        self.flight = FlightModel(self.cfg)
        self.input = InputState()
        self.controls = Controls()   # Controls sampled on the latest tick

        self.outcome = Outcome.playing()
        self.events = []        # Events that occurred this tick
        self.ticks = 0          # Ticks simulated since the last (re)start

        if not staged_terrain:
            self.terrain.run()

    # === STATE ACCESS ===

    @property
    def aircraft(self):
        return self.flight.aircraft

    @property
    def heightfield(self):
        """Finished terrain, or None while generation is still running."""
        return self.terrain.heightfield if self.terrain.is_ready() else None

    def terrain_ready(self):
        return self.terrain.is_ready()

    def snapshot(self):
        return WorldSnapshot(
            aircraft=self.flight.state(),
            heightfield=self.heightfield,
            obstacles=tuple(Obstacle(origin=ob.origin.copy(), heading=ob.heading, speed=ob.speed)
                            for ob in self.obstacles),
            obstacle_level=self.obstacles.level,
            outcome=self.outcome,
        )

    # === CONTROL ===

    def set_obstacle_level(self, level):
        self.obstacles.set_level(ObstacleLevel(level))

    def restart(self):
        """Fresh aircraft and outcome. Terrain and obstacles are kept as they are."""
        self.flight.reset()
        self.outcome = Outcome.playing()
        self.ticks = 0
        self.events.append({"type": "restart"})

    def tick(self, dt, keys=None):
        """
        Advance the simulation by one frame.

        Args:
            dt: Elapsed wall-clock time in seconds since the previous tick
            keys: Polled key state, {Key: bool} or an iterable of pressed Keys

        Returns:
            Outcome: the game outcome after this tick
        """
        self.events = []
        controls = self.input.sample(keys)
        self.controls = controls

        if not self.terrain.is_ready():
            report = self.terrain.advance()
            self.events.append({"type": "terrain_stage", "stage": report.stage.name,
                                "progress": report.progress, "message": report.message})

        if controls.restart:
            self.restart()
            return self.outcome

        if self.outcome.is_terminal:
            return self.outcome

        dt = self._clamp_dt(dt)
        self.flight.integrate(dt, controls)
        self.obstacles.advance(dt)

        outcome = evaluate(self.snapshot(), self.cfg)
        if outcome.is_terminal:
            self.outcome = outcome
            self.events.append({
                "type": "win" if outcome.reason is None else "crash",
                "reason": outcome.reason.value if outcome.reason else None,
                "message": outcome.message,
            })
            return self.outcome

        self.flight.settle(dt, controls)
        self.ticks += 1
        return self.outcome

    def _clamp_dt(self, dt):
        if dt < 0.0:
            return 0.0
        if dt > self.cfg.MAX_TICK_DT:
            self.events.append({"type": "dt_clamped", "requested": dt, "applied": self.cfg.MAX_TICK_DT})
            return self.cfg.MAX_TICK_DT
        return dt
