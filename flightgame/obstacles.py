import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from config import Config
from flightgame.utils.map_limits import MapLimits
from flightgame.utils.quaternion import Z_AXIS, quat_from_axis_angle


class ObstacleLevel(IntEnum):
    NONE = 0      # No obstacles: neither simulated nor collided with
    STATIC = 1    # Obstacles hang in place
    MOVING = 2    # Obstacles cruise on a toroidal domain


@dataclass
class Obstacle:
    """
    An aircraft flying as an obstacle.
    Heading is measured counter-clockwise from +y, so velocity = speed * (-sin, cos).
    """
    origin: np.ndarray        # (x, y, z) in world units
    heading: float            # radians
    speed: float              # world units per second
    velocity: np.ndarray = field(init=False)
    rotation: np.ndarray = field(init=False)   # Cached orientation quaternion about +z

    def __post_init__(self):
        self.origin = np.asarray(self.origin, dtype=float)
        self.velocity = np.array([-self.speed * math.sin(self.heading), self.speed * math.cos(self.heading)])
        self.rotation = quat_from_axis_angle(Z_AXIS, self.heading)

    def capsule(self, half_length):
        """Endpoints of the obstacle's body axis, half_length either side of the origin along the heading."""
        offset = np.array([-half_length * math.sin(self.heading), half_length * math.cos(self.heading), 0.0])
        return self.origin + offset, self.origin - offset


class ObstacleField:
    """
    Fixed population of obstacles.

    Positions are randomised once at construction; restarting the game keeps
    them. advance() only moves obstacles when the level is MOVING.
    """

    def __init__(self, cfg=None, rng=None, count=None, level=None):
        self.cfg = cfg or Config
        self.rng = rng if rng is not None else np.random.default_rng()
        self.count = self.cfg.OBSTACLE_COUNT if count is None else count
        if self.count < 1:
            raise ValueError(f"Obstacle count must be positive, got {self.count}")
        self.level = ObstacleLevel(self.cfg.OBSTACLE_LEVEL if level is None else level)
        self.wrap = self.cfg.OBSTACLE_WRAP
        self.obstacles = [self._spawn() for _ in range(self.count)]

    def _spawn(self):
        land = MapLimits(*self.cfg.LAND_LIMITS)
        x, y = land.absolute_position(self.rng.random(), self.rng.random())
        z = self.rng.uniform(*self.cfg.OBSTACLE_ALTITUDE)
        heading = self.rng.uniform(-math.pi, math.pi)
        speed = self.rng.uniform(*self.cfg.OBSTACLE_SPEED)
        return Obstacle(origin=np.array([x, y, z]), heading=heading, speed=speed)

    def __iter__(self):
        return iter(self.obstacles)

    def __len__(self):
        return len(self.obstacles)

    @property
    def active(self):
        return self.level is not ObstacleLevel.NONE

    def set_level(self, level):
        self.level = ObstacleLevel(level)

    def advance(self, dt):
        """Move every obstacle by velocity * dt, wrapping at +-wrap on both horizontal axes."""
        if self.level is not ObstacleLevel.MOVING:
            return
        w = self.wrap
        for ob in self.obstacles:
            ob.origin[:2] += ob.velocity * dt
            for axis in (0, 1):
                if ob.origin[axis] < -w:
                    ob.origin[axis] += 2.0 * w
                elif ob.origin[axis] > w:
                    ob.origin[axis] -= 2.0 * w
