# Crash / win evaluation as an ordered list of pure checks over a world snapshot
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from config import Config
from flightgame.dynamics import AircraftState
from flightgame.obstacles import Obstacle, ObstacleLevel
from flightgame.terrain import Heightfield
from flightgame.utils.map_limits import MapLimits


class GameState(Enum):
    PLAYING = "playing"
    CRASHED = "crashed"
    WON = "won"


class CrashReason(Enum):
    OCEAN = "ocean"
    LAND = "land"
    MOUNTAIN = "mountain"
    WALL = "wall"
    OBSTACLE = "obstacle"
    FUEL = "fuel"


CRASH_MESSAGES = {
    CrashReason.OCEAN: "GAMEOVER! You crashed into the ocean. Press R to restart.",
    CrashReason.LAND: "GAMEOVER! You crashed on land. Press R to restart.",
    CrashReason.MOUNTAIN: "GAMEOVER! You crashed into the mountains. Press R to restart.",
    CrashReason.WALL: "GAMEOVER! You cannot fly by the mountains. Press R to restart.",
    CrashReason.OBSTACLE: "GAMEOVER! You crashed into another aircraft. Press R to restart.",
    CrashReason.FUEL: "GAMEOVER! You ran out of fuel. Press R to restart.",
}
WIN_MESSAGE = "You WIN!!!!!!! Congratulations!"
PLAYING_MESSAGE = "Start having fun!"


@dataclass(frozen=True)
class Outcome:
    state: GameState
    reason: Optional[CrashReason] = None
    message: str = PLAYING_MESSAGE

    @property
    def is_playing(self):
        return self.state is GameState.PLAYING

    @property
    def is_terminal(self):
        return self.state is not GameState.PLAYING

    @classmethod
    def playing(cls):
        return cls(GameState.PLAYING)

    @classmethod
    def crashed(cls, reason):
        return cls(GameState.CRASHED, reason, CRASH_MESSAGES[reason])

    @classmethod
    def won(cls):
        return cls(GameState.WON, None, WIN_MESSAGE)


@dataclass(frozen=True)
class WorldSnapshot:
    """Everything the checks may look at. Built once per tick, never mutated."""
    aircraft: AircraftState
    heightfield: Optional[Heightfield]
    obstacles: Tuple[Obstacle, ...]
    obstacle_level: ObstacleLevel
    outcome: Outcome = Outcome.playing()

    @property
    def terrain_ready(self):
        return self.heightfield is not None and self.heightfield.is_ready()


def capsule_hit(point, a, b, half_length, radius):
    """
    Whether point lies inside the capsule body around segment a->b.

    The projection of (point - a) onto the axis must fall within
    [0, 2 * half_length] and the perpendicular distance must be < radius.
    """
    axis = b - a
    length = np.linalg.norm(axis)
    if length == 0.0:
        return False
    axis = axis / length
    rel = np.asarray(point, dtype=float) - a
    along = float(np.dot(rel, axis))
    perpendicular = float(np.linalg.norm(np.cross(rel, axis)))
    return 0.0 <= along <= 2.0 * half_length and perpendicular < radius


# === CHECKS ===
# Each takes (snapshot, cfg) and returns an Outcome or None.

def check_ocean(snap, cfg):
    ac = snap.aircraft
    if not ac.over_land and (ac.position[2] <= 0.0 or ac.tip[2] <= 0.0):
        return Outcome.crashed(CrashReason.OCEAN)
    return None


def check_land(snap, cfg):
    ac = snap.aircraft
    if ac.grounded or ac.position[2] > cfg.GROUND_HEIGHT:
        return None
    if (ac.velocity[2] <= -cfg.CRASH_SINK_RATE
            or abs(ac.roll) >= cfg.CRASH_ROLL
            or abs(ac.pitch) >= cfg.CRASH_PITCH):
        return Outcome.crashed(CrashReason.LAND)
    return None


def check_mountain(snap, cfg):
    ac = snap.aircraft
    if not (snap.terrain_ready and ac.over_land):
        return None
    tip = ac.tip
    if tip[2] < snap.heightfield.height_at(tip[0], tip[1]) - cfg.CRASH_MOUNTAIN_TOLERANCE:
        return Outcome.crashed(CrashReason.MOUNTAIN)
    return None


def check_wall(snap, cfg):
    """Flying around the range instead of over it: outside the land sideways while crossing y = 0."""
    ac = snap.aircraft
    land = MapLimits(*cfg.LAND_LIMITS)
    x = ac.position[0]
    outside = x < land.min_x - cfg.CRASH_WALL_TOLERANCE or x > land.max_x + cfg.CRASH_WALL_TOLERANCE
    if outside and ac.position[1] < 0.0 and ac.tip[1] > 0.0:
        return Outcome.crashed(CrashReason.WALL)
    return None


def check_obstacles(snap, cfg):
    if snap.obstacle_level is ObstacleLevel.NONE:
        return None
    tip = snap.aircraft.tip
    for ob in snap.obstacles:
        a, b = ob.capsule(cfg.OBSTACLE_HALF_LENGTH)
        if capsule_hit(tip, a, b, cfg.OBSTACLE_HALF_LENGTH, cfg.OBSTACLE_RADIUS):
            return Outcome.crashed(CrashReason.OBSTACLE)
    return None


def check_fuel(snap, cfg):
    # Simulated time: the sum of clamped dt, so a suspended game burns no fuel
    if snap.aircraft.elapsed >= cfg.FUEL_TIME_LIMIT:
        return Outcome.crashed(CrashReason.FUEL)
    return None


def check_win(snap, cfg):
    ac = snap.aircraft
    destination = MapLimits(*cfg.DESTINATION_BOX)
    if (ac.grounded
            and destination.in_boundary(ac.position[0], ac.position[1])
            and ac.horizontal_speed <= cfg.WIN_MAX_SPEED):
        return Outcome.won()
    return None


CHECKS = (
    check_ocean,
    check_land,
    check_mountain,
    check_wall,
    check_obstacles,
    check_fuel,
    check_win,
)


def evaluate(snap, cfg=None, checks=CHECKS):
    """
    Fold the ordered checks into the first Outcome that fires.
    A snapshot that is already terminal keeps its outcome.
    """
    cfg = cfg or Config
    if snap.outcome.is_terminal:
        return snap.outcome
    for check in checks:
        outcome = check(snap, cfg)
        if outcome is not None:
            return outcome
    return Outcome.playing()
