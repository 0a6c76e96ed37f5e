import math

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from config import Config
from flightgame.collision import GameState
from flightgame.controls import Key
from flightgame.core import World
from flightgame.utils.map_limits import MapLimits

# Order of the MultiBinary action entries
ACTION_KEYS = (
    Key.PITCH_UP, Key.PITCH_DOWN,
    Key.ROLL_LEFT, Key.ROLL_RIGHT,
    Key.THROTTLE_UP, Key.THROTTLE_DOWN,
    Key.REVERSE,
)
OBS_DIM = 15


class FlightGameEnv(gym.Env):
    """
    Gymnasium wrapper around World: one env step is one tick of cfg.DT.

    Terrain and obstacles are generated on the first reset and kept across
    later resets, like a restart in the game. Pass options={"regenerate": True}
    (or a new seed) to build a fresh world.
    """
    metadata = {"render_modes": []}

    def __init__(self, cfg=None, obstacle_level=None):
        super().__init__()
        self.cfg = cfg or Config
        self.obstacle_level = obstacle_level
        self.world = None
        self.steps = 0
        self.destination = MapLimits(*self.cfg.DESTINATION_BOX).center()
        self._last_distance = 0.0

        self.action_space = spaces.MultiBinary(len(ACTION_KEYS))
        self.observation_space = spaces.Box(low=-np.inf, high=np.inf, shape=(OBS_DIM,), dtype=np.float32)

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)
        options = options or {}
        if self.world is None or seed is not None or options.get("regenerate"):
            self.world = World(self.cfg, seed=seed, obstacle_level=self.obstacle_level)
        else:
            self.world.restart()
        self.steps = 0
        self._last_distance = self._distance_to_destination()
        return self._get_obs(), self._get_info()

    def step(self, action):
        keys = {key: bool(pressed) for key, pressed in zip(ACTION_KEYS, np.asarray(action).ravel())}
        outcome = self.world.tick(self.cfg.DT, keys)
        self.steps += 1

        distance = self._distance_to_destination()
        reward = (self._last_distance - distance) * self.cfg.PROGRESS_REWARD
        self._last_distance = distance

        term = outcome.is_terminal
        if outcome.state is GameState.WON:
            reward += self.cfg.WIN_REWARD
        elif outcome.state is GameState.CRASHED:
            reward += self.cfg.CRASH_REWARD
        trunc = not term and self.steps >= self.cfg.MAX_EPISODE_STEPS

        return self._get_obs(), float(reward), term, trunc, self._get_info()

    def _distance_to_destination(self):
        x, y = self.world.aircraft.position[:2]
        return math.hypot(x - self.destination[0], y - self.destination[1])

    def _get_info(self):
        outcome = self.world.outcome
        return {
            "termination_reason": outcome.reason.value if outcome.reason else outcome.state.value,
            "message": outcome.message,
            "terrain_ready": self.world.terrain_ready(),
            "events": list(self.world.events),
        }

    def _get_obs(self):
        s = self.world.flight.state()
        return np.array([
            *s.position,
            *(s.velocity * 50.0),
            math.cos(s.heading), math.sin(s.heading),
            s.roll, s.pitch,
            s.throttle,
            1.0 if s.reverse else 0.0,
            1.0 if s.grounded else 0.0,
            1.0 - s.elapsed / self.cfg.FUEL_TIME_LIMIT,
            s.signed_speed * 50.0,
        ], dtype=np.float32)
