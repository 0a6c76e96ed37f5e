import math


class Config:
    # --- Simulation ---
    DT = 1.0 / 60.0              # Nominal tick length (one display refresh)
    MAX_TICK_DT = 0.1            # Explicit Euler is not sub-stepped, so long ticks are clamped
    FUEL_TIME_LIMIT = 900.0      # Seconds until the tank runs dry

    # --- Terrain ---
    TERRAIN_DETAIL_LEVEL = 8
    TERRAIN_SIZE = 2 ** TERRAIN_DETAIL_LEVEL + 1
    TERRAIN_RANDOM_INITIAL = 0.75
    TERRAIN_RANDOM_DECAY = 0.6
    # Control heights: corners, south/north edge midpoints, west/east edge midpoints, centre
    TERRAIN_SEED_CORNER = 0.1
    TERRAIN_SEED_EDGE_NS = -0.3
    TERRAIN_SEED_EDGE_WE = 0.6
    TERRAIN_SEED_CENTER = 0.8
    TERRAIN_SNOW_LINE = 0.6
    TERRAIN_SNOW_COLOR = (1.4, 1.4, 1.4)

    # --- Map (world units, land spans [-1, 1) on both axes) ---
    LAND_LIMITS = (-1.0, 1.0, -1.0, 1.0)                 # Min X, Max X, Min Y, Max Y
    RUNWAY_CORRIDORS = (
        (-0.004, 0.004, -1.0, -0.9),                     # Departure
        (-0.004, 0.004, 0.9, 1.0),                       # Destination
    )
    DESTINATION_BOX = (-0.003, 0.003, 0.9, 1.0)
    OBSTACLE_WRAP = 1.2

    # --- Aircraft ---
    GROUND_HEIGHT = 0.0006
    START_POSITION = (0.0, -0.9, GROUND_HEIGHT)
    UP_INIT = (0.0, 0.0, 1.0)
    LOOKAT_INIT = (0.0, -1.0, 0.0)
    RIGHT_INIT = (-1.0, 0.0, 0.0)
    TIP_FRONT = 0.001
    TIP_UP = -0.0004

    # --- Physics ---
    GRAVITY = 0.002
    THRUST_COEFF = 1.2e-3
    REVERSE_FACTOR_FORWARD = -1.6    # Reverse engaged while rolling forward (braking)
    REVERSE_FACTOR_BACKWARD = -0.2   # Reverse engaged while already rolling backward
    LIFT_COEFF = 0.1
    LIFT_PITCH_COEFF = (0.4, 1.0, 1.6)   # Pitch down, neutral, pitch up
    DRAG_COEFF = 0.0883883
    DRAG_POWER = 1.5
    SPEED_EPSILON = 1e-6
    ROLL_RATE = 0.12             # rad/s about the forward axis while airborne
    YAW_RATE = 0.1               # rad/s of velocity rotation while taxiing
    THROTTLE_RATE = 0.3          # Throttle fraction per second while a throttle key is held

    # --- Crash thresholds ---
    CRASH_SINK_RATE = 0.025
    CRASH_ROLL = math.radians(20.0)
    CRASH_PITCH = math.radians(20.0)
    CRASH_MOUNTAIN_TOLERANCE = 0.01
    CRASH_WALL_TOLERANCE = 0.1
    WIN_MAX_SPEED = 0.002

    # --- Obstacles ---
    OBSTACLE_COUNT = 75
    OBSTACLE_LEVEL = 0           # 0 = none, 1 = static, 2 = moving
    OBSTACLE_SCALE = 0.1
    OBSTACLE_RADIUS = 0.3 * OBSTACLE_SCALE
    OBSTACLE_HALF_LENGTH = 1.1 * OBSTACLE_SCALE
    OBSTACLE_ALTITUDE = (0.4, 1.0)
    OBSTACLE_SPEED = (0.005, 0.1)

    # --- Environment ---
    MAX_EPISODE_STEPS = 60 * 900
    WIN_REWARD = 100.0
    CRASH_REWARD = -100.0
    PROGRESS_REWARD = 10.0


def validate_config(cfg):
    """
    Reject malformed configuration before any simulation state is built.

    Raises:
        ValueError: describing the first offending setting.
    """
    level = cfg.TERRAIN_DETAIL_LEVEL
    if not isinstance(level, int) or level < 1:
        raise ValueError(f"TERRAIN_DETAIL_LEVEL must be a positive integer, got {level!r}")
    if cfg.TERRAIN_SIZE != 2 ** level + 1:
        raise ValueError(
            f"TERRAIN_SIZE must be 2^L + 1 = {2 ** level + 1} for detail level {level}, got {cfg.TERRAIN_SIZE}")
    if not isinstance(cfg.OBSTACLE_COUNT, int) or cfg.OBSTACLE_COUNT < 1:
        raise ValueError(f"OBSTACLE_COUNT must be a positive integer, got {cfg.OBSTACLE_COUNT!r}")
    if cfg.OBSTACLE_LEVEL not in (0, 1, 2):
        raise ValueError(f"OBSTACLE_LEVEL must be 0, 1 or 2, got {cfg.OBSTACLE_LEVEL!r}")
    if len(cfg.LIFT_PITCH_COEFF) != 3:
        raise ValueError("LIFT_PITCH_COEFF needs exactly three entries (down, neutral, up)")
    for name in ("GRAVITY", "THRUST_COEFF", "LIFT_COEFF", "DRAG_COEFF", "FUEL_TIME_LIMIT",
                 "MAX_TICK_DT", "OBSTACLE_RADIUS", "OBSTACLE_HALF_LENGTH", "OBSTACLE_WRAP"):
        if getattr(cfg, name) <= 0:
            raise ValueError(f"{name} must be positive, got {getattr(cfg, name)!r}")
    if not 0.0 < cfg.TERRAIN_RANDOM_DECAY <= 1.0:
        raise ValueError(f"TERRAIN_RANDOM_DECAY must be in (0, 1], got {cfg.TERRAIN_RANDOM_DECAY!r}")
