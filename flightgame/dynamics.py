# Player aircraft state and the quaternion flight-dynamics model
import math
from dataclasses import dataclass

import numpy as np

from config import Config
from flightgame.controls import Controls
from flightgame.utils.map_limits import MapLimits
from flightgame.utils.quaternion import (
    Y_AXIS, Z_AXIS, angle, normalize, quat_from_axis_angle, quat_identity,
    quat_multiply, quat_normalize, quat_rotate, quat_rotation_to, rotate_z, wrap_angle,
)


@dataclass
class Aircraft:
    """
    Mutable state of the player aircraft. Owned by FlightModel.
    Everything else (tip, roll, pitch, heading...) is derived on demand.
    """
    position: np.ndarray      # World units, z is altitude
    velocity: np.ndarray      # World units per second
    orientation: np.ndarray   # Unit quaternion (w, x, y, z) applied to the reference axes
    grounded: bool = True     # Ground contact (taxi rules) vs airborne
    throttle: float = 0.0     # Fraction 0.0 - 1.0
    reverse: bool = False     # Reverse thrust engaged
    elapsed: float = 0.0      # Seconds since the session (re)started


@dataclass(frozen=True)
class AircraftState:
    """Read-only snapshot of the aircraft and its derived quantities."""
    position: np.ndarray
    velocity: np.ndarray
    orientation: np.ndarray
    up: np.ndarray
    forward: np.ndarray
    right: np.ndarray
    tip: np.ndarray
    grounded: bool
    throttle: float
    reverse: bool
    elapsed: float
    roll: float
    pitch: float
    heading: float
    yaw: float
    horizontal_speed: float
    moving_backward: bool
    over_land: bool

    @property
    def altitude(self):
        return float(self.position[2])

    @property
    def signed_speed(self):
        """Horizontal speed, negative while rolling backwards."""
        return -self.horizontal_speed if self.moving_backward else self.horizontal_speed


def _frozen(v):
    arr = np.array(v, dtype=float)
    arr.setflags(write=False)
    return arr


class FlightModel:
    """
    Integrates forces into velocity, position and orientation for the player
    aircraft and runs the Grounded/Airborne state machine.

    A tick is split in two so the crash checks can look at the aircraft
    after it moved but before ground contact snaps it back onto the runway:
        integrate(): throttle/reverse, position, forces, elapsed time
        settle():    ground contact, roll/yaw input, orientation alignment
    step() runs both back to back.
    """

    def __init__(self, cfg=None):
        self.cfg = cfg or Config
        self.land = MapLimits(*self.cfg.LAND_LIMITS)
        self.up_init = np.array(self.cfg.UP_INIT, dtype=float)
        self.lookat_init = np.array(self.cfg.LOOKAT_INIT, dtype=float)
        self.right_init = np.array(self.cfg.RIGHT_INIT, dtype=float)
        self.aircraft = self.initial_aircraft()

    def initial_aircraft(self):
        return Aircraft(
            position=np.array(self.cfg.START_POSITION, dtype=float),
            velocity=np.zeros(3),
            orientation=quat_identity(),
        )

    def reset(self):
        self.aircraft = self.initial_aircraft()

    # === DERIVED QUANTITIES ===

    @property
    def up(self):
        return quat_rotate(self.aircraft.orientation, self.up_init)

    @property
    def forward(self):
        return quat_rotate(self.aircraft.orientation, self.lookat_init)

    @property
    def right(self):
        return quat_rotate(self.aircraft.orientation, self.right_init)

    @property
    def tip(self):
        """Collision probe point, ahead of and below the eye point."""
        return self.aircraft.position + self.cfg.TIP_FRONT * self.forward + self.cfg.TIP_UP * self.up

    def roll(self):
        return angle(self.right, Z_AXIS) - math.pi / 2.0

    def pitch(self):
        return math.pi / 2.0 - angle(self.forward, Z_AXIS)

    @staticmethod
    def _planar_heading(v):
        """Heading of the horizontal projection of v: 0 along +y, +pi/2 along +x."""
        flat = np.array([v[0], v[1], 0.0])
        a = angle(flat, Y_AXIS)
        return wrap_angle(-a if v[0] < 0 else a)

    def heading(self):
        return self._planar_heading(self.forward)

    def velocity_heading(self):
        return self._planar_heading(self.aircraft.velocity)

    def yaw(self):
        """Angle between where the nose points and where the aircraft is going."""
        return wrap_angle(self.heading() - self.velocity_heading())

    def horizontal_speed(self):
        v = self.aircraft.velocity
        return math.hypot(v[0], v[1])

    def moving_backward(self):
        if self.horizontal_speed() < self.cfg.SPEED_EPSILON:
            return False
        return abs(self.yaw()) > math.pi / 2.0

    def over_land(self, point=None):
        p = self.aircraft.position if point is None else point
        return self.land.contains_half_open(p[0], p[1])

    # === FORCES (accelerations, world units / s^2) ===

    def thrust_force(self):
        a = self.aircraft
        force = a.throttle * self.cfg.THRUST_COEFF
        if a.reverse:
            if self.moving_backward():
                force *= self.cfg.REVERSE_FACTOR_BACKWARD
            else:
                force *= self.cfg.REVERSE_FACTOR_FORWARD
        return force

    def lift_force(self, pitch_input=0):
        multiplier = self.cfg.LIFT_PITCH_COEFF[int(pitch_input) + 1]
        return multiplier * self.cfg.LIFT_COEFF * self.horizontal_speed()

    def drag_force(self):
        speed = float(np.linalg.norm(self.aircraft.velocity))
        if speed <= self.cfg.SPEED_EPSILON:
            return 0.0
        return self.cfg.DRAG_COEFF * speed ** self.cfg.DRAG_POWER

    def lift_direction(self):
        """Up vector with its component along the horizontal heading removed."""
        up = self.up
        fwd = self.forward
        flat = normalize(np.array([fwd[0], fwd[1], 0.0]))
        direction = up - flat * float(np.dot(flat, up))
        if np.linalg.norm(direction) < self.cfg.SPEED_EPSILON:
            return Z_AXIS.copy()
        return normalize(direction)

    # === TICK ===

    def apply_throttle(self, controls, dt):
        a = self.aircraft
        if controls.reverse_toggled:
            a.reverse = not a.reverse
        if controls.throttle:
            a.throttle = min(max(a.throttle + controls.throttle * self.cfg.THROTTLE_RATE * dt, 0.0), 1.0)

    def integrate(self, dt, controls=None):
        """Move by the current velocity, then fold thrust, lift, drag and gravity into it."""
        controls = controls or Controls()
        a = self.aircraft
        self.apply_throttle(controls, dt)

        a.position = a.position + a.velocity * dt

        forward = self.forward
        lift = self.lift_direction() * (self.lift_force(controls.pitch) * dt)
        thrust = forward * (self.thrust_force() * dt)
        drag = forward * (-self.drag_force() * dt)

        velocity = a.velocity.copy()
        velocity[2] -= self.cfg.GRAVITY * dt
        a.velocity = velocity + thrust + lift + drag
        a.elapsed += dt

    def settle(self, dt, controls=None):
        controls = controls or Controls()
        self.resolve_ground_contact()
        self.apply_roll_input(controls.roll, dt)
        self.align_orientation()

    def step(self, dt, controls=None):
        self.integrate(dt, controls)
        self.settle(dt, controls)

    def resolve_ground_contact(self):
        """Grounded/Airborne transitions. Over land the runway holds the aircraft at GROUND_HEIGHT."""
        a = self.aircraft
        ground = self.cfg.GROUND_HEIGHT
        if a.grounded:
            if a.velocity[2] > 0.0:
                a.grounded = False
            elif self.over_land():
                a.velocity[2] = 0.0
                a.position[2] = ground
            else:
                # Rolled off the edge into the sea
                a.grounded = False
        elif self.over_land() and a.position[2] <= ground:
            a.velocity[2] = 0.0
            a.position[2] = ground
            a.grounded = True

    def apply_roll_input(self, roll_input, dt):
        """Airborne: roll about the nose. Grounded: steer the velocity about the vertical."""
        if not roll_input:
            return
        a = self.aircraft
        if a.grounded:
            a.velocity = rotate_z(a.velocity, -roll_input * self.cfg.YAW_RATE * dt)
        else:
            change = quat_from_axis_angle(self.forward, roll_input * self.cfg.ROLL_RATE * dt)
            a.orientation = quat_normalize(quat_multiply(change, a.orientation))

    def align_orientation(self):
        """Turn the nose onto the flight path (or its reverse when rolling backwards)."""
        a = self.aircraft
        speed = float(np.linalg.norm(a.velocity))
        if speed >= self.cfg.SPEED_EPSILON:
            direction = a.velocity / speed
            forward = self.forward
            if np.dot(forward, direction) < 0:
                direction = -direction
            change = quat_rotation_to(forward, direction)
            a.orientation = quat_normalize(quat_multiply(change, a.orientation))

        if a.grounded:
            # Wheels on the runway: no roll
            change = quat_from_axis_angle(self.forward, -self.roll())
            a.orientation = quat_normalize(quat_multiply(change, a.orientation))

    def state(self):
        a = self.aircraft
        return AircraftState(
            position=_frozen(a.position),
            velocity=_frozen(a.velocity),
            orientation=_frozen(a.orientation),
            up=_frozen(self.up),
            forward=_frozen(self.forward),
            right=_frozen(self.right),
            tip=_frozen(self.tip),
            grounded=a.grounded,
            throttle=a.throttle,
            reverse=a.reverse,
            elapsed=a.elapsed,
            roll=self.roll(),
            pitch=self.pitch(),
            heading=self.heading(),
            yaw=self.yaw(),
            horizontal_speed=self.horizontal_speed(),
            moving_backward=self.moving_backward(),
            over_land=self.over_land(),
        )
