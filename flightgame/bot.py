import math

from config import Config
from flightgame.controls import Key


class TakeoffPilot:
    """
    Scripted pilot for demos and smoke runs.

    Opens the throttle, rotates once the aircraft has flying speed and then
    holds a shallow climb to a cruise altitude. It does not navigate, so it
    will eventually crash or run out of fuel; it exists to exercise the
    simulation end to end through the same polled keys a player uses.

    Operates purely on the AircraftState snapshot.
    """
    def __init__(self, cfg=None, rotate_speed=0.012, cruise_altitude=0.08, max_climb_deg=12.0):
        self.cfg = cfg or Config
        self.rotate_speed = rotate_speed
        self.cruise_altitude = cruise_altitude
        self.max_climb = math.radians(max_climb_deg)

    def get_keys(self, state):
        """
        Choose the keys to hold for this tick.

        Args:
            state: AircraftState

        Returns:
            dict: {Key: True} for every key held down
        """
        keys = {}

        # === THROTTLE (always full) ===
        if state.throttle < 1.0:
            keys[Key.THROTTLE_UP] = True

        # === WINGS LEVEL ===
        if not state.grounded:
            if state.roll > math.radians(2.0):
                keys[Key.ROLL_LEFT] = True
            elif state.roll < -math.radians(2.0):
                keys[Key.ROLL_RIGHT] = True

        # === PITCH ===
        if state.horizontal_speed < self.rotate_speed:
            return keys
        if state.altitude < self.cruise_altitude:
            if state.pitch < self.max_climb:
                keys[Key.PITCH_UP] = True
        elif state.pitch > 0.0:
            keys[Key.PITCH_DOWN] = True
        return keys
