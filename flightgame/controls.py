# Polled keyboard input: key identifiers, browser key-code bindings and per-tick control sampling
from dataclasses import dataclass
from enum import Enum


class Key(Enum):
    PITCH_UP = "pitch_up"
    PITCH_DOWN = "pitch_down"
    ROLL_LEFT = "roll_left"
    ROLL_RIGHT = "roll_right"
    THROTTLE_UP = "throttle_up"
    THROTTLE_DOWN = "throttle_down"
    REVERSE = "reverse"
    RESTART = "restart"


# DOM keyCode -> Key
KEYCODE_BINDINGS = {
    38: Key.PITCH_UP, 87: Key.PITCH_UP,          # Up arrow, W
    40: Key.PITCH_DOWN, 83: Key.PITCH_DOWN,      # Down arrow, S
    37: Key.ROLL_LEFT, 65: Key.ROLL_LEFT,        # Left arrow, A
    39: Key.ROLL_RIGHT, 68: Key.ROLL_RIGHT,      # Right arrow, D
    88: Key.THROTTLE_UP, 76: Key.THROTTLE_UP,    # X, L
    90: Key.THROTTLE_DOWN, 75: Key.THROTTLE_DOWN,  # Z, K
    67: Key.REVERSE, 74: Key.REVERSE,            # C, J
    82: Key.RESTART,                             # R
}


def keys_from_codes(pressed_codes):
    """Translate an iterable of pressed DOM key codes into a {Key: True} mapping."""
    keys = {}
    for code in pressed_codes:
        key = KEYCODE_BINDINGS.get(code)
        if key is not None:
            keys[key] = True
    return keys


def as_key_map(keys):
    """Accept a {Key: bool} mapping, an iterable of pressed Keys, or None."""
    if keys is None:
        return {}
    if isinstance(keys, dict):
        return keys
    return {k: True for k in keys}


@dataclass(frozen=True)
class Controls:
    """Control demands for one tick. Axes are -1, 0 or +1."""
    pitch: int = 0             # +1 pitch up, -1 pitch down
    roll: int = 0              # +1 right, -1 left
    throttle: int = 0          # +1 increase, -1 decrease
    reverse_toggled: bool = False
    restart: bool = False


class InputState:
    """
    Samples the polled key map into Controls.

    The reverse key is a toggle, so only its rising edge counts; everything
    else is level-triggered. When both keys of an axis are held the first
    listed wins (up over down, left over right, throttle up over down).
    """

    def __init__(self):
        self._reverse_was_down = False

    def reset(self):
        self._reverse_was_down = False

    def sample(self, keys):
        keys = as_key_map(keys)

        def down(key):
            return bool(keys.get(key, False))

        if down(Key.PITCH_UP):
            pitch = 1
        elif down(Key.PITCH_DOWN):
            pitch = -1
        else:
            pitch = 0

        if down(Key.ROLL_LEFT):
            roll = -1
        elif down(Key.ROLL_RIGHT):
            roll = 1
        else:
            roll = 0

        if down(Key.THROTTLE_UP):
            throttle = 1
        elif down(Key.THROTTLE_DOWN):
            throttle = -1
        else:
            throttle = 0

        reverse_down = down(Key.REVERSE)
        toggled = reverse_down and not self._reverse_was_down
        self._reverse_was_down = reverse_down

        return Controls(pitch=pitch, roll=roll, throttle=throttle,
                        reverse_toggled=toggled, restart=down(Key.RESTART))
