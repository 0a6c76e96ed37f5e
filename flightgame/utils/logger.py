import os
import csv
import time
import numpy as np


class FlightRecorder:
    """
    Logs per-tick aircraft telemetry for post-flight analysis.
    """
    def __init__(self, log_dir="logs"):
        self.log_dir = log_dir
        if not os.path.exists(log_dir):
            os.makedirs(log_dir)

        self.current_session_data = []
        self.headers = [
            "session", "tick", "time",
            "x", "y", "alt", "vx", "vy", "vz",
            "roll_deg", "pitch_deg", "heading_deg", "speed",
            "throttle", "reverse", "grounded",
            "ctl_pitch", "ctl_roll", "ctl_throttle",
            "state", "reason"
        ]

    def log_step(self, session, tick, state, controls, outcome):
        """
        Buffer a single tick of data.

        Args:
            session: Session counter (incremented on restart)
            tick: Tick index within the session
            state: AircraftState snapshot
            controls: Controls sampled for this tick
            outcome: Outcome after this tick
        """
        row = [
            session, tick, round(state.elapsed, 4),
            *state.position, *state.velocity,
            np.degrees(state.roll), np.degrees(state.pitch), np.degrees(state.heading),
            state.signed_speed,
            state.throttle, int(state.reverse), int(state.grounded),
            controls.pitch, controls.roll, controls.throttle,
            outcome.state.value, outcome.reason.value if outcome.reason else ""
        ]
        self.current_session_data.append(row)

    def save_session(self, session_id):
        """
        Write buffered data to CSV.

        Returns:
            str or None: path of the written file, None when nothing was buffered
        """
        if not self.current_session_data:
            return None

        filename = os.path.join(self.log_dir, f"flight_record_s{session_id}_{int(time.time())}.csv")

        with open(filename, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(self.headers)
            writer.writerows(self.current_session_data)

        self.current_session_data = []
        return filename
