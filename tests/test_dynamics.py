import math
import unittest

import numpy as np

from config import Config
from flightgame.controls import Controls
from flightgame.dynamics import FlightModel
from flightgame.utils.quaternion import quat_from_axis_angle, quat_rotate, quat_rotation_to, wrap_angle


class TestGroundHandling(unittest.TestCase):
    def setUp(self):
        self.cfg = Config
        self.model = FlightModel(self.cfg)
        self.dt = self.cfg.DT

    def test_initial_state(self):
        s = self.model.state()
        np.testing.assert_allclose(s.position, [0.0, -0.9, self.cfg.GROUND_HEIGHT])
        np.testing.assert_allclose(s.forward, [0.0, -1.0, 0.0])
        np.testing.assert_allclose(s.right, [-1.0, 0.0, 0.0])
        np.testing.assert_allclose(s.tip, [0.0, -0.901, self.cfg.GROUND_HEIGHT - 0.0004])
        self.assertTrue(s.grounded)
        self.assertAlmostEqual(s.roll, 0.0)
        self.assertAlmostEqual(s.pitch, 0.0)
        self.assertAlmostEqual(s.heading, math.pi)
        self.assertFalse(s.moving_backward)
        self.assertTrue(s.over_land)

    def test_rest_is_stable(self):
        for _ in range(120):
            self.model.step(self.dt, Controls())
        s = self.model.state()
        np.testing.assert_allclose(s.position, [0.0, -0.9, self.cfg.GROUND_HEIGHT])
        np.testing.assert_allclose(s.velocity, [0.0, 0.0, 0.0])
        self.assertTrue(s.grounded)
        self.assertAlmostEqual(s.elapsed, 120 * self.dt)

    def test_taxi_speed_follows_thrust_and_drag(self):
        throttle, speed = 0.0, 0.0
        speeds = []
        for _ in range(180):
            self.model.step(self.dt, Controls(throttle=1))
            throttle = min(throttle + self.cfg.THROTTLE_RATE * self.dt, 1.0)
            speed += (throttle * self.cfg.THRUST_COEFF - self.cfg.DRAG_COEFF * speed ** 1.5) * self.dt
            s = self.model.state()
            self.assertTrue(s.grounded)
            self.assertAlmostEqual(s.horizontal_speed, speed, places=10)
            speeds.append(s.horizontal_speed)

        self.assertTrue(all(b > a for a, b in zip(speeds, speeds[1:])))
        s = self.model.state()
        self.assertAlmostEqual(s.throttle, 0.9)
        # Rolling straight down the runway towards -y
        self.assertAlmostEqual(s.velocity[0], 0.0)
        self.assertLess(s.velocity[1], 0.0)
        self.assertAlmostEqual(s.position[2], self.cfg.GROUND_HEIGHT)
        self.assertLess(s.position[1], -0.9)

    def test_throttle_is_clamped(self):
        for _ in range(10):
            self.model.apply_throttle(Controls(throttle=1), 1.0)
        self.assertEqual(self.model.aircraft.throttle, 1.0)
        for _ in range(10):
            self.model.apply_throttle(Controls(throttle=-1), 1.0)
        self.assertEqual(self.model.aircraft.throttle, 0.0)

    def test_reverse_brakes_while_rolling_forward(self):
        a = self.model.aircraft
        a.velocity = np.array([0.0, -0.003, 0.0])
        a.throttle = 1.0
        self.model.apply_throttle(Controls(reverse_toggled=True), self.dt)
        self.assertTrue(a.reverse)
        self.assertAlmostEqual(self.model.thrust_force(), self.cfg.THRUST_COEFF * self.cfg.REVERSE_FACTOR_FORWARD)

        before = self.model.horizontal_speed()
        self.model.step(self.dt, Controls())
        self.assertLess(self.model.horizontal_speed(), before)

    def test_reverse_while_rolling_backward(self):
        a = self.model.aircraft
        a.velocity = np.array([0.0, 0.003, 0.0])
        a.throttle = 1.0
        a.reverse = True
        self.assertTrue(self.model.moving_backward())
        self.assertAlmostEqual(self.model.thrust_force(), self.cfg.THRUST_COEFF * self.cfg.REVERSE_FACTOR_BACKWARD)

        # Nose stays pointing away from the direction of travel
        self.model.step(self.dt, Controls())
        self.assertTrue(self.model.moving_backward())
        self.assertLess(float(np.dot(self.model.forward, self.model.aircraft.velocity)), 0.0)
        self.assertLess(self.model.state().signed_speed, 0.0)

    def test_reverse_toggles_back(self):
        self.model.apply_throttle(Controls(reverse_toggled=True), self.dt)
        self.model.apply_throttle(Controls(reverse_toggled=True), self.dt)
        self.assertFalse(self.model.aircraft.reverse)

    def test_grounded_steering_turns_velocity_and_nose(self):
        a = self.model.aircraft
        a.velocity = np.array([0.0, -0.003, 0.0])
        self.model.settle(1.0, Controls(roll=1))

        # Right input while rolling towards -y turns towards -x
        expected = np.array([0.003 * math.sin(-0.1), -0.003 * math.cos(-0.1), 0.0])
        self.assertLess(expected[0], 0.0)
        np.testing.assert_allclose(a.velocity, expected, atol=1e-12)
        np.testing.assert_allclose(self.model.forward, expected / 0.003, atol=1e-9)
        self.assertAlmostEqual(self.model.roll(), 0.0)
        self.assertTrue(a.grounded)

    def test_takeoff_when_lift_beats_gravity(self):
        a = self.model.aircraft
        a.velocity = np.array([0.0, -0.05, 0.0])
        a.throttle = 1.0
        self.model.step(self.dt, Controls(pitch=1))
        self.assertFalse(a.grounded)
        self.assertGreater(a.velocity[2], 0.0)

    def test_rolling_off_the_land(self):
        a = self.model.aircraft
        a.position = np.array([0.0, -1.0 - 1e-4, self.cfg.GROUND_HEIGHT])
        a.velocity = np.array([0.0, -0.003, 0.0])
        self.model.resolve_ground_contact()
        self.assertFalse(a.grounded)

    def test_touchdown(self):
        a = self.model.aircraft
        a.grounded = False
        a.position = np.array([0.0, 0.5, 0.0005])
        a.velocity = np.array([0.0, -0.01, -0.001])
        self.model.resolve_ground_contact()
        self.assertTrue(a.grounded)
        self.assertEqual(a.position[2], self.cfg.GROUND_HEIGHT)
        self.assertEqual(a.velocity[2], 0.0)

    def test_reset(self):
        self.model.step(self.dt, Controls(throttle=1))
        self.model.reset()
        s = self.model.state()
        self.assertEqual(s.throttle, 0.0)
        self.assertEqual(s.elapsed, 0.0)
        np.testing.assert_allclose(s.velocity, [0.0, 0.0, 0.0])


class TestAirborne(unittest.TestCase):
    def setUp(self):
        self.cfg = Config
        self.model = FlightModel(self.cfg)
        a = self.model.aircraft
        a.grounded = False
        a.position = np.array([0.0, 0.0, 0.5])
        a.velocity = np.array([0.0, -0.02, 0.0])

    def test_roll_input_banks_about_the_nose(self):
        self.model.apply_roll_input(1, 1.0)
        self.assertAlmostEqual(self.model.roll(), self.cfg.ROLL_RATE)
        np.testing.assert_allclose(self.model.forward, [0.0, -1.0, 0.0], atol=1e-12)

        self.model.apply_roll_input(-1, 2.0)
        self.assertAlmostEqual(self.model.roll(), -self.cfg.ROLL_RATE)

    def test_bank_is_kept_in_the_air(self):
        self.model.apply_roll_input(1, 1.0)
        self.model.align_orientation()
        self.assertAlmostEqual(self.model.roll(), self.cfg.ROLL_RATE)

    def test_lift_scales_with_pitch_input(self):
        neutral = self.model.lift_force(0)
        self.assertAlmostEqual(neutral, self.cfg.LIFT_COEFF * 0.02)
        self.assertAlmostEqual(self.model.lift_force(1), 1.6 * neutral)
        self.assertAlmostEqual(self.model.lift_force(-1), 0.4 * neutral)

    def test_banked_lift_pushes_sideways(self):
        self.model.apply_roll_input(1, 1.0)
        direction = self.model.lift_direction()
        self.assertAlmostEqual(float(np.linalg.norm(direction)), 1.0)
        self.assertAlmostEqual(direction[1], 0.0)
        self.assertNotAlmostEqual(direction[0], 0.0)

    def test_drag_opposes_motion(self):
        self.assertAlmostEqual(self.model.drag_force(), self.cfg.DRAG_COEFF * 0.02 ** 1.5)
        self.model.aircraft.velocity = np.zeros(3)
        self.assertEqual(self.model.drag_force(), 0.0)

    def test_nose_follows_climb(self):
        self.model.aircraft.velocity = np.array([0.0, -0.02, 0.01])
        self.model.align_orientation()
        expected = np.array([0.0, -0.02, 0.01]) / math.hypot(0.02, 0.01)
        np.testing.assert_allclose(self.model.forward, expected, atol=1e-9)
        self.assertAlmostEqual(self.model.pitch(), math.atan2(0.01, 0.02))
        self.assertFalse(self.model.aircraft.grounded)

    def test_over_land_is_half_open(self):
        self.assertTrue(self.model.over_land(np.array([-1.0, -1.0, 0.0])))
        self.assertFalse(self.model.over_land(np.array([1.0, 0.0, 0.0])))
        self.assertFalse(self.model.over_land(np.array([0.0, 1.0, 0.0])))

    def test_state_is_read_only(self):
        s = self.model.state()
        with self.assertRaises(ValueError):
            s.position[0] = 1.0
        self.assertAlmostEqual(s.altitude, 0.5)


class TestQuaternion(unittest.TestCase):
    def test_rotation_to(self):
        a = np.array([0.0, -1.0, 0.0])
        for b in (np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0]), np.array([0.0, -0.6, 0.8])):
            np.testing.assert_allclose(quat_rotate(quat_rotation_to(a, b), a), b, atol=1e-9)

    def test_axis_angle(self):
        q = quat_from_axis_angle(np.array([0.0, 0.0, 1.0]), math.pi / 2)
        np.testing.assert_allclose(quat_rotate(q, np.array([1.0, 0.0, 0.0])), [0.0, 1.0, 0.0], atol=1e-12)

    def test_wrap_angle(self):
        self.assertAlmostEqual(wrap_angle(3 * math.pi / 2), -math.pi / 2)
        self.assertAlmostEqual(wrap_angle(-math.pi), math.pi)


if __name__ == '__main__':
    unittest.main()
