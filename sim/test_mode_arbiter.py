#!/usr/bin/env python3
"""
Hysteretic mode arbitration: classification, cooldown guard, dynamics.
"""

from __future__ import annotations

import random
import unittest

from bus.channels import ChannelBus
from sim.emergency_braking import EmergencyBraking, brake_instruction_for
from sim.messages import BrakeInstruction, CarData, DrivingMode, Scene
from sim.mode_arbiter import ModeArbiter
from sim.mode_policy import DEFAULT_POLICY, ModePolicy, classify_scene, mode_active_from_scene


class FakeClock:
    def __init__(self, t: float = 1000.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


def scene(distance: float, people: int = 0, cars: int = 0) -> Scene:
    return Scene(
        num_people=people,
        num_cars=cars,
        distance_obstacle=distance,
        distance_left_lane=0.7,
        distance_right_lane=0.7,
    )


AUTONOMOUS_SCENE = scene(40.0)
MANUAL_SCENE = scene(8.0, cars=6)
EMERGENCY_SCENE = scene(3.0)


class ClassificationTests(unittest.TestCase):
    def test_clear_road_is_autonomous(self) -> None:
        self.assertIs(classify_scene(scene(40.0, 0, 0)), DrivingMode.AUTONOMOUS)

    def test_close_obstacle_is_emergency_regardless_of_counts(self) -> None:
        self.assertIs(classify_scene(scene(3.0, 0, 0)), DrivingMode.EMERGENCY)
        self.assertIs(classify_scene(scene(3.0, 9, 10)), DrivingMode.EMERGENCY)

    def test_manual_rules(self) -> None:
        self.assertIs(classify_scene(scene(8.0, cars=6)), DrivingMode.MANUAL)
        self.assertIs(classify_scene(scene(8.0, people=5)), DrivingMode.MANUAL)
        self.assertIs(classify_scene(scene(5.0)), DrivingMode.MANUAL)
        self.assertIs(classify_scene(scene(8.0, people=4, cars=5)), DrivingMode.AUTONOMOUS)

    def test_threshold_boundaries(self) -> None:
        self.assertIs(classify_scene(scene(4.0)), DrivingMode.MANUAL)
        self.assertIs(classify_scene(scene(6.0)), DrivingMode.AUTONOMOUS)

    def test_fallback_marks_exactly_one_mode(self) -> None:
        for s in (AUTONOMOUS_SCENE, MANUAL_SCENE, EMERGENCY_SCENE, scene(5.9, 7, 2)):
            active = [m for m in DrivingMode if mode_active_from_scene(m, s)]
            self.assertEqual(len(active), 1)


class ArbiterGuardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.arbiter = ModeArbiter(3, ChannelBus(), rng=random.Random(0), clock=self.clock)

    def test_initial_mode_is_manual(self) -> None:
        self.assertIs(self.arbiter.current_mode, DrivingMode.MANUAL)
        self.assertIsNone(self.arbiter.last_change_ts)
        self.assertEqual(self.arbiter.cooldown_remaining(), 0.0)

    def test_first_transition_needs_no_cooldown(self) -> None:
        self.assertIs(self.arbiter.process(AUTONOMOUS_SCENE).driving_mode, DrivingMode.AUTONOMOUS)
        self.assertEqual(self.arbiter.last_change_ts, self.clock.t)

    def test_manual_to_autonomous_rejected_one_second_after_entering_manual(self) -> None:
        self.arbiter.process(EMERGENCY_SCENE)
        self.clock.advance(20.0)
        self.arbiter.process(MANUAL_SCENE)
        self.assertIs(self.arbiter.current_mode, DrivingMode.MANUAL)

        self.clock.advance(1.0)
        with self.assertLogs("mode_arbiter", level="DEBUG") as logs:
            car_data = self.arbiter.process(AUTONOMOUS_SCENE)
        self.assertIs(car_data.driving_mode, DrivingMode.MANUAL)
        self.assertTrue(any("BLOCKED" in line for line in logs.output))
        self.assertAlmostEqual(self.arbiter.cooldown_remaining(), 14.0)

    def test_transition_accepted_once_cooldown_elapsed(self) -> None:
        self.arbiter.process(AUTONOMOUS_SCENE)
        self.clock.advance(14.0)
        self.assertIs(self.arbiter.process(MANUAL_SCENE).driving_mode, DrivingMode.AUTONOMOUS)
        self.clock.advance(1.0)
        self.assertIs(self.arbiter.process(MANUAL_SCENE).driving_mode, DrivingMode.MANUAL)

    def test_emergency_bypasses_cooldown(self) -> None:
        self.arbiter.process(AUTONOMOUS_SCENE)
        self.clock.advance(0.5)
        self.assertIs(self.arbiter.process(EMERGENCY_SCENE).driving_mode, DrivingMode.EMERGENCY)

    def test_severity_orders_modes_and_labels_transitions(self) -> None:
        self.assertGreater(DrivingMode.EMERGENCY.severity, DrivingMode.MANUAL.severity)
        self.assertGreater(DrivingMode.MANUAL.severity, DrivingMode.AUTONOMOUS.severity)

        with self.assertLogs("mode_arbiter", level="INFO") as logs:
            self.arbiter.process(EMERGENCY_SCENE)
        self.assertTrue(any("APPROVED (escalation)" in line for line in logs.output))

        self.clock.advance(20.0)
        with self.assertLogs("mode_arbiter", level="INFO") as logs:
            self.arbiter.process(AUTONOMOUS_SCENE)
        self.assertTrue(any("APPROVED (relaxation)" in line for line in logs.output))

    def test_leaving_emergency_respects_cooldown(self) -> None:
        self.arbiter.process(EMERGENCY_SCENE)
        self.clock.advance(5.0)
        self.assertIs(self.arbiter.process(AUTONOMOUS_SCENE).driving_mode, DrivingMode.EMERGENCY)

    def test_car_data_emitted_every_step_even_when_blocked(self) -> None:
        channels = ChannelBus()
        arbiter = ModeArbiter(3, channels, rng=random.Random(1), clock=self.clock)
        channels.write("inferred-scene", "fusion", AUTONOMOUS_SCENE)
        arbiter.step()
        channels.write("inferred-scene", "fusion", MANUAL_SCENE)
        for _ in range(5):
            self.clock.advance(1.0)
            arbiter.step()
            self.assertEqual(channels.try_read("car-data"), CarData(DrivingMode.AUTONOMOUS))
        self.assertEqual(channels.metrics.published, 8)

    def test_no_scene_no_output(self) -> None:
        channels = ChannelBus()
        ModeArbiter(3, channels, clock=self.clock).step()
        self.assertIsNone(channels.try_read("car-data"))

    def test_non_emergency_transitions_never_violate_cooldown(self) -> None:
        rng = random.Random(11)
        last_change = None
        previous = self.arbiter.current_mode
        for _ in range(2000):
            self.clock.advance(rng.choice([0.1, 0.5, 1.0, 3.0]))
            s = scene(rng.uniform(1.5, 30.0), rng.randint(0, 9), rng.randint(0, 10))
            mode = self.arbiter.process(s).driving_mode
            if mode is not previous:
                self.assertIs(mode, classify_scene(s))
                if mode is not DrivingMode.EMERGENCY and last_change is not None:
                    self.assertGreaterEqual(self.clock.t - last_change, DEFAULT_POLICY.cooldown_s)
                last_change = self.clock.t
            previous = mode

    def test_custom_cooldown(self) -> None:
        arbiter = ModeArbiter(3, ChannelBus(), policy=ModePolicy(cooldown_s=1.0),
                              rng=random.Random(2), clock=self.clock)
        arbiter.process(AUTONOMOUS_SCENE)
        self.clock.advance(1.0)
        self.assertIs(arbiter.process(MANUAL_SCENE).driving_mode, DrivingMode.MANUAL)


class ArbiterDynamicsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.arbiter = ModeArbiter(3, ChannelBus(), rng=random.Random(5), clock=self.clock)

    def test_emergency_targets(self) -> None:
        self.arbiter.process(EMERGENCY_SCENE)
        self.assertEqual(self.arbiter.target_speed, 15.0)  # max(50 * 0.3, 10)
        self.assertEqual(self.arbiter.brake_force, 80.0)

    def test_manual_near_obstacle_target(self) -> None:
        self.arbiter.process(AUTONOMOUS_SCENE)
        self.clock.advance(20.0)
        self.arbiter.process(scene(5.0))
        self.assertAlmostEqual(self.arbiter.target_speed, 45.0)
        self.assertTrue(0.0 <= self.arbiter.brake_force <= 40.0)

    def test_autonomous_target_ranges(self) -> None:
        for seed in range(50):
            arbiter = ModeArbiter(3, ChannelBus(), rng=random.Random(seed), clock=self.clock)
            arbiter.process(AUTONOMOUS_SCENE)
            self.assertTrue(60.0 <= arbiter.target_speed <= 75.0)
            self.assertTrue(0.0 <= arbiter.brake_force <= 15.0)

    def test_speed_converges_monotonically(self) -> None:
        self.arbiter.process(AUTONOMOUS_SCENE)
        target = self.arbiter.target_speed
        gaps = []
        for _ in range(100):
            self.arbiter.process(AUTONOMOUS_SCENE)
            gaps.append(abs(target - self.arbiter.current_speed))
        for earlier, later in zip(gaps, gaps[1:]):
            self.assertLessEqual(later, earlier)
        self.assertLess(gaps[-1], 0.01)

    def test_one_step_closes_ten_percent_of_gap(self) -> None:
        self.arbiter.process(EMERGENCY_SCENE)
        # 50 + (15 - 50) * 0.1
        self.assertAlmostEqual(self.arbiter.current_speed, 46.5)

    def test_speed_and_steering_bounds_over_10000_steps(self) -> None:
        rng = random.Random(8)
        for _ in range(10_000):
            self.clock.advance(1.0)
            self.arbiter.process(scene(rng.uniform(1.5, 30.0), rng.randint(0, 9), rng.randint(0, 10)))
            self.assertTrue(5.0 <= self.arbiter.current_speed <= 120.0)
            self.assertTrue(-10.0 <= self.arbiter.steering_angle <= 10.0)

    def test_snapshot_fields(self) -> None:
        self.arbiter.process(AUTONOMOUS_SCENE)
        snap = self.arbiter.snapshot()
        self.assertEqual(snap["driving_mode"], "autonomous")
        self.assertEqual(snap["cooldown_remaining"], 15.0)
        for key in ("current_speed", "target_speed", "steering_angle", "brake_force"):
            self.assertIn(key, snap)


class EmergencyBrakingTests(unittest.TestCase):
    def test_levels(self) -> None:
        self.assertEqual(brake_instruction_for(scene(40.0)), BrakeInstruction(False, 0.0))
        self.assertEqual(brake_instruction_for(scene(30.0)), BrakeInstruction(False, 0.0))
        self.assertAlmostEqual(brake_instruction_for(scene(22.5)).level, 0.5)
        self.assertEqual(brake_instruction_for(scene(15.0)).level, 1.0)
        self.assertEqual(brake_instruction_for(scene(2.0)).level, 1.0)

    def test_step_writes_control_brakes(self) -> None:
        channels = ChannelBus()
        braking = EmergencyBraking(4, channels)
        braking.step()
        self.assertIsNone(channels.try_read("control-brakes"))
        channels.write("inferred-scene", "fusion", scene(20.0))
        braking.step()
        instruction = channels.try_read("control-brakes")
        self.assertTrue(instruction.active)
        self.assertAlmostEqual(instruction.level, 10.0 / 15.0)


if __name__ == "__main__":
    unittest.main()
