#!/usr/bin/env python3
"""
Camera scenario cycling, sensor ranges, and scene fusion.
"""

from __future__ import annotations

import random
import unittest

from bus.channels import ChannelBus
from sim.fusion import SceneFusion, fuse
from sim.messages import CameraReading, RadarReading, Scene
from sim.sensors import SCENARIO_PROFILES, Camera, Radar, Scenario


class CameraTests(unittest.TestCase):
    def test_initial_state(self) -> None:
        camera = Camera(0, ChannelBus(), rng=random.Random(0))
        self.assertEqual(camera.scenario, Scenario.HIGHWAY)
        self.assertEqual((camera.num_people, camera.num_cars), (2, 3))
        self.assertEqual(camera.distance_obstacle, 10.0)

    def test_scenarios_cycle_in_fixed_order(self) -> None:
        camera = Camera(0, ChannelBus(), rng=random.Random(1))
        seen = [camera.scenario]
        for _ in range(40 + 30 + 25 + 15):
            camera.advance()
            if camera.scenario is not seen[-1]:
                seen.append(camera.scenario)
        self.assertEqual(
            seen,
            [Scenario.HIGHWAY, Scenario.CITY, Scenario.SUBURBAN,
             Scenario.EMERGENCY_TEST, Scenario.HIGHWAY],
        )

    def test_scenario_switch_timing(self) -> None:
        camera = Camera(0, ChannelBus(), rng=random.Random(2))
        for _ in range(39):
            camera.advance()
        self.assertEqual(camera.scenario, Scenario.HIGHWAY)
        camera.advance()
        self.assertEqual(camera.scenario, Scenario.CITY)
        self.assertEqual(camera.scenario_duration, 30)

    def test_readings_respect_active_scenario_ranges(self) -> None:
        camera = Camera(0, ChannelBus(), rng=random.Random(3))
        for _ in range(2000):
            reading = camera.advance()
            profile = SCENARIO_PROFILES[camera.scenario]
            self.assertTrue(profile.people.low <= reading.num_people <= profile.people.high)
            self.assertTrue(profile.cars.low <= reading.num_cars <= profile.cars.high)
            self.assertTrue(
                profile.distance.low <= reading.distance_obstacle <= profile.distance.high
            )

    def test_step_writes_camera_front(self) -> None:
        channels = ChannelBus()
        Camera(0, channels, rng=random.Random(4)).step()
        self.assertIsInstance(channels.try_read("camera-front"), CameraReading)

    def test_rejected_write_is_a_warning(self) -> None:
        channels = ChannelBus()
        channels.close()
        camera = Camera(0, channels, rng=random.Random(5))
        with self.assertLogs("sensors", level="WARNING"):
            camera.step()


class RadarTests(unittest.TestCase):
    def test_radar_ranges(self) -> None:
        radar = Radar(1, ChannelBus(), rng=random.Random(6))
        self.assertEqual(radar.distance_obstacle, 10.0)
        for _ in range(10_000):
            scan = radar.advance()
            self.assertTrue(1.5 <= scan.distance_obstacle <= 30.0)
            self.assertTrue(-1.0 <= scan.error_margin <= 1.0)

    def test_step_writes_radar_front(self) -> None:
        channels = ChannelBus()
        Radar(1, channels, rng=random.Random(7)).step()
        self.assertIsInstance(channels.try_read("radar-front"), RadarReading)


class FusionTests(unittest.TestCase):
    def test_fuse_takes_minimum_distance_and_passes_counts(self) -> None:
        scene = fuse(
            CameraReading(num_people=4, num_cars=6, distance_obstacle=12.0),
            RadarReading(distance_obstacle=7.5, error_margin=0.3),
            random.Random(0),
        )
        self.assertEqual(scene.distance_obstacle, 7.5)
        self.assertEqual((scene.num_people, scene.num_cars), (4, 6))
        self.assertTrue(0.5 <= scene.distance_left_lane <= 1.0)
        self.assertTrue(0.5 <= scene.distance_right_lane <= 1.0)

    def test_missing_input_is_a_no_op(self) -> None:
        channels = ChannelBus()
        fusion = SceneFusion(2, channels, rng=random.Random(1))
        fusion.step()
        self.assertIsNone(channels.try_read("inferred-scene"))

        channels.write("camera-front", "camera", CameraReading(1, 1, 9.0))
        fusion.step()
        self.assertIsNone(channels.try_read("inferred-scene"))

        channels.write("radar-front", "radar", RadarReading(8.0, 0.0))
        fusion.step()
        scene = channels.try_read("inferred-scene")
        self.assertIsInstance(scene, Scene)
        self.assertEqual(scene.distance_obstacle, 8.0)


if __name__ == "__main__":
    unittest.main()
