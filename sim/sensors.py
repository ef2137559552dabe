#!/usr/bin/env python3
"""
sim/sensors.py
==============
Scenario-driven camera and radar simulators.

The camera cycles through a fixed sequence of traffic scenarios, each of
which random-walks people/car counts and the obstacle distance with its
own probabilities, step sizes and ranges.  The radar random-walks its
own obstacle distance with no knowledge of the camera's scenario.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from bus.channels import ChannelBus
from config import TOPIC_CAMERA_FRONT, TOPIC_RADAR_FRONT
from sim.activity import Activity
from sim.messages import CameraReading, RadarReading
from sim.random_walk import bounded_walk_float, bounded_walk_int, tenths

log = logging.getLogger("sensors")


class Scenario(Enum):
    """Traffic scenario currently driving the camera."""
    HIGHWAY = "highway"
    CITY = "city"
    SUBURBAN = "suburban"
    EMERGENCY_TEST = "emergency_test"


@dataclass(frozen=True)
class WalkParams:
    """Change probability, maximum step and clamp range for one field."""
    change_prob: float
    max_delta: float
    low: float
    high: float


@dataclass(frozen=True)
class ScenarioProfile:
    """Stochastic parameters in effect while a scenario is active."""
    duration: int
    people: WalkParams
    cars: WalkParams
    distance: WalkParams


SCENARIO_PROFILES: Dict[Scenario, ScenarioProfile] = {
    # Few pedestrians, moderate traffic that occasionally trips the car rule.
    Scenario.HIGHWAY: ScenarioProfile(
        duration=40,
        people=WalkParams(0.3, 1, 0, 3),
        cars=WalkParams(0.7, 2, 2, 8),
        distance=WalkParams(0.8, 8.0, 4.0, 25.0),
    ),
    # Dense and close: mostly manual.
    Scenario.CITY: ScenarioProfile(
        duration=30,
        people=WalkParams(0.9, 3, 3, 9),
        cars=WalkParams(0.9, 3, 4, 10),
        distance=WalkParams(1.0, 6.0, 3.0, 12.0),
    ),
    Scenario.SUBURBAN: ScenarioProfile(
        duration=25,
        people=WalkParams(0.6, 2, 2, 6),
        cars=WalkParams(0.6, 2, 3, 7),
        distance=WalkParams(0.7, 4.0, 4.0, 18.0),
    ),
    # Close obstacles to exercise emergency mode.
    Scenario.EMERGENCY_TEST: ScenarioProfile(
        duration=15,
        people=WalkParams(0.4, 1, 0, 3),
        cars=WalkParams(0.4, 1, 1, 4),
        distance=WalkParams(1.0, 2.0, 1.5, 5.0),
    ),
}

NEXT_SCENARIO: Dict[Scenario, Scenario] = {
    Scenario.HIGHWAY: Scenario.CITY,
    Scenario.CITY: Scenario.SUBURBAN,
    Scenario.SUBURBAN: Scenario.EMERGENCY_TEST,
    Scenario.EMERGENCY_TEST: Scenario.HIGHWAY,
}

RADAR_DISTANCE_WALK = WalkParams(1.0, 10.0, 1.5, 30.0)


class Camera(Activity):
    """Front camera emulator writing a :class:`CameraReading` every step.

    Parameters
    ----------
    activity_id : int
        Pipeline position.
    channels : ChannelBus
        Where readings are written.
    rng : random.Random or None
        Random source; seed it for reproducible runs.
    topic : str
        Output channel name.
    """

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        rng: Optional[random.Random] = None,
        topic: str = TOPIC_CAMERA_FRONT,
    ) -> None:
        super().__init__(activity_id, "camera")
        self._channels = channels
        self._rng = rng if rng is not None else random.Random()
        self._topic = topic

        self.num_people = 2
        self.num_cars = 3
        self.distance_obstacle = 10.0

        self.scenario = Scenario.HIGHWAY
        self.scenario_timer = 0
        self.scenario_duration = SCENARIO_PROFILES[Scenario.HIGHWAY].duration

    def _advance_scenario(self) -> None:
        self.scenario_timer += 1
        if self.scenario_timer < self.scenario_duration:
            return
        self.scenario_timer = 0
        self.scenario = NEXT_SCENARIO[self.scenario]
        self.scenario_duration = SCENARIO_PROFILES[self.scenario].duration
        log.info("Camera switching to %s scenario for %d steps",
                 self.scenario.value, self.scenario_duration)

    def advance(self) -> CameraReading:
        """Move one step forward and return the new reading."""
        self._advance_scenario()
        profile = SCENARIO_PROFILES[self.scenario]

        p, c, d = profile.people, profile.cars, profile.distance
        self.num_people = bounded_walk_int(
            self._rng, self.num_people, p.change_prob, int(p.max_delta), int(p.low), int(p.high)
        )
        self.num_cars = bounded_walk_int(
            self._rng, self.num_cars, c.change_prob, int(c.max_delta), int(c.low), int(c.high)
        )
        self.distance_obstacle = bounded_walk_float(
            self._rng, self.distance_obstacle, d.change_prob, d.max_delta, d.low, d.high
        )
        log.debug("%s scenario: people=%d cars=%d distance=%.1fm",
                  self.scenario.value, self.num_people, self.num_cars, self.distance_obstacle)

        return CameraReading(
            num_people=self.num_people,
            num_cars=self.num_cars,
            distance_obstacle=self.distance_obstacle,
        )

    def step(self) -> None:
        reading = self.advance()
        if not self._channels.write(self._topic, self.name, reading):
            log.warning("Camera reading not written this step")


class Radar(Activity):
    """Front radar emulator writing a :class:`RadarReading` every step."""

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        rng: Optional[random.Random] = None,
        topic: str = TOPIC_RADAR_FRONT,
    ) -> None:
        super().__init__(activity_id, "radar")
        self._channels = channels
        self._rng = rng if rng is not None else random.Random()
        self._topic = topic
        self.distance_obstacle = 10.0

    def advance(self) -> RadarReading:
        """Move one step forward and return the new reading."""
        w = RADAR_DISTANCE_WALK
        self.distance_obstacle = bounded_walk_float(
            self._rng, self.distance_obstacle, w.change_prob, w.max_delta, w.low, w.high
        )
        return RadarReading(
            distance_obstacle=self.distance_obstacle,
            error_margin=tenths(self._rng, -10, 10),
        )

    def step(self) -> None:
        scan = self.advance()
        log.debug("Radar scan distance=%.1fm error=%.1f", scan.distance_obstacle, scan.error_margin)
        if not self._channels.write(self._topic, self.name, scan):
            log.warning("Radar scan not written this step")
