#!/usr/bin/env python3
"""
sim/mode_arbiter.py
===================
Hysteretic driving-mode state machine.

Every step the arbiter classifies the latest scene, decides whether the
candidate mode may replace the current one, nudges the vehicle dynamics
towards the mode's targets and publishes the current mode on
``car-data``, whether or not it changed.

Transition guard
----------------
A candidate different from the current mode is accepted when

* it is Emergency (cooldown bypassed), or
* no transition has happened yet, or
* at least ``policy.cooldown_s`` seconds passed since the last one.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, Optional

from bus.channels import ChannelBus
from config import TOPIC_CAR_DATA, TOPIC_INFERRED_SCENE
from sim.activity import Activity
from sim.messages import CarData, DrivingMode, Scene
from sim.mode_policy import DEFAULT_POLICY, ModePolicy, classify_scene
from sim.random_walk import bounded_walk_float, clamp, walk_float

log = logging.getLogger("mode_arbiter")


class ModeArbiter(Activity):
    """Decides the driving mode and owns the vehicle dynamics state.

    Parameters
    ----------
    activity_id : int
        Pipeline position.
    channels : ChannelBus
        Source of ``inferred-scene`` and sink for ``car-data``.
    policy : ModePolicy or None
        Thresholds, cooldown and dynamics constants.
    rng : random.Random or None
        Random source for target and steering walks.
    clock : callable
        Monotonic seconds; injectable so tests can move time.
    """

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        policy: Optional[ModePolicy] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        scene_topic: str = TOPIC_INFERRED_SCENE,
        car_data_topic: str = TOPIC_CAR_DATA,
    ) -> None:
        super().__init__(activity_id, "mode_arbiter")
        self._channels = channels
        self.policy = policy or DEFAULT_POLICY
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._scene_topic = scene_topic
        self._car_data_topic = car_data_topic

        self.current_mode = DrivingMode.MANUAL
        self.previous_published_mode: Optional[DrivingMode] = None
        self.last_change_ts: Optional[float] = None

        self.current_speed = self.policy.initial_speed_kmh
        self.target_speed = self.policy.initial_speed_kmh
        self.steering_angle = 0.0
        self.brake_force = 0.0

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        p = self.policy
        log.info("ModeArbiter starting: cooldown %.0fs, emergency <%.1fm, "
                 "manual <%.1fm or >%d people or >%d cars",
                 p.cooldown_s, p.emergency_threshold_m, p.manual_distance_threshold_m,
                 p.manual_max_people, p.manual_max_cars)

    def step(self) -> None:
        scene = self._channels.try_read(self._scene_topic)
        if scene is None:
            log.debug("No scene data available")
            return
        car_data = self.process(scene)
        if not self._channels.write(self._car_data_topic, self.name, car_data):
            log.warning("CarData not written this step (mode %s)", car_data.driving_mode.value)

    # ── Decision ──────────────────────────────────────────────────────────────

    def cooldown_remaining(self, now: Optional[float] = None) -> float:
        """Seconds until a non-emergency transition would be accepted."""
        if self.last_change_ts is None:
            return 0.0
        now = self._clock() if now is None else now
        return max(0.0, self.policy.cooldown_s - (now - self.last_change_ts))

    def can_change_to(self, candidate: DrivingMode, now: Optional[float] = None) -> bool:
        """Whether the guard lets *candidate* through at *now*."""
        if candidate is DrivingMode.EMERGENCY:
            return True
        if self.last_change_ts is None:
            return True
        now = self._clock() if now is None else now
        return now - self.last_change_ts >= self.policy.cooldown_s

    def process(self, scene: Scene) -> CarData:
        """Run one arbitration step on *scene* and return the mode to publish."""
        now = self._clock()
        candidate = classify_scene(scene, self.policy)
        log.debug("Scene people=%d cars=%d distance=%.1f -> candidate %s (current %s)",
                  scene.num_people, scene.num_cars, scene.distance_obstacle,
                  candidate.value, self.current_mode.value)

        if candidate is not self.current_mode:
            if self.can_change_to(candidate, now):
                direction = ("escalation" if candidate.severity > self.current_mode.severity
                             else "relaxation")
                log.info("Mode transition APPROVED (%s): %s -> %s (distance=%.1fm people=%d cars=%d)",
                         direction, self.current_mode.value, candidate.value,
                         scene.distance_obstacle, scene.num_people, scene.num_cars)
                self.current_mode = candidate
                self.last_change_ts = now
                self._apply_targets(candidate, scene)
            else:
                log.debug("Mode transition BLOCKED: %s -> %s (cooling down %.1fs more)",
                          self.current_mode.value, candidate.value,
                          self.cooldown_remaining(now))

        self._adjust_dynamics()

        if self.current_mode is not self.previous_published_mode:
            log.info("%s MODE: distance %.1fm, speed %.0f km/h",
                     self.current_mode.value.upper(), scene.distance_obstacle, self.current_speed)
            self.previous_published_mode = self.current_mode

        return CarData(driving_mode=self.current_mode)

    # ── Dynamics ──────────────────────────────────────────────────────────────

    def _apply_targets(self, mode: DrivingMode, scene: Scene) -> None:
        p = self.policy
        rng = self._rng
        if mode is DrivingMode.EMERGENCY:
            self.target_speed = max(self.current_speed * p.emergency_speed_factor,
                                    p.emergency_min_target_kmh)
            self.brake_force = p.emergency_brake_force
        elif mode is DrivingMode.MANUAL:
            if scene.distance_obstacle < p.manual_near_distance_m:
                target = p.manual_near_base_kmh + scene.distance_obstacle * p.manual_near_gain
            else:
                target = p.manual_base_kmh + walk_float(
                    rng, 0.0, p.manual_speed_change_prob, p.manual_speed_max_delta)
            self.target_speed = clamp(target, p.manual_min_target_kmh, p.manual_max_target_kmh)
            self.brake_force = bounded_walk_float(
                rng, 0.0, p.manual_brake_change_prob, p.manual_brake_max_delta,
                0.0, p.manual_max_brake)
        else:
            target = p.autonomous_base_kmh + walk_float(
                rng, 0.0, p.autonomous_speed_change_prob, p.autonomous_speed_max_delta)
            self.target_speed = clamp(target, p.autonomous_min_target_kmh, p.autonomous_max_target_kmh)
            self.brake_force = bounded_walk_float(
                rng, 0.0, p.autonomous_brake_change_prob, p.autonomous_brake_max_delta,
                0.0, p.autonomous_max_brake)
        log.info("%s targets: speed %.0f km/h, brake %.0f%%",
                 mode.value, self.target_speed, self.brake_force)

    def _adjust_dynamics(self) -> None:
        p = self.policy
        self.current_speed += (self.target_speed - self.current_speed) * p.speed_smoothing
        self.current_speed = clamp(self.current_speed, p.min_speed_kmh, p.max_speed_kmh)
        self.steering_angle = bounded_walk_float(
            self._rng, self.steering_angle, p.steering_change_prob, p.steering_max_delta_deg,
            -p.steering_limit_deg, p.steering_limit_deg)

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view of the arbiter state for the UI and API."""
        return {
            "driving_mode": self.current_mode.value,
            "current_speed": self.current_speed,
            "target_speed": self.target_speed,
            "steering_angle": self.steering_angle,
            "brake_force": self.brake_force,
            "cooldown_remaining": self.cooldown_remaining(),
        }
