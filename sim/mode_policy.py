#!/usr/bin/env python3
"""
sim/mode_policy.py
==================
Tunable thresholds and vehicle-dynamics parameters for driving-mode
arbitration.  Every constant lives in the frozen :class:`ModePolicy`
dataclass so that experiments can swap policies without touching code.

Also provides the stateless scene classification shared by the
arbiter and by the telemetry publishers' fallback path:

* :func:`classify_scene` — candidate mode for a scene, no hysteresis.
* :func:`mode_active_from_scene` — fallback "is this mode active" test.
"""

from __future__ import annotations

from dataclasses import dataclass

from sim.messages import DrivingMode, Scene


@dataclass(frozen=True)
class ModePolicy:
    """Immutable bag of every arbitration and dynamics parameter.

    Groups: mode thresholds, hysteresis, smoothing, per-mode targets.
    """

    # ── Mode thresholds ───────────────────────────────────────────────────
    emergency_threshold_m: float = 4.0
    """Obstacle closer than this ⇒ Emergency."""

    manual_distance_threshold_m: float = 6.0
    """Obstacle closer than this (but not emergency) ⇒ Manual."""

    manual_max_people: int = 4
    """More pedestrians than this ⇒ Manual."""

    manual_max_cars: int = 5
    """More cars than this ⇒ Manual."""

    # ── Hysteresis ────────────────────────────────────────────────────────
    cooldown_s: float = 15.0
    """Minimum dwell time before a non-emergency transition is accepted."""

    # ── Dynamics smoothing ────────────────────────────────────────────────
    initial_speed_kmh: float = 50.0
    """Speed and target speed at start-up."""

    speed_smoothing: float = 0.1
    """Fraction of the remaining gap to target closed every step."""

    min_speed_kmh: float = 5.0
    max_speed_kmh: float = 120.0

    steering_change_prob: float = 0.1
    steering_max_delta_deg: float = 2.0
    steering_limit_deg: float = 10.0
    """Steering angle is kept within ±this many degrees."""

    # ── Emergency targets ─────────────────────────────────────────────────
    emergency_speed_factor: float = 0.3
    emergency_min_target_kmh: float = 10.0
    emergency_brake_force: float = 80.0

    # ── Manual targets ────────────────────────────────────────────────────
    manual_near_distance_m: float = 10.0
    """Below this distance the manual target scales with the distance."""

    manual_near_base_kmh: float = 30.0
    manual_near_gain: float = 3.0
    manual_base_kmh: float = 40.0
    manual_speed_change_prob: float = 0.3
    manual_speed_max_delta: float = 15.0
    manual_min_target_kmh: float = 25.0
    manual_max_target_kmh: float = 70.0
    manual_brake_change_prob: float = 0.2
    manual_brake_max_delta: float = 20.0
    manual_max_brake: float = 40.0

    # ── Autonomous targets ────────────────────────────────────────────────
    autonomous_base_kmh: float = 65.0
    autonomous_speed_change_prob: float = 0.1
    autonomous_speed_max_delta: float = 5.0
    autonomous_min_target_kmh: float = 60.0
    autonomous_max_target_kmh: float = 75.0
    autonomous_brake_change_prob: float = 0.1
    autonomous_brake_max_delta: float = 5.0
    autonomous_max_brake: float = 15.0


DEFAULT_POLICY = ModePolicy()


def classify_scene(scene: Scene, policy: ModePolicy = DEFAULT_POLICY) -> DrivingMode:
    """Mode a scene calls for, evaluated Emergency first, then Manual."""
    if scene.distance_obstacle < policy.emergency_threshold_m:
        return DrivingMode.EMERGENCY
    if (
        scene.distance_obstacle < policy.manual_distance_threshold_m
        or scene.num_people > policy.manual_max_people
        or scene.num_cars > policy.manual_max_cars
    ):
        return DrivingMode.MANUAL
    return DrivingMode.AUTONOMOUS


def mode_active_from_scene(
    mode: DrivingMode,
    scene: Scene,
    policy: ModePolicy = DEFAULT_POLICY,
) -> bool:
    """Best-effort estimate of whether *mode* is active, straight from *scene*.

    Used only when ``car-data`` is unavailable.  No cooldown is applied,
    so the answer may disagree with the arbiter while it is cooling down.
    """
    return classify_scene(scene, policy) is mode
