#!/usr/bin/env python3
"""
sim/emergency_braking.py
========================
Distance-proportional brake engagement.

Brakes engage once the obstacle is closer than ``engage_distance_m`` and
reach full level at ``max_brake_distance_m``.
"""

from __future__ import annotations

import logging

from bus.channels import ChannelBus
from config import TOPIC_CONTROL_BRAKES, TOPIC_INFERRED_SCENE
from sim.activity import Activity
from sim.messages import BrakeInstruction, Scene

log = logging.getLogger("emergency_braking")

ENGAGE_DISTANCE_M = 30.0
MAX_BRAKE_DISTANCE_M = 15.0


def brake_instruction_for(
    scene: Scene,
    engage_distance_m: float = ENGAGE_DISTANCE_M,
    max_brake_distance_m: float = MAX_BRAKE_DISTANCE_M,
) -> BrakeInstruction:
    """Map the obstacle distance to a brake level in ``[0, 1]``."""
    if scene.distance_obstacle < engage_distance_m:
        level = min(
            1.0,
            (engage_distance_m - scene.distance_obstacle)
            / (engage_distance_m - max_brake_distance_m),
        )
        return BrakeInstruction(active=True, level=level)
    return BrakeInstruction(active=False, level=0.0)


class EmergencyBraking(Activity):
    """Reads ``inferred-scene``, writes ``control-brakes``."""

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        scene_topic: str = TOPIC_INFERRED_SCENE,
        brake_topic: str = TOPIC_CONTROL_BRAKES,
    ) -> None:
        super().__init__(activity_id, "emergency_braking")
        self._channels = channels
        self._scene_topic = scene_topic
        self._brake_topic = brake_topic

    def step(self) -> None:
        scene = self._channels.try_read(self._scene_topic)
        if scene is None:
            return
        instruction = brake_instruction_for(scene)
        if instruction.active:
            log.debug("Brakes engaged at level %.3f (distance %.1fm)",
                      instruction.level, scene.distance_obstacle)
        if not self._channels.write(self._brake_topic, self.name, instruction):
            log.warning("Brake instruction not written this step")
