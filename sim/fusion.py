#!/usr/bin/env python3
"""
sim/fusion.py
=============
Combines the latest camera and radar readings into one :class:`Scene`.

The obstacle distance is the closer of the two sensors; lane distances
are re-sampled every step with no memory of the previous scene.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from bus.channels import ChannelBus
from config import TOPIC_CAMERA_FRONT, TOPIC_INFERRED_SCENE, TOPIC_RADAR_FRONT
from sim.activity import Activity
from sim.messages import CameraReading, RadarReading, Scene
from sim.random_walk import tenths

log = logging.getLogger("fusion")


def fuse(camera: CameraReading, radar: RadarReading, rng: random.Random) -> Scene:
    """Build a scene from one camera reading and one radar reading."""
    return Scene(
        num_people=camera.num_people,
        num_cars=camera.num_cars,
        distance_obstacle=min(camera.distance_obstacle, radar.distance_obstacle),
        distance_left_lane=tenths(rng, 5, 10),
        distance_right_lane=tenths(rng, 5, 10),
    )


class SceneFusion(Activity):
    """Reads ``camera-front`` and ``radar-front``, writes ``inferred-scene``."""

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        rng: Optional[random.Random] = None,
        camera_topic: str = TOPIC_CAMERA_FRONT,
        radar_topic: str = TOPIC_RADAR_FRONT,
        scene_topic: str = TOPIC_INFERRED_SCENE,
    ) -> None:
        super().__init__(activity_id, "scene_fusion")
        self._channels = channels
        self._rng = rng if rng is not None else random.Random()
        self._camera_topic = camera_topic
        self._radar_topic = radar_topic
        self._scene_topic = scene_topic

    def step(self) -> None:
        camera = self._channels.try_read(self._camera_topic)
        radar = self._channels.try_read(self._radar_topic)
        if camera is None or radar is None:
            log.debug("No camera/radar input yet (camera=%s radar=%s)",
                      camera is not None, radar is not None)
            return

        scene = fuse(camera, radar, self._rng)
        log.debug("Inferred scene %s", scene)
        if not self._channels.write(self._scene_topic, self.name, scene):
            log.warning("Scene not written this step")
