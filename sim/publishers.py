#!/usr/bin/env python3
"""
sim/publishers.py
=================
Mode telemetry publishers and the deduplicating CarData forwarder.

Each :class:`ModePublisher` decides on its own whether its mode is
active: from ``car-data`` when available, otherwise straight from the
latest scene with the cooldown-free rule in
:func:`sim.mode_policy.mode_active_from_scene`.  While active it streams
a telemetry sample every step, with no deduplication.

:class:`CarDataForwarder` is the only component that suppresses
repeats: it exports ``CarData`` once per distinct consecutive mode.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Union

from bus.channels import ChannelBus
from bus.telemetry_bus import Participant, TelemetryBus
from bus.utils import now_ms
from config import (
    DISCOVERY_INTERVAL_STEPS,
    DISCOVERY_PAUSE_S,
    DISCOVERY_WAIT_S,
    EXPORT_TOPIC_AUTONOMOUS,
    EXPORT_TOPIC_CAR_DATA,
    EXPORT_TOPIC_EMERGENCY,
    EXPORT_TOPIC_MANUAL,
    TOPIC_AUTONOMOUS_TELEMETRY,
    TOPIC_CAR_DATA,
    TOPIC_EMERGENCY_TELEMETRY,
    TOPIC_INFERRED_SCENE,
    TOPIC_MANUAL_TELEMETRY,
)
from sim.activity import Activity
from sim.messages import (
    AutonomousTelemetry,
    CarData,
    DrivingMode,
    EmergencyTelemetry,
    ManualTelemetry,
    Scene,
)
from sim.mode_policy import DEFAULT_POLICY, ModePolicy, mode_active_from_scene
from sim.random_walk import clamp

log = logging.getLogger("publishers")

Telemetry = Union[AutonomousTelemetry, ManualTelemetry, EmergencyTelemetry]

_WEATHER = "clear"
_ROAD = "dry"


# ── Telemetry derivations ─────────────────────────────────────────────────────

def autonomous_telemetry(scene: Scene, timestamp: int) -> AutonomousTelemetry:
    """Steady cruising values derived from *scene*."""
    d = scene.distance_obstacle
    if d > 20.0:
        optimal = 70.0
    elif d > 15.0:
        optimal = 60.0
    else:
        optimal = 50.0
    speed = clamp(optimal - scene.num_cars * 0.5, 45.0, 75.0)

    if scene.distance_left_lane < scene.distance_right_lane:
        steering = 2.0
    elif scene.distance_right_lane < scene.distance_left_lane:
        steering = -2.0
    else:
        steering = 0.0

    if d > 30.0:
        acceleration = 1.5
    elif d < 15.0:
        acceleration = -1.0
    else:
        acceleration = 0.0

    return AutonomousTelemetry(
        vehicle_speed=speed,
        lane_position=clamp(steering / 10.0, -0.5, 0.5),
        obstacle_detected=d < 30.0,
        obstacle_distance=d,
        traffic_signal="red" if scene.num_cars > 5 else "green",
        steering_angle=steering,
        brake_force=(30.0 - d) * 5.0 if d < 20.0 else 0.0,
        acceleration=acceleration,
        weather_condition=_WEATHER,
        road_condition=_ROAD,
        timestamp=timestamp,
        is_valid=True,
    )


def manual_telemetry(scene: Scene, timestamp: int) -> ManualTelemetry:
    """Traffic-dependent driver values derived from *scene*."""
    d = scene.distance_obstacle
    base = 30.0 + d * 3.0 if d < 10.0 else 45.0
    penalty = scene.num_people * 2.0 + scene.num_cars * 1.5
    speed = clamp(base - penalty, 25.0, 65.0)

    steering = (scene.num_cars - 6.0) * 2.0 if scene.num_cars > 6 else 1.0

    if d > 15.0:
        acceleration = 1.0
    elif d < 8.0:
        acceleration = -2.0
    else:
        acceleration = 0.0

    return ManualTelemetry(
        vehicle_speed=speed,
        steering_angle=clamp(steering, 0.0, 12.0),
        brake_force=(25.0 - d) * 3.0 if d < 25.0 else 0.0,
        acceleration=acceleration,
        weather_condition=_WEATHER,
        road_condition=_ROAD,
        driver_alertness=True,
        throttle_position=clamp(speed / 65.0 * 100.0, 20.0, 80.0),
        timestamp=timestamp,
        is_valid=True,
    )


def emergency_telemetry(scene: Scene, timestamp: int) -> EmergencyTelemetry:
    """Protective-response values derived from *scene*."""
    d = scene.distance_obstacle
    if d < 2.0:
        speed = 5.0
    elif d < 3.0:
        speed = 15.0
    else:
        speed = 25.0

    # Steer away from the nearer lane edge.
    side = -1.0 if scene.distance_left_lane > scene.distance_right_lane else 1.0
    pedestrians_at_risk = scene.num_people > 0 and d < 5.0
    if pedestrians_at_risk:
        steering = 20.0 * side
        emergency_type = "collision_avoidance"
    elif d < 3.0:
        steering = 15.0 * side
        emergency_type = "obstacle"
    else:
        steering = 8.0 * side
        emergency_type = "system_failure"

    collision_risk = clamp(100.0 if d < 5.0 else (10.0 - d) * 10.0, 0.0, 100.0)
    brake = clamp(100.0 if d < 3.0 else (5.0 - d) * 20.0, 0.0, 100.0)

    return EmergencyTelemetry(
        vehicle_speed=speed,
        steering_angle=steering,
        brake_force=brake,
        obstacle_detected=True,
        obstacle_distance=d,
        collision_risk=collision_risk,
        stability_control=True,
        traffic_signal="emergency",
        seatbelt_tightened=True,
        emergency_lights=True,
        emergency_type=emergency_type,
        emergency_brake_force=brake,
        airbag_ready=True,
        timestamp=timestamp,
        is_valid=True,
    )


# ── Export-bus activities ─────────────────────────────────────────────────────

class _ExportActivity(Activity):
    """Activity owning one participant on the export bus."""

    def __init__(
        self,
        activity_id: int,
        name: str,
        export_bus: TelemetryBus,
        sleep: Callable[[float], None] = time.sleep,
        discovery_wait_s: float = DISCOVERY_WAIT_S,
    ) -> None:
        super().__init__(activity_id, name)
        self._export_bus = export_bus
        self._sleep = sleep
        self._discovery_wait_s = discovery_wait_s
        self._participant: Optional[Participant] = None

    def start(self) -> None:
        # BusConnectionError propagates: the component cannot run without the bus.
        self._participant = self._export_bus.attach(self.name)

    def wait_for_discovery(self) -> None:
        log.info("%s waiting %.2fs for subscriber discovery", self.name, self._discovery_wait_s)
        if self._discovery_wait_s > 0:
            self._sleep(self._discovery_wait_s)

    def stop(self) -> None:
        if self._participant is not None:
            self._export_bus.detach(self._participant)
            self._participant = None
        log.info("%s stopped", self.name)

    @property
    def attached(self) -> bool:
        return self._participant is not None


class ModePublisher(_ExportActivity):
    """Streams telemetry for one driving mode while that mode is active.

    Subclasses set :attr:`mode`, the topics and :meth:`build_telemetry`.

    Parameters
    ----------
    activity_id : int
        Pipeline position.
    channels : ChannelBus
        Source of ``car-data`` / ``inferred-scene``; sink for the
        mode's telemetry channel.
    export_bus : TelemetryBus
        External bus the telemetry is published on.
    policy : ModePolicy or None
        Thresholds used by the fallback estimate.
    clock : callable
        Wall-clock seconds used for sample timestamps.
    sleep : callable
        Used for the discovery wait and the periodic discovery pause.
    """

    mode: DrivingMode
    channel_topic: str
    export_topic: str

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        export_bus: TelemetryBus,
        policy: Optional[ModePolicy] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        discovery_wait_s: float = DISCOVERY_WAIT_S,
        discovery_interval: int = DISCOVERY_INTERVAL_STEPS,
        discovery_pause_s: float = DISCOVERY_PAUSE_S,
        car_data_topic: str = TOPIC_CAR_DATA,
        scene_topic: str = TOPIC_INFERRED_SCENE,
    ) -> None:
        super().__init__(
            activity_id,
            f"{self.mode.value}_publisher",
            export_bus,
            sleep=sleep,
            discovery_wait_s=discovery_wait_s,
        )
        self._channels = channels
        self._policy = policy or DEFAULT_POLICY
        self._clock = clock
        self._discovery_interval = discovery_interval
        self._discovery_pause_s = discovery_pause_s
        self._car_data_topic = car_data_topic
        self._scene_topic = scene_topic

        self.discovery_counter = 0
        self.published_count = 0
        self.last_telemetry: Optional[Telemetry] = None

    def build_telemetry(self, scene: Scene, timestamp: int) -> Telemetry:
        raise NotImplementedError

    def is_mode_active(self, car_data: Optional[CarData], scene: Optional[Scene]) -> bool:
        """Primary answer from *car_data*; fallback estimate from *scene*."""
        if car_data is not None:
            return car_data.driving_mode is self.mode
        if scene is not None:
            return mode_active_from_scene(self.mode, scene, self._policy)
        return False

    def _discovery_tick(self) -> None:
        self.discovery_counter += 1
        if self._discovery_interval > 0 and self.discovery_counter % self._discovery_interval == 0:
            log.debug("%s periodic discovery refresh (step %d)", self.name, self.discovery_counter)
            if self._discovery_pause_s > 0:
                self._sleep(self._discovery_pause_s)

    def _no_scene(self) -> None:
        log.debug("%s active but no scene data available", self.name)

    def step(self) -> None:
        self._discovery_tick()

        car_data = self._channels.try_read(self._car_data_topic)
        scene = self._channels.try_read(self._scene_topic)
        if not self.is_mode_active(car_data, scene):
            return
        if scene is None:
            self._no_scene()
            return

        telemetry = self.build_telemetry(scene, now_ms(self._clock))
        if not self._channels.write(self.channel_topic, self.name, telemetry):
            log.warning("%s telemetry not written this step; export skipped", self.name)
            return
        self.last_telemetry = telemetry
        self.published_count += 1

        subscribers = self._export_bus.matched_count(self.export_topic)
        if self._export_bus.publish(self.export_topic, self.name, telemetry.as_dict()):
            log.debug("%s published %s to %d subscriber(s)",
                      self.name, self.export_topic, subscribers)
        else:
            log.debug("%s sample retained for late joiners (live delivery failed)", self.name)


class AutonomousPublisher(ModePublisher):
    mode = DrivingMode.AUTONOMOUS
    channel_topic = TOPIC_AUTONOMOUS_TELEMETRY
    export_topic = EXPORT_TOPIC_AUTONOMOUS

    def build_telemetry(self, scene: Scene, timestamp: int) -> AutonomousTelemetry:
        return autonomous_telemetry(scene, timestamp)


class ManualPublisher(ModePublisher):
    mode = DrivingMode.MANUAL
    channel_topic = TOPIC_MANUAL_TELEMETRY
    export_topic = EXPORT_TOPIC_MANUAL

    def build_telemetry(self, scene: Scene, timestamp: int) -> ManualTelemetry:
        return manual_telemetry(scene, timestamp)


class EmergencyPublisher(ModePublisher):
    mode = DrivingMode.EMERGENCY
    channel_topic = TOPIC_EMERGENCY_TELEMETRY
    export_topic = EXPORT_TOPIC_EMERGENCY

    def build_telemetry(self, scene: Scene, timestamp: int) -> EmergencyTelemetry:
        return emergency_telemetry(scene, timestamp)

    def _no_scene(self) -> None:
        log.warning("Emergency mode active but no scene data available for emergency publishing")


class CarDataForwarder(_ExportActivity):
    """Exports ``CarData`` only when the mode differs from the last export."""

    def __init__(
        self,
        activity_id: int,
        channels: ChannelBus,
        export_bus: TelemetryBus,
        sleep: Callable[[float], None] = time.sleep,
        discovery_wait_s: float = DISCOVERY_WAIT_S,
        car_data_topic: str = TOPIC_CAR_DATA,
        export_topic: str = EXPORT_TOPIC_CAR_DATA,
    ) -> None:
        super().__init__(activity_id, "car_data_forwarder", export_bus,
                         sleep=sleep, discovery_wait_s=discovery_wait_s)
        self._channels = channels
        self._car_data_topic = car_data_topic
        self._export_topic = export_topic
        self.last_published_mode: Optional[DrivingMode] = None
        self.forward_count = 0

    def step(self) -> None:
        car_data = self._channels.try_read(self._car_data_topic)
        if car_data is None:
            log.debug("No car data available to forward")
            return
        if car_data.driving_mode is self.last_published_mode:
            return

        previous = self.last_published_mode.value if self.last_published_mode else "none"
        log.info("New mode %s -> %s, exporting CarData", previous, car_data.driving_mode.value)
        self.forward_count += 1
        if not self._export_bus.publish(self._export_topic, self.name, car_data.as_dict()):
            log.warning("CarData export failed; value retained for late joiners")
        # Advance even on failure: the bus keeps the value for late joiners.
        self.last_published_mode = car_data.driving_mode
