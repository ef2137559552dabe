#!/usr/bin/env python3
"""
sim/messages.py
===============
Records exchanged between pipeline components and exported to the
telemetry bus.

Sensor and scene records are produced fresh every step and are never
mutated after they have been written to a channel.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict


class DrivingMode(Enum):
    """Driving mode advertised on the ``car-data`` channel."""
    AUTONOMOUS = "autonomous"
    MANUAL = "manual"
    EMERGENCY = "emergency"

    @property
    def severity(self) -> int:
        """Rank used for ordering: Emergency > Manual > Autonomous."""
        return _SEVERITY[self]


_SEVERITY = {
    DrivingMode.AUTONOMOUS: 0,
    DrivingMode.MANUAL: 1,
    DrivingMode.EMERGENCY: 2,
}


@dataclass(frozen=True)
class CameraReading:
    """Counts and obstacle distance a perception network would extract from a frame."""
    num_people: int
    num_cars: int
    distance_obstacle: float


@dataclass(frozen=True)
class RadarReading:
    """Closest-object distance with its measurement error."""
    distance_obstacle: float
    error_margin: float


@dataclass(frozen=True)
class Scene:
    """Fused per-step interpretation of the camera and radar readings."""
    num_people: int
    num_cars: int
    distance_obstacle: float
    distance_left_lane: float
    distance_right_lane: float


@dataclass(frozen=True)
class CarData:
    """Current driving mode as seen by downstream consumers."""
    driving_mode: DrivingMode

    def as_dict(self) -> Dict[str, Any]:
        return {"driving_mode": self.driving_mode.value}


@dataclass(frozen=True)
class BrakeInstruction:
    """Whether to engage the brakes and at which level (0.0–1.0)."""
    active: bool
    level: float


@dataclass(frozen=True)
class AutonomousTelemetry:
    """Autonomous-mode telemetry sample (km/h, degrees, percent, m/s²)."""
    vehicle_speed: float
    lane_position: float
    obstacle_detected: bool
    obstacle_distance: float
    traffic_signal: str
    steering_angle: float
    brake_force: float
    acceleration: float
    weather_condition: str
    road_condition: str
    timestamp: int
    is_valid: bool

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ManualTelemetry:
    """Manual-mode telemetry sample."""
    vehicle_speed: float
    steering_angle: float
    brake_force: float
    acceleration: float
    weather_condition: str
    road_condition: str
    driver_alertness: bool
    throttle_position: float
    timestamp: int
    is_valid: bool

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EmergencyTelemetry:
    """Emergency-mode telemetry sample including occupant-protection state."""
    vehicle_speed: float
    steering_angle: float
    brake_force: float
    obstacle_detected: bool
    obstacle_distance: float
    collision_risk: float
    stability_control: bool
    traffic_signal: str
    seatbelt_tightened: bool
    emergency_lights: bool
    emergency_type: str
    emergency_brake_force: float
    airbag_ready: bool
    timestamp: int
    is_valid: bool

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
