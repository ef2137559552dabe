"""
api/server.py
=============
FastAPI server exposing the latest pipeline state to external consumers.

Start it together with the pipeline from :mod:`main`, or standalone::

    python -m api.server          # → http://localhost:9083/data/manual

Endpoints
---------
``GET /data/{mode}``  latest ``autonomous`` / ``manual`` / ``emergency`` telemetry
``GET /car-data``     current driving mode
``GET /emergency``    ``{"emergency_active": bool}``
``GET /state``        vehicle dynamics snapshot
``GET /metrics``      bus counters
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Type, Union

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from config import API_HOST, API_PORT
from sim.messages import DrivingMode
from sim.pipeline import Pipeline

log = logging.getLogger("api")

# ── Pydantic response schemas ────────────────────────────────────────────────


class AutonomousCarData(BaseModel):
    """Autonomous-mode telemetry sample."""
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


class ManualCarData(BaseModel):
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


class EmergencyModeData(BaseModel):
    """Emergency-mode telemetry sample."""
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


class CarDataResponse(BaseModel):
    driving_mode: DrivingMode


class EmergencyStatus(BaseModel):
    emergency_active: bool


class VehicleState(BaseModel):
    """Arbiter dynamics as seen at the last tick."""
    driving_mode: DrivingMode
    current_speed: float
    target_speed: float
    steering_angle: float
    brake_force: float
    cooldown_remaining: float
    scenario: Optional[str] = None
    tick: int = 0


class BusCounters(BaseModel):
    published: int
    dropped: int
    delivered: int
    reads: int
    misses: int


class MetricsResponse(BaseModel):
    channels: BusCounters
    export: BusCounters
    car_data_forwards: int
    telemetry_samples: Dict[str, int]
    ticks: int


TelemetryModel = Union[AutonomousCarData, ManualCarData, EmergencyModeData]

_MODELS: Dict[DrivingMode, Type[BaseModel]] = {
    DrivingMode.AUTONOMOUS: AutonomousCarData,
    DrivingMode.MANUAL: ManualCarData,
    DrivingMode.EMERGENCY: EmergencyModeData,
}


# ── FastAPI application ──────────────────────────────────────────────────────

def create_app(pipeline: Pipeline) -> FastAPI:
    """Build the REST app bound to *pipeline*'s snapshot getters."""
    app = FastAPI(
        title="ADAS Telemetry API",
        description="Latest driving mode and per-mode vehicle telemetry.",
        version="1.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/data/{mode}", response_model=TelemetryModel)
    def get_mode_data(mode: DrivingMode):
        """Latest telemetry sample of *mode*."""
        record = pipeline.get_telemetry(mode)
        if record is None:
            raise HTTPException(status_code=404,
                                detail=f"No {mode.value} car data available yet")
        return _MODELS[mode](**record)

    @app.get("/car-data", response_model=CarDataResponse)
    def get_car_data():
        car_data = pipeline.get_car_data()
        if car_data is None:
            raise HTTPException(status_code=404, detail="No car data available yet")
        return CarDataResponse(**car_data)

    @app.get("/emergency", response_model=EmergencyStatus)
    def get_emergency():
        return EmergencyStatus(emergency_active=pipeline.is_emergency_active())

    @app.get("/state", response_model=VehicleState)
    def get_state():
        state = pipeline.get_vehicle_state()
        if not state:
            raise HTTPException(status_code=404, detail="Pipeline has not ticked yet")
        return VehicleState(**state)

    @app.get("/metrics", response_model=MetricsResponse)
    def get_metrics():
        return MetricsResponse(**pipeline.get_metrics())

    return app


def run_server(pipeline: Pipeline, host: str = API_HOST, port: int = API_PORT) -> None:
    """Serve :func:`create_app` with uvicorn (blocking)."""
    log.info("Starting telemetry API on http://%s:%d", host, port)
    uvicorn.run(create_app(pipeline), host=host, port=port, log_level="warning")


# ── Standalone entry point ───────────────────────────────────────────────────

if __name__ == "__main__":
    from logging_setup import setup_logging

    setup_logging()
    standalone = Pipeline()
    standalone.start()
    try:
        run_server(standalone)
    finally:
        standalone.stop()
