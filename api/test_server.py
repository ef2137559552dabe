#!/usr/bin/env python3
"""
REST endpoints served from the pipeline snapshot.
"""

from __future__ import annotations

import unittest

from fastapi.testclient import TestClient

from api.server import create_app
from sim.messages import DrivingMode
from sim.pipeline import Pipeline


class StepClock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


def _pipeline() -> Pipeline:
    return Pipeline(random_seed=4, clock=StepClock(), sleep=lambda _s: None)


class TelemetryApiTests(unittest.TestCase):
    def test_before_first_tick(self) -> None:
        client = TestClient(create_app(_pipeline()))
        response = client.get("/data/manual")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"detail": "No manual car data available yet"})
        self.assertEqual(client.get("/car-data").status_code, 404)
        self.assertEqual(client.get("/state").status_code, 404)
        self.assertEqual(client.get("/emergency").json(), {"emergency_active": False})

    def test_unknown_mode_is_rejected(self) -> None:
        client = TestClient(create_app(_pipeline()))
        self.assertEqual(client.get("/data/cruise").status_code, 422)

    def test_after_ticks(self) -> None:
        pipeline = _pipeline()
        for _ in range(10):
            pipeline.step_once()
        client = TestClient(create_app(pipeline))

        mode = pipeline.get_car_data()["driving_mode"]
        self.assertEqual(client.get("/car-data").json(), {"driving_mode": mode})

        data = client.get(f"/data/{mode}")
        self.assertEqual(data.status_code, 200)
        self.assertEqual(data.json(), pipeline.get_telemetry(mode))

        state = client.get("/state").json()
        self.assertEqual(state["driving_mode"], mode)
        self.assertEqual(state["tick"], 10)

        metrics = client.get("/metrics").json()
        self.assertEqual(metrics["ticks"], 10)
        self.assertGreaterEqual(metrics["export"]["published"], 10)

        emergency = client.get("/emergency").json()["emergency_active"]
        self.assertEqual(emergency, mode == DrivingMode.EMERGENCY.value)

    def test_cors_header(self) -> None:
        client = TestClient(create_app(_pipeline()))
        response = client.get("/emergency", headers={"Origin": "http://dashboard.local"})
        self.assertEqual(response.headers.get("access-control-allow-origin"), "*")


if __name__ == "__main__":
    unittest.main()
