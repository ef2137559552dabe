#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf — it never imports from
other project packages.
"""

# ── Pipeline defaults ────────────────────────────────────────────────────────
DEFAULT_TICK_RATE_HZ: float = 10.0
DEFAULT_RANDOM_SEED = None
DEFAULT_COOLDOWN_S: float = 15.0

# ── Internal channels (single-slot, latest value) ────────────────────────────
TOPIC_CAMERA_FRONT: str = "camera-front"
TOPIC_RADAR_FRONT: str = "radar-front"
TOPIC_INFERRED_SCENE: str = "inferred-scene"
TOPIC_CAR_DATA: str = "car-data"
TOPIC_CONTROL_BRAKES: str = "control-brakes"
TOPIC_AUTONOMOUS_TELEMETRY: str = "autonomous-telemetry"
TOPIC_MANUAL_TELEMETRY: str = "manual-telemetry"
TOPIC_EMERGENCY_TELEMETRY: str = "emergency-telemetry"

DEFAULT_CHANNEL_DROP_RATE: float = 0.0

# ── Export bus ───────────────────────────────────────────────────────────────
EXPORT_TOPIC_CAR_DATA: str = "CarData"
EXPORT_TOPIC_AUTONOMOUS: str = "AutonomousCarData"
EXPORT_TOPIC_MANUAL: str = "ManualCarData"
EXPORT_TOPIC_EMERGENCY: str = "EmergencyModeData"

EXPORT_HISTORY_DEPTH = {EXPORT_TOPIC_CAR_DATA: 1}
EXPORT_DEFAULT_DEPTH: int = 5
DEFAULT_EXPORT_DROP_RATE: float = 0.0

# ── Publisher discovery ──────────────────────────────────────────────────────
DISCOVERY_WAIT_S: float = 0.2
DISCOVERY_INTERVAL_STEPS: int = 100
DISCOVERY_PAUSE_S: float = 0.05

# ── REST API ─────────────────────────────────────────────────────────────────
API_HOST: str = "0.0.0.0"
API_PORT: int = 9083

# ── UI defaults ──────────────────────────────────────────────────────────────
WINDOW_WIDTH: int = 900
WINDOW_HEIGHT: int = 560
TARGET_FPS: int = 30

# ── Logging ──────────────────────────────────────────────────────────────────
LOG_FILE: str = "adas.log"
ARBITER_DEBUG_LOG_FILE: str = "mode_arbiter_debug.log"
