#!/usr/bin/env python3
"""
main.py
=======
Entry point: builds the pipeline, serves the telemetry API and shows
the dashboard (or runs headless).

Environment overrides
---------------------
``ADAS_TICK_RATE_HZ``, ``ADAS_SEED``, ``ADAS_COOLDOWN_S``,
``ADAS_CHANNEL_DROP_RATE``, ``ADAS_EXPORT_DROP_RATE``, ``ADAS_API_PORT``,
``ADAS_HEADLESS`` (``1`` = no window), ``ADAS_LOG_LEVEL``,
``ADAS_RECORD_CSV`` (path of the recorded telemetry CSV).
"""

import dataclasses
import logging
import os
import threading
import time
from typing import Callable, Mapping, Optional, TypeVar

from config import (
    API_HOST,
    API_PORT,
    DEFAULT_CHANNEL_DROP_RATE,
    DEFAULT_COOLDOWN_S,
    DEFAULT_EXPORT_DROP_RATE,
    DEFAULT_RANDOM_SEED,
    DEFAULT_TICK_RATE_HZ,
    TARGET_FPS,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
)
from logging_setup import setup_logging
from sim.mode_policy import DEFAULT_POLICY
from sim.pipeline import Pipeline
from sim.recorder import TelemetryRecorder

log = logging.getLogger("main")

T = TypeVar("T")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def env_value(
    name: str,
    default: T,
    parse: Callable[[str], T],
    environ: Optional[Mapping[str, str]] = None,
) -> T:
    """Parse ``environ[name]`` or return *default*, warning on bad input."""
    environ = os.environ if environ is None else environ
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return parse(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default


def env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(name, "").strip().lower() in _TRUE_VALUES


def _drop_rate(raw: str) -> float:
    value = float(raw)
    if not 0.0 <= value <= 1.0:
        raise ValueError(raw)
    return value


def _positive(raw: str) -> float:
    value = float(raw)
    if value <= 0:
        raise ValueError(raw)
    return value


def _log_level(raw: str) -> int:
    level = getattr(logging, raw.strip().upper(), None)
    # logging also exposes non-level names such as BASIC_FORMAT
    if not isinstance(level, int):
        raise ValueError(raw)
    return level


def log_level(environ: Optional[Mapping[str, str]] = None) -> int:
    return env_value("ADAS_LOG_LEVEL", logging.INFO, _log_level, environ)


def build_pipeline(environ: Optional[Mapping[str, str]] = None) -> Pipeline:
    """Pipeline configured from defaults plus environment overrides."""
    cooldown = env_value("ADAS_COOLDOWN_S", DEFAULT_COOLDOWN_S, _positive, environ)
    policy = dataclasses.replace(DEFAULT_POLICY, cooldown_s=cooldown)
    return Pipeline(
        tick_rate_hz=env_value("ADAS_TICK_RATE_HZ", DEFAULT_TICK_RATE_HZ, _positive, environ),
        random_seed=env_value("ADAS_SEED", DEFAULT_RANDOM_SEED, int, environ),
        policy=policy,
        channel_drop_rate=env_value("ADAS_CHANNEL_DROP_RATE", DEFAULT_CHANNEL_DROP_RATE,
                                    _drop_rate, environ),
        export_drop_rate=env_value("ADAS_EXPORT_DROP_RATE", DEFAULT_EXPORT_DROP_RATE,
                                   _drop_rate, environ),
    )


def _start_api(pipeline: Pipeline, port: int) -> threading.Thread:
    from api.server import run_server

    thread = threading.Thread(
        target=run_server, args=(pipeline, API_HOST, port), daemon=True, name="TelemetryAPI"
    )
    thread.start()
    return thread


def main():
    setup_logging(log_level())
    log.info("Starting ADAS pipeline...")

    pipeline = build_pipeline()
    record_path = os.environ.get("ADAS_RECORD_CSV")
    recorder = TelemetryRecorder(pipeline.export_bus) if record_path else None

    pipeline.start()
    _start_api(pipeline, env_value("ADAS_API_PORT", API_PORT, int))

    try:
        if env_flag("ADAS_HEADLESS"):
            log.info("Running headless; Ctrl+C to stop")
            while True:
                time.sleep(1.0)
        else:
            from ui import run_dashboard
            run_dashboard(pipeline, width=WINDOW_WIDTH, height=WINDOW_HEIGHT, fps=TARGET_FPS)
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        pipeline.stop()
        if recorder is not None:
            recorder.save_csv(record_path)
            log.info("Telemetry summary: %s", recorder.mode_summary())


if __name__ == "__main__":
    main()
