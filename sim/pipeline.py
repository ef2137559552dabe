"""
sim/pipeline.py
===============
Background-thread orchestrator wiring every activity to the internal
channels and the export bus.  The UI and the REST API poll the pipeline
for the latest snapshot without blocking.

Public API consumed by :mod:`ui.dashboard` and :mod:`api.server`
-----------------------------------------------------------------
* ``get_scene()``              → ``Optional[dict]``
* ``get_car_data()``           → ``Optional[dict]``
* ``get_vehicle_state()``      → ``dict``
* ``get_telemetry(mode)``      → ``Optional[dict]``
* ``get_brake_instruction()``  → ``Optional[dict]``
* ``get_metrics()``            → ``dict``
* ``is_emergency_active()``    → ``bool``
* ``reset()`` / ``set_paused(bool)`` / ``step_once()``
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Union

from bus.channels import ChannelBus
from bus.telemetry_bus import BusConnectionError, TelemetryBus
from config import (
    DEFAULT_CHANNEL_DROP_RATE,
    DEFAULT_EXPORT_DROP_RATE,
    DEFAULT_TICK_RATE_HZ,
    DISCOVERY_INTERVAL_STEPS,
    DISCOVERY_PAUSE_S,
    DISCOVERY_WAIT_S,
    EXPORT_DEFAULT_DEPTH,
    EXPORT_HISTORY_DEPTH,
    TOPIC_CAR_DATA,
    TOPIC_CONTROL_BRAKES,
    TOPIC_INFERRED_SCENE,
)
from sim.activity import Activity
from sim.emergency_braking import EmergencyBraking
from sim.fusion import SceneFusion
from sim.messages import DrivingMode
from sim.mode_arbiter import ModeArbiter
from sim.mode_policy import ModePolicy
from sim.publishers import (
    AutonomousPublisher,
    CarDataForwarder,
    EmergencyPublisher,
    ManualPublisher,
    ModePublisher,
)
from sim.sensors import Camera, Radar

log = logging.getLogger("pipeline")


class Pipeline:
    """Perception and control pipeline running in a background thread.

    The thread calls :meth:`step_once` at ``tick_rate_hz``; every tick
    steps each activity once in dependency order and caches a snapshot
    for the UI thread.

    Parameters
    ----------
    tick_rate_hz : float
        Pipeline ticks per second.
    random_seed : int or None
        Seed for reproducibility.  Each activity gets its own stream.
    policy : ModePolicy or None
        Arbitration and dynamics constants.
    channel_drop_rate : float
        Probability that an internal channel write is rejected.
    export_drop_rate : float
        Probability that an export-bus delivery fails.
    export_bus : TelemetryBus or None
        Bus to publish on; created (and owned) when omitted.
    clock : callable
        Monotonic seconds for the arbiter cooldown.
    wall_clock : callable
        Wall-clock seconds for telemetry timestamps.
    sleep : callable
        Used by the publishers' discovery waits.
    """

    def __init__(
        self,
        tick_rate_hz: float = DEFAULT_TICK_RATE_HZ,
        random_seed: Optional[int] = None,
        policy: Optional[ModePolicy] = None,
        channel_drop_rate: float = DEFAULT_CHANNEL_DROP_RATE,
        export_drop_rate: float = DEFAULT_EXPORT_DROP_RATE,
        export_bus: Optional[TelemetryBus] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        discovery_wait_s: float = DISCOVERY_WAIT_S,
        discovery_interval: int = DISCOVERY_INTERVAL_STEPS,
        discovery_pause_s: float = DISCOVERY_PAUSE_S,
    ) -> None:
        self._tick_rate_hz = tick_rate_hz
        self._seed = random_seed
        self._policy = policy
        self._channel_drop_rate = channel_drop_rate
        self._clock = clock
        self._wall_clock = wall_clock
        self._sleep = sleep
        self._discovery_wait_s = discovery_wait_s
        self._discovery_interval = discovery_interval
        self._discovery_pause_s = discovery_pause_s

        self.export_bus = export_bus or TelemetryBus(
            drop_rate=export_drop_rate,
            history_depth=EXPORT_HISTORY_DEPTH,
            default_depth=EXPORT_DEFAULT_DEPTH,
            rng=self._rng_for(99),
        )

        self._lock = threading.Lock()
        self._tick_lock = threading.RLock()

        self._build()

        # Cached state, written by the pipeline thread, read by UI / API threads
        self._snapshot: Dict[str, Any] = self._empty_snapshot()

        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._paused = False
        self.tick_count = 0

    # ── Construction ─────────────────────────────────────────────────────────

    def _rng_for(self, offset: int) -> random.Random:
        if self._seed is None:
            return random.Random()
        return random.Random(self._seed * 1000 + offset)

    def _build(self) -> None:
        self.channels = ChannelBus(drop_rate=self._channel_drop_rate, rng=self._rng_for(98))
        publisher_kwargs = dict(
            policy=self._policy,
            clock=self._wall_clock,
            sleep=self._sleep,
            discovery_wait_s=self._discovery_wait_s,
            discovery_interval=self._discovery_interval,
            discovery_pause_s=self._discovery_pause_s,
        )
        self.camera = Camera(0, self.channels, rng=self._rng_for(0))
        self.radar = Radar(1, self.channels, rng=self._rng_for(1))
        self.fusion = SceneFusion(2, self.channels, rng=self._rng_for(2))
        self.arbiter = ModeArbiter(3, self.channels, policy=self._policy,
                                   rng=self._rng_for(3), clock=self._clock)
        self.braking = EmergencyBraking(4, self.channels)
        self.forwarder = CarDataForwarder(5, self.channels, self.export_bus, sleep=self._sleep,
                                          discovery_wait_s=self._discovery_wait_s)
        self.publishers: Dict[DrivingMode, ModePublisher] = {
            DrivingMode.AUTONOMOUS: AutonomousPublisher(6, self.channels, self.export_bus,
                                                        **publisher_kwargs),
            DrivingMode.MANUAL: ManualPublisher(7, self.channels, self.export_bus,
                                                **publisher_kwargs),
            DrivingMode.EMERGENCY: EmergencyPublisher(8, self.channels, self.export_bus,
                                                      **publisher_kwargs),
        }
        self.activities: List[Activity] = [
            self.camera, self.radar, self.fusion, self.arbiter, self.braking,
            self.forwarder, *self.publishers.values(),
        ]
        self._active: List[Activity] = []
        self._started = False

    def _start_activities(self) -> List[Activity]:
        """Open both buses and start every activity; returns the ones that started."""
        self.export_bus.open()
        if self.channels.closed:
            # Restart after stop(): values from the previous run are stale.
            self.channels.clear()
            self.channels.open()
        self._active = []
        for activity in self.activities:
            try:
                activity.start()
            except BusConnectionError:
                log.exception("%r failed to start; it will not be stepped", activity)
                continue
            self._active.append(activity)
        self._started = True
        log.info("Pipeline started %d/%d activities", len(self._active), len(self.activities))
        return list(self._active)

    @staticmethod
    def _wait_for_discovery(activities: List[Activity]) -> None:
        for activity in activities:
            activity.wait_for_discovery()

    def _ensure_started(self) -> None:
        with self._tick_lock:
            if self._started:
                return
            started = self._start_activities()
        self._wait_for_discovery(started)

    def _stop_activities(self) -> None:
        for activity in reversed(self._active):
            try:
                activity.stop()
            except Exception:
                log.exception("%r failed to stop cleanly", activity)
        self._active = []
        self._started = False

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start every activity and spawn the background thread."""
        if self._running:
            return
        self._ensure_started()
        self._running = True
        self._thread = threading.Thread(target=self._loop, daemon=True, name="Pipeline")
        self._thread.start()
        log.info("Pipeline running at %.1f Hz", self._tick_rate_hz)

    def stop(self) -> None:
        """Stop the thread, stop activities in reverse order, close both buses.

        A later :meth:`start` or :meth:`step_once` reopens the buses and
        resumes with empty channels.
        """
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        with self._tick_lock:
            self._stop_activities()
            self.channels.close()
        self.export_bus.close()
        log.info("Pipeline stopped after %d ticks", self.tick_count)

    def reset(self) -> None:
        """Rebuild every activity with the same seed; the export bus is kept."""
        started: List[Activity] = []
        with self._tick_lock:
            was_started = self._started
            self._stop_activities()
            self._build()
            self.tick_count = 0
            if was_started:
                started = self._start_activities()
        with self._lock:
            self._snapshot = self._empty_snapshot()
        self._wait_for_discovery(started)
        log.info("Pipeline reset")

    def set_paused(self, paused: bool) -> None:
        """Pause / unpause the background tick."""
        self._paused = paused
        log.info("Pipeline %s", "paused" if paused else "resumed")

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def running(self) -> bool:
        return self._running

    # ── Background loop ───────────────────────────────────────────────────────

    def _loop(self) -> None:
        dt = 1.0 / self._tick_rate_hz
        while self._running:
            t0 = time.perf_counter()
            if not self._paused:
                try:
                    self.step_once()
                except Exception:
                    log.exception("Pipeline tick error")
            time.sleep(max(0.0, dt - (time.perf_counter() - t0)))

    def step_once(self) -> None:
        """Run one synchronous tick: every active activity steps once."""
        self._ensure_started()
        with self._tick_lock:
            for activity in self._active:
                activity.step()
            self.tick_count += 1
            snapshot = self._collect()
        with self._lock:
            self._snapshot = snapshot

    # ── Snapshot ──────────────────────────────────────────────────────────────

    @staticmethod
    def _empty_snapshot() -> Dict[str, Any]:
        return {
            "scene": None,
            "car_data": None,
            "vehicle_state": {},
            "telemetry": {mode: None for mode in DrivingMode},
            "brake": None,
        }

    def _collect(self) -> Dict[str, Any]:
        scene = self.channels.peek(TOPIC_INFERRED_SCENE)
        car_data = self.channels.peek(TOPIC_CAR_DATA)
        brake = self.channels.peek(TOPIC_CONTROL_BRAKES)
        telemetry = {}
        for mode, publisher in self.publishers.items():
            record = publisher.last_telemetry
            telemetry[mode] = record.as_dict() if record is not None else None
        state = self.arbiter.snapshot()
        state["scenario"] = self.camera.scenario.value
        state["tick"] = self.tick_count
        return {
            "scene": asdict(scene) if scene is not None else None,
            "car_data": car_data.as_dict() if car_data is not None else None,
            "vehicle_state": state,
            "telemetry": telemetry,
            "brake": asdict(brake) if brake is not None else None,
        }

    def get_scene(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            scene = self._snapshot["scene"]
            return dict(scene) if scene is not None else None

    def get_car_data(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            car_data = self._snapshot["car_data"]
            return dict(car_data) if car_data is not None else None

    def get_vehicle_state(self) -> Dict[str, Any]:
        """Mode, speeds, steering, brake force and cooldown remaining."""
        with self._lock:
            return dict(self._snapshot["vehicle_state"])

    def get_telemetry(self, mode: Union[DrivingMode, str]) -> Optional[Dict[str, Any]]:
        """Latest telemetry sample of *mode*, or None if it never ran."""
        mode = DrivingMode(mode)
        with self._lock:
            record = self._snapshot["telemetry"][mode]
            return dict(record) if record is not None else None

    def get_brake_instruction(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            brake = self._snapshot["brake"]
            return dict(brake) if brake is not None else None

    def get_metrics(self) -> Dict[str, Any]:
        """Counters of both buses plus the forwarder and publisher totals."""
        return {
            "channels": self.channels.metrics.report(),
            "export": self.export_bus.metrics.report(),
            "car_data_forwards": self.forwarder.forward_count,
            "telemetry_samples": {
                mode.value: publisher.published_count
                for mode, publisher in self.publishers.items()
            },
            "ticks": self.tick_count,
        }

    def is_emergency_active(self) -> bool:
        with self._lock:
            car_data = self._snapshot["car_data"]
        return car_data is not None and car_data["driving_mode"] == DrivingMode.EMERGENCY.value
