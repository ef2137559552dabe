"""
sim/recorder.py
===============
Records every sample leaving the pipeline on the export bus and turns
them into a pandas DataFrame for offline analysis.

Usage::

    recorder = TelemetryRecorder(pipeline.export_bus)
    ...
    recorder.save_csv("run.csv")
    print(recorder.mode_summary())
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

from bus.message import BusMessage
from bus.telemetry_bus import TelemetryBus
from config import (
    EXPORT_TOPIC_AUTONOMOUS,
    EXPORT_TOPIC_CAR_DATA,
    EXPORT_TOPIC_EMERGENCY,
    EXPORT_TOPIC_MANUAL,
)

log = logging.getLogger("recorder")

ALL_EXPORT_TOPICS = (
    EXPORT_TOPIC_CAR_DATA,
    EXPORT_TOPIC_AUTONOMOUS,
    EXPORT_TOPIC_MANUAL,
    EXPORT_TOPIC_EMERGENCY,
)

_BASE_COLUMNS = ["topic", "sender", "ts"]


class TelemetryRecorder:
    """Collects export-bus samples as flat rows.

    Parameters
    ----------
    bus : TelemetryBus
        Bus to subscribe to.  Retained history is replayed on subscribe,
        so a recorder created late still sees the last samples.
    topics : iterable of str
        Export topics to record.
    """

    def __init__(self, bus: TelemetryBus, topics: Iterable[str] = ALL_EXPORT_TOPICS) -> None:
        self._bus = bus
        self._topics = list(topics)
        self._rows: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        for topic in self._topics:
            bus.subscribe(topic, self._on_sample)

    def _on_sample(self, msg: BusMessage) -> None:
        row = {"topic": msg.topic, "sender": msg.sender, "ts": msg.ts}
        row.update(msg.payload)
        with self._lock:
            self._rows.append(row)

    def detach(self) -> None:
        """Stop recording; rows collected so far are kept."""
        for topic in self._topics:
            self._bus.unsubscribe(topic, self._on_sample)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def to_frame(self) -> pd.DataFrame:
        """One row per sample; payload fields become columns."""
        with self._lock:
            rows = list(self._rows)
        if not rows:
            return pd.DataFrame(columns=_BASE_COLUMNS)
        df = pd.DataFrame(rows)
        extra = [c for c in df.columns if c not in _BASE_COLUMNS]
        return df[_BASE_COLUMNS + extra]

    def save_csv(self, path: str) -> int:
        """Write the recorded samples to *path*; returns the row count."""
        df = self.to_frame()
        df.to_csv(path, index=False)
        log.info("Recorded %d samples to %s", len(df), path)
        return len(df)

    def mode_summary(self) -> Dict[str, Dict[str, Any]]:
        """CarData announcements per mode and mean vehicle speed per topic.

        Returns
        -------
        dict
            ``{"announcements": {mode: count}, "mean_speed": {topic: km/h}}``
        """
        df = self.to_frame()
        announcements: Dict[str, int] = {}
        mean_speed: Dict[str, float] = {}
        if df.empty:
            return {"announcements": announcements, "mean_speed": mean_speed}

        if "driving_mode" in df.columns:
            car_data = df[df["topic"] == EXPORT_TOPIC_CAR_DATA]
            counts = car_data["driving_mode"].value_counts()
            announcements = {str(mode): int(n) for mode, n in counts.items()}

        if "vehicle_speed" in df.columns:
            for topic, group in df.groupby("topic"):
                speeds = group["vehicle_speed"].to_numpy(dtype=float)
                speeds = speeds[~np.isnan(speeds)]
                if speeds.size:
                    mean_speed[str(topic)] = float(np.round(speeds.mean(), 3))

        return {"announcements": announcements, "mean_speed": mean_speed}
