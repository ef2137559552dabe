"""
ChannelBus: In-memory single-slot channels connecting pipeline components.

Semantics:
    - One slot per topic holding only the most recent write
    - try_read() never blocks and returns None until a first write lands
    - Repeated reads return the same value until the producer writes again
    - Optional write rejection simulation (drop_rate)

Intended usage:
    - Camera writes 'camera-front', Radar writes 'radar-front'
    - SceneFusion reads both and writes 'inferred-scene'
    - ModeArbiter reads 'inferred-scene' and writes 'car-data'
"""

import time
import random
import logging
import threading
from typing import Callable, Dict, Optional

from .message import BusMessage
from .metrics import BusMetrics
from .utils import new_msg_id, maybe_drop

log = logging.getLogger(__name__)


class ChannelBus:
    """
    Latest-value store shared by every pipeline component.

    Attributes:
        drop_rate (float): Probability of rejecting a write.
        metrics (BusMetrics): Write/read counters.
    """

    def __init__(
        self,
        drop_rate: float = 0.0,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize a ChannelBus instance.

        Args:
            drop_rate (float): Chance of rejecting a write (0.0 to 1.0).
            rng (random.Random): Random source used for write rejection.
            clock (Callable[[], float]): Timestamp source for stored samples.
        """
        self._slots: Dict[str, BusMessage] = {}
        self._lock = threading.Lock()
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._closed = False
        self.drop_rate = drop_rate
        self.metrics = BusMetrics()

    def write(self, topic: str, sender: str, payload: object) -> bool:
        """
        Replace the value held by *topic*.

        Args:
            topic (str): Channel name (e.g., 'camera-front').
            sender (str): Name of the writing component.
            payload (object): The record to store.

        Returns:
            bool: True if the value was stored, False if the write was rejected.
        """
        if self._closed:
            log.warning("write_rejected topic=%s sender=%s reason=closed", topic, sender)
            return False
        if maybe_drop(self.drop_rate, self._rng):
            with self._lock:
                self.metrics.dropped += 1
            log.warning("write_rejected topic=%s sender=%s reason=dropped", topic, sender)
            return False

        msg = BusMessage(
            id=new_msg_id(),
            topic=topic,
            sender=sender,
            payload=payload,
            ts=self._clock(),
        )
        with self._lock:
            self._slots[topic] = msg
            self.metrics.published += 1
        log.debug("write topic=%s sender=%s id=%s", topic, sender, msg.id)
        return True

    def try_read(self, topic: str) -> Optional[object]:
        """
        Return the latest payload of *topic*, or None if nothing was written yet.

        Args:
            topic (str): Channel name to read.
        """
        msg = self.latest(topic)
        return msg.payload if msg is not None else None

    def latest(self, topic: str) -> Optional[BusMessage]:
        """
        Return the latest sample (with metadata) of *topic*, or None.

        Args:
            topic (str): Channel name to read.
        """
        with self._lock:
            msg = self._slots.get(topic)
            if msg is None:
                self.metrics.misses += 1
            else:
                self.metrics.reads += 1
        return msg

    def peek(self, topic: str) -> Optional[object]:
        """
        Like try_read() but leaves the read/miss counters untouched.

        Args:
            topic (str): Channel name to inspect.
        """
        with self._lock:
            msg = self._slots.get(topic)
        return msg.payload if msg is not None else None

    def clear(self) -> None:
        """Forget every stored value; subsequent reads see no data."""
        with self._lock:
            self._slots.clear()

    def open(self) -> None:
        """Accept writes again after close(). No-op when already open."""
        self._closed = False

    def close(self) -> None:
        """Reject every further write. Stored values stay readable."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
