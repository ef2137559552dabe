"""
TelemetryBus: In-memory export bus for external telemetry consumers.

Supports:
    - Explicit open / close lifecycle and per-component participants
    - Transient-local retention with keep-last history per topic
    - Late-joining subscribers receive the retained history on subscribe
    - Delivery failure simulation (drop_rate)

Intended usage:
    - CarDataForwarder publishes mode changes to 'CarData'
    - Mode publishers stream 'AutonomousCarData', 'ManualCarData',
      'EmergencyModeData'
    - Dashboards, the REST API and the recorder subscribe
"""

import time
import random
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, List, Mapping, Optional

from .message import BusMessage
from .metrics import BusMetrics
from .utils import new_msg_id, maybe_drop

log = logging.getLogger(__name__)

Subscriber = Callable[[BusMessage], None]


class BusConnectionError(RuntimeError):
    """Raised when a component cannot attach to the export bus."""


@dataclass(frozen=True)
class Participant:
    """Handle returned by :meth:`TelemetryBus.attach`."""
    id: str
    name: str


class TelemetryBus:
    """
    Transport for mode telemetry leaving the pipeline.

    Attributes:
        drop_rate (float): Probability that a publish fails to reach subscribers.
        default_depth (int): Keep-last history depth for topics without an override.
        max_participants (int or None): Upper bound on attached participants.
        metrics (BusMetrics): Publish/delivery counters.
    """

    def __init__(
        self,
        drop_rate: float = 0.0,
        history_depth: Optional[Mapping[str, int]] = None,
        default_depth: int = 5,
        max_participants: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize a TelemetryBus instance. The bus starts closed.

        Args:
            drop_rate (float): Chance of a failed publish (0.0 to 1.0).
            history_depth (Mapping[str, int]): Per-topic keep-last depth overrides.
            default_depth (int): Depth for every other topic.
            max_participants (int): Optional attach limit.
            rng (random.Random): Random source for failure simulation.
            clock (Callable[[], float]): Timestamp source for samples.
        """
        self._history: Dict[str, Deque[BusMessage]] = {}
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._participants: Dict[str, Participant] = {}
        self._depths: Dict[str, int] = dict(history_depth or {})
        self._lock = threading.Lock()
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock
        self._open = False
        self.drop_rate = drop_rate
        self.default_depth = default_depth
        self.max_participants = max_participants
        self.metrics = BusMetrics()

    # ── Lifecycle ─────────────────────────────────────────────────────────

    def open(self) -> None:
        """Open the bus for participants. No-op when already open."""
        if self._open:
            return
        self._open = True
        log.info("telemetry_bus opened")

    def close(self) -> None:
        """Close the bus, detaching every participant. Idempotent."""
        if not self._open:
            return
        self._open = False
        with self._lock:
            self._participants.clear()
        log.info("telemetry_bus closed")

    @property
    def is_open(self) -> bool:
        return self._open

    def attach(self, name: str) -> Participant:
        """
        Register a participant with the bus.

        Args:
            name (str): Name of the attaching component.

        Returns:
            Participant: Handle to pass back to :meth:`detach`.

        Raises:
            BusConnectionError: If the bus is closed or full.
        """
        if not self._open:
            raise BusConnectionError(f"cannot attach {name!r}: telemetry bus is closed")
        with self._lock:
            if (
                self.max_participants is not None
                and len(self._participants) >= self.max_participants
            ):
                raise BusConnectionError(
                    f"cannot attach {name!r}: participant limit {self.max_participants} reached"
                )
            participant = Participant(id=new_msg_id(), name=name)
            self._participants[participant.id] = participant
        log.info("participant_attached name=%s id=%s", name, participant.id)
        return participant

    def detach(self, participant: Participant) -> None:
        """Release a participant. Unknown handles are ignored."""
        with self._lock:
            removed = self._participants.pop(participant.id, None)
        if removed is not None:
            log.info("participant_detached name=%s", participant.name)

    def participants(self) -> List[str]:
        """Names of the currently attached participants."""
        with self._lock:
            return [p.name for p in self._participants.values()]

    # ── Publish / subscribe ───────────────────────────────────────────────

    def publish(self, topic: str, sender: str, payload: dict) -> bool:
        """
        Publish a sample on *topic*.

        The sample is retained for late joiners whenever the bus is open,
        even if live delivery fails.

        Args:
            topic (str): Export topic name (e.g., 'CarData').
            sender (str): Name of the publishing component.
            payload (dict): Sample contents.

        Returns:
            bool: True if the sample was delivered live, False otherwise.
        """
        if not self._open:
            with self._lock:
                self.metrics.dropped += 1
            log.warning("publish_failed topic=%s sender=%s reason=closed", topic, sender)
            return False

        msg = BusMessage(
            id=new_msg_id(),
            topic=topic,
            sender=sender,
            payload=payload,
            ts=self._clock(),
        )
        with self._lock:
            history = self._history.get(topic)
            if history is None:
                history = deque(maxlen=self._depths.get(topic, self.default_depth))
                self._history[topic] = history
            history.append(msg)
            self.metrics.published += 1
            subscribers = list(self._subscribers.get(topic, []))

        if maybe_drop(self.drop_rate, self._rng):
            with self._lock:
                self.metrics.dropped += 1
            log.warning("publish_failed topic=%s sender=%s reason=dropped", topic, sender)
            return False

        for callback in subscribers:
            self._deliver(callback, msg)
        if subscribers:
            with self._lock:
                self.metrics.delivered += 1
        log.debug("publish topic=%s sender=%s id=%s subscribers=%d",
                  topic, sender, msg.id, len(subscribers))
        return True

    def subscribe(self, topic: str, callback: Subscriber) -> None:
        """
        Register *callback* for *topic* and replay the retained history to it.

        Args:
            topic (str): Export topic name.
            callback (Callable[[BusMessage], None]): Receives each sample.
        """
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)
            retained = list(self._history.get(topic, []))
        for msg in retained:
            self._deliver(callback, msg)
        log.info("subscribed topic=%s retained=%d", topic, len(retained))

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        """Remove a previously registered callback."""
        with self._lock:
            callbacks = self._subscribers.get(topic, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def matched_count(self, topic: str) -> int:
        """Number of subscribers currently registered on *topic*."""
        with self._lock:
            return len(self._subscribers.get(topic, []))

    def history(self, topic: str) -> List[BusMessage]:
        """Retained samples of *topic*, oldest first."""
        with self._lock:
            return list(self._history.get(topic, []))

    def last_value(self, topic: str) -> Optional[dict]:
        """Payload of the newest retained sample of *topic*, or None."""
        with self._lock:
            history = self._history.get(topic)
            return history[-1].payload if history else None

    def _deliver(self, callback: Subscriber, msg: BusMessage) -> None:
        try:
            callback(msg)
        except Exception:
            log.exception("subscriber_error topic=%s id=%s", msg.topic, msg.id)
