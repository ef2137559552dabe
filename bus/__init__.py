"""
bus — In-memory messaging infrastructure
========================================

Provides the two transports the pipeline runs on: single-slot
latest-value channels between components, and an export bus with
retained history for external telemetry consumers.

Modules
-------
message
    :class:`BusMessage` dataclass.
channels
    :class:`ChannelBus` write / try-read latest-value store.
telemetry_bus
    :class:`TelemetryBus` open / attach / publish / subscribe transport.
metrics
    :class:`BusMetrics` counter snapshot.
utils
    ID generation, timestamps, fault injection.
"""

from .message import BusMessage
from .channels import ChannelBus
from .telemetry_bus import BusConnectionError, Participant, TelemetryBus
from .metrics import BusMetrics
from .utils   import new_msg_id, now_ms, maybe_drop

__all__ = [
    "BusMessage",
    "ChannelBus",
    "TelemetryBus",
    "Participant",
    "BusConnectionError",
    "BusMetrics",
    "new_msg_id",
    "now_ms",
    "maybe_drop",
]
