"""
Utility functions for the buses:
    - ID generation
    - wall-clock timestamps
    - fault injection (write drop)
"""

import uuid
import time
import random
import logging
from typing import Callable, Optional

log = logging.getLogger(__name__)

# ---------- ID Helpers ----------
def new_msg_id() -> str:
    """
    Generate a globally unique sample ID.

    Returns:
        str: UUID string for a new sample.
    """
    return str(uuid.uuid4())

# ---------- Timing ----------
def now_ms(clock: Callable[[], float] = time.time) -> int:
    """
    Current wall-clock time as integer Unix milliseconds.

    Args:
        clock (Callable[[], float]): Source of seconds since the epoch.
    """
    return int(clock() * 1000)

# ---------- Fault Helpers ----------
def maybe_drop(drop_rate: float, rng: Optional[random.Random] = None) -> bool:
    """
    Decide whether to randomly drop a sample based on the drop rate.

    Args:
        drop_rate (float): Probability (0.0–1.0) that the sample will be dropped.
        rng (random.Random): Random source; the module-level one when omitted.

    Returns:
        bool: True if the sample should be dropped, False otherwise.
    """
    if drop_rate <= 0.0:
        return False
    source = rng if rng is not None else random
    result = source.random() < drop_rate
    if result:
        log.debug("Sample dropped by utils.maybe_drop")
    return result
