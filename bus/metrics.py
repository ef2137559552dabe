"""
BusMetrics: Tracks simple statistics for channel and export-bus traffic.
"""


class BusMetrics:
    """
    Tracks counters for writes, rejections, reads and deliveries.

    Attributes:
        published (int): Samples accepted by the bus.
        dropped (int): Samples whose delivery failed (simulated fault or closed bus).
        delivered (int): Samples handed to at least one subscriber callback.
        reads (int): Successful try-reads.
        misses (int): Try-reads that found no value yet.
    """

    def __init__(self):
        """Initialize all counters to zero."""
        self.published = 0
        self.dropped = 0
        self.delivered = 0
        self.reads = 0
        self.misses = 0

    def report(self) -> dict:
        """
        Return a snapshot of current metrics.

        Returns:
            dict: Dictionary containing every counter by name.
        """
        return {
            "published": self.published,
            "dropped": self.dropped,
            "delivered": self.delivered,
            "reads": self.reads,
            "misses": self.misses,
        }
