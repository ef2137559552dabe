#!/usr/bin/env python3
"""
Tests for the single-slot latest-value channels.
"""

from __future__ import annotations

import random
import unittest

from bus.channels import ChannelBus


class ChannelBusTests(unittest.TestCase):
    def test_read_before_any_write_is_none(self) -> None:
        bus = ChannelBus()
        self.assertIsNone(bus.try_read("camera-front"))
        self.assertEqual(bus.metrics.misses, 1)

    def test_latest_write_replaces_previous_value(self) -> None:
        bus = ChannelBus()
        self.assertTrue(bus.write("car-data", "arbiter", "first"))
        self.assertTrue(bus.write("car-data", "arbiter", "second"))
        self.assertEqual(bus.try_read("car-data"), "second")

    def test_repeated_reads_return_same_value(self) -> None:
        bus = ChannelBus()
        bus.write("radar-front", "radar", 12.5)
        self.assertEqual(bus.try_read("radar-front"), 12.5)
        self.assertEqual(bus.try_read("radar-front"), 12.5)
        self.assertEqual(bus.metrics.reads, 2)

    def test_latest_carries_sender_and_timestamp(self) -> None:
        bus = ChannelBus(clock=lambda: 42.0)
        bus.write("inferred-scene", "fusion", {"d": 3})
        msg = bus.latest("inferred-scene")
        self.assertIsNotNone(msg)
        self.assertEqual(msg.sender, "fusion")
        self.assertEqual(msg.ts, 42.0)
        self.assertEqual(msg.topic, "inferred-scene")

    def test_topics_are_independent(self) -> None:
        bus = ChannelBus()
        bus.write("camera-front", "camera", 1)
        self.assertIsNone(bus.try_read("radar-front"))
        self.assertEqual(bus.try_read("camera-front"), 1)

    def test_drop_rate_one_rejects_every_write(self) -> None:
        bus = ChannelBus(drop_rate=1.0, rng=random.Random(3))
        with self.assertLogs("bus.channels", level="WARNING"):
            self.assertFalse(bus.write("car-data", "arbiter", "x"))
        self.assertIsNone(bus.try_read("car-data"))
        self.assertEqual(bus.metrics.dropped, 1)
        self.assertEqual(bus.metrics.published, 0)

    def test_closed_bus_rejects_writes_but_keeps_values(self) -> None:
        bus = ChannelBus()
        bus.write("car-data", "arbiter", "kept")
        bus.close()
        self.assertTrue(bus.closed)
        with self.assertLogs("bus.channels", level="WARNING"):
            self.assertFalse(bus.write("car-data", "arbiter", "new"))
        self.assertEqual(bus.try_read("car-data"), "kept")

    def test_clear_forgets_values(self) -> None:
        bus = ChannelBus()
        bus.write("car-data", "arbiter", "x")
        bus.clear()
        self.assertIsNone(bus.try_read("car-data"))

    def test_reopened_bus_accepts_writes(self) -> None:
        bus = ChannelBus()
        bus.close()
        bus.open()
        self.assertFalse(bus.closed)
        self.assertTrue(bus.write("car-data", "arbiter", "fresh"))
        self.assertEqual(bus.try_read("car-data"), "fresh")

    def test_peek_does_not_count_reads(self) -> None:
        bus = ChannelBus()
        self.assertIsNone(bus.peek("car-data"))
        bus.write("car-data", "arbiter", "x")
        self.assertEqual(bus.peek("car-data"), "x")
        self.assertEqual(bus.metrics.reads, 0)
        self.assertEqual(bus.metrics.misses, 0)


if __name__ == "__main__":
    unittest.main()
