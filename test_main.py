#!/usr/bin/env python3
"""
test_main.py
============
Environment overrides applied by :mod:`main`.
"""

import logging
import unittest

from main import build_pipeline, env_flag, env_value, log_level


class EnvOverrideTests(unittest.TestCase):
    def test_missing_or_empty_uses_default(self) -> None:
        self.assertEqual(env_value("ADAS_TICK_RATE_HZ", 10.0, float, {}), 10.0)
        self.assertEqual(env_value("ADAS_TICK_RATE_HZ", 10.0, float, {"ADAS_TICK_RATE_HZ": ""}), 10.0)

    def test_valid_value_is_parsed(self) -> None:
        self.assertEqual(env_value("ADAS_SEED", None, int, {"ADAS_SEED": "42"}), 42)

    def test_invalid_value_warns_and_falls_back(self) -> None:
        with self.assertLogs("main", level="WARNING"):
            self.assertEqual(env_value("ADAS_SEED", None, int, {"ADAS_SEED": "abc"}), None)

    def test_flag(self) -> None:
        self.assertTrue(env_flag("ADAS_HEADLESS", {"ADAS_HEADLESS": "1"}))
        self.assertTrue(env_flag("ADAS_HEADLESS", {"ADAS_HEADLESS": "Yes"}))
        self.assertFalse(env_flag("ADAS_HEADLESS", {"ADAS_HEADLESS": "0"}))
        self.assertFalse(env_flag("ADAS_HEADLESS", {}))

    def test_log_level_by_name(self) -> None:
        self.assertEqual(log_level({}), logging.INFO)
        self.assertEqual(log_level({"ADAS_LOG_LEVEL": "debug"}), logging.DEBUG)

    def test_log_level_rejects_non_level_names(self) -> None:
        for raw in ("BASIC_FORMAT", "LOUD"):
            with self.assertLogs("main", level="WARNING"):
                self.assertEqual(log_level({"ADAS_LOG_LEVEL": raw}), logging.INFO)

    def test_build_pipeline_applies_overrides(self) -> None:
        pipeline = build_pipeline({
            "ADAS_COOLDOWN_S": "2.5",
            "ADAS_SEED": "9",
            "ADAS_EXPORT_DROP_RATE": "0.25",
        })
        self.assertEqual(pipeline.arbiter.policy.cooldown_s, 2.5)
        self.assertEqual(pipeline.export_bus.drop_rate, 0.25)

    def test_out_of_range_drop_rate_is_ignored(self) -> None:
        with self.assertLogs("main", level="WARNING"):
            pipeline = build_pipeline({"ADAS_CHANNEL_DROP_RATE": "1.5"})
        self.assertEqual(pipeline.channels.drop_rate, 0.0)


if __name__ == "__main__":
    unittest.main()
