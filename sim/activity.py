#!/usr/bin/env python3
"""
sim/activity.py
===============
Base class for every recurring unit of work in the pipeline.

An activity is built once, started once, stepped repeatedly by whoever
owns the cadence (:class:`sim.pipeline.Pipeline` or a test), and stopped
once.  ``step()`` must tolerate missing inputs as a no-op.
"""

from __future__ import annotations


class Activity:
    """Recurring component with a ``start`` / ``step`` / ``stop`` lifecycle.

    Parameters
    ----------
    activity_id : int
        Position of the activity in the pipeline's dependency order.
    name : str
        Sender name used on the buses and in log lines.
    """

    def __init__(self, activity_id: int, name: str) -> None:
        self.activity_id = activity_id
        self.name = name

    def start(self) -> None:
        """Acquire external resources. Default: nothing to acquire."""

    def wait_for_discovery(self) -> None:
        """Block until peers can see this activity. Called after ``start``."""

    def step(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        """Release external resources. Default: nothing to release."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.activity_id}, name={self.name!r})"
