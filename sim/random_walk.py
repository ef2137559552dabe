#!/usr/bin/env python3
"""
sim/random_walk.py
==================
Bounded stochastic perturbation helpers used by the sensor simulators
and the mode arbiter.

Every helper takes the random source explicitly so callers can inject a
seeded :class:`random.Random` and replay a run exactly.
"""

from __future__ import annotations

import random


def clamp(value: float, low: float, high: float) -> float:
    """Limit *value* to the closed interval ``[low, high]``."""
    return max(low, min(high, value))


def walk_float(
    rng: random.Random,
    previous: float,
    change_prob: float,
    max_delta: float,
) -> float:
    """Random walk step on a real value.

    With probability *change_prob* add a perturbation drawn uniformly from
    ``[-max_delta, max_delta]``, otherwise return *previous* unchanged.
    """
    if rng.random() < change_prob:
        return previous + rng.uniform(-max_delta, max_delta)
    return previous


def walk_int(
    rng: random.Random,
    previous: int,
    change_prob: float,
    max_delta: int,
) -> int:
    """Random walk step on a non-negative count.

    The perturbation is an integer drawn from ``[-max_delta, max_delta]``
    inclusive; the result never drops below zero.
    """
    if rng.random() < change_prob:
        return max(0, previous + rng.randint(-max_delta, max_delta))
    return previous


def bounded_walk_float(
    rng: random.Random,
    previous: float,
    change_prob: float,
    max_delta: float,
    low: float,
    high: float,
) -> float:
    """:func:`walk_float` followed by :func:`clamp`."""
    return clamp(walk_float(rng, previous, change_prob, max_delta), low, high)


def bounded_walk_int(
    rng: random.Random,
    previous: int,
    change_prob: float,
    max_delta: int,
    low: int,
    high: int,
) -> int:
    """:func:`walk_int` followed by :func:`clamp`."""
    return int(clamp(walk_int(rng, previous, change_prob, max_delta), low, high))


def tenths(rng: random.Random, low: int, high: int) -> float:
    """Uniform draw on the 0.1 grid between ``low/10`` and ``high/10`` inclusive."""
    return rng.randint(low, high) / 10.0
