#!/usr/bin/env python3
"""Visual constants shared across all renderers."""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

from .types import ColorRGB


class ViewConstants:
    """Mixin providing every visual / layout constant."""

    BG_COLOR: ColorRGB = (15, 15, 15)
    HUD_BG_COLOR: ColorRGB = (22, 22, 22)
    HUD_BORDER_COLOR: ColorRGB = (42, 42, 42)
    TEXT_COLOR: ColorRGB = (230, 230, 235)
    MUTED_TEXT_COLOR: ColorRGB = (140, 140, 140)
    WARNING_COLOR: ColorRGB = (255, 60, 60)
    GAUGE_TRACK_COLOR: ColorRGB = (40, 40, 40)
    GAUGE_FILL_COLOR: ColorRGB = (86, 168, 255)
    TARGET_MARK_COLOR: ColorRGB = (246, 191, 90)
    BRAKE_COLOR: ColorRGB = (255, 136, 0)

    MODE_COLORS: Dict[str, ColorRGB] = {
        "autonomous": (0, 255, 127),
        "manual": (86, 168, 255),
        "emergency": (255, 60, 60),
    }
    UNKNOWN_MODE_COLOR: ColorRGB = (120, 120, 120)

    LEGEND_ITEMS: Sequence[Tuple[str, ColorRGB]] = (
        ("AUTONOMOUS", (0, 255, 127)),
        ("MANUAL", (86, 168, 255)),
        ("EMERGENCY", (255, 60, 60)),
    )

    HUD_BLINK_MS = 500
    PANEL_MARGIN = 16
    BANNER_HEIGHT = 64
    GAUGE_HEIGHT = 14

    SPEED_GAUGE_MAX_KMH = 120.0
    STEERING_GAUGE_MAX_DEG = 10.0
    BRAKE_GAUGE_MAX = 100.0
    SPEED_UNIT = "km/h"
