#!/usr/bin/env python3

from .types import ColorRGB, ColorRGBA, DashboardFrame
from .constants import ViewConstants
from .helpers import format_counter_lines, format_scene_lines, gauge_fraction, mode_color
from .hud import HudRenderer
from .dashboard import DashboardView, run_dashboard

__all__ = [
    "ColorRGB",
    "ColorRGBA",
    "DashboardFrame",
    "ViewConstants",
    "HudRenderer",
    "DashboardView",
    "run_dashboard",
    "format_counter_lines",
    "format_scene_lines",
    "gauge_fraction",
    "mode_color",
]
