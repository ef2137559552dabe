"""
ui/helpers.py
=============
Pure utility functions shared across UI modules: mode colours, gauge
scaling and text formatting, plus small pygame drawing helpers.

The formatting helpers take plain dicts and never touch a display, so
they are testable headless.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

import pygame

from ui.constants import ViewConstants
from ui.types import ColorRGB


# ── Mode / gauge ─────────────────────────────────────────────────────────────

def mode_color(mode: Optional[str]) -> ColorRGB:
    """Banner colour for a driving-mode value (``None`` → grey)."""
    if mode is None:
        return ViewConstants.UNKNOWN_MODE_COLOR
    return ViewConstants.MODE_COLORS.get(str(mode).lower(), ViewConstants.UNKNOWN_MODE_COLOR)


def gauge_fraction(value: float, low: float, high: float) -> float:
    """Position of *value* on a ``[low, high]`` gauge, clamped to ``[0, 1]``."""
    if high <= low:
        return 0.0
    return max(0.0, min(1.0, (value - low) / (high - low)))


# ── Text ─────────────────────────────────────────────────────────────────────

def format_scene_lines(scene: Optional[Mapping[str, Any]]) -> List[str]:
    """Scene panel rows; a single placeholder row while no scene exists."""
    if not scene:
        return ["NO SCENE DATA"]
    return [
        f"OBSTACLE {scene['distance_obstacle']:>5.1f} M",
        f"PEOPLE   {scene['num_people']:>5d}",
        f"CARS     {scene['num_cars']:>5d}",
        f"LANE L/R {scene['distance_left_lane']:.1f} / {scene['distance_right_lane']:.1f} M",
    ]


def format_counter_lines(metrics: Mapping[str, Any]) -> List[str]:
    """Bus counter rows for the metrics panel."""
    lines: List[str] = []
    channels: Dict[str, int] = metrics.get("channels", {})
    export: Dict[str, int] = metrics.get("export", {})
    if channels:
        lines.append(f"CHANNEL W {channels.get('published', 0)}  REJ {channels.get('dropped', 0)}")
    if export:
        lines.append(f"EXPORT  P {export.get('published', 0)}  DROP {export.get('dropped', 0)}")
    if "car_data_forwards" in metrics:
        lines.append(f"MODE ANNOUNCEMENTS {metrics['car_data_forwards']}")
    return lines


# ── Drawing ──────────────────────────────────────────────────────────────────

def render_text(
    surface: pygame.Surface,
    font: pygame.font.Font,
    text: str,
    pos: Tuple[int, int],
    color: Tuple[int, ...] = (230, 230, 235),
    anchor: str = "topleft",
) -> pygame.Rect:
    """Render text with flexible *anchor* ('topleft', 'center', 'midright' …)."""
    img = font.render(text, True, color)
    rect = img.get_rect(**{anchor: pos})
    surface.blit(img, rect)
    return rect


def draw_alpha_rect(
    target: pygame.Surface,
    color: Tuple[int, ...],
    rect: pygame.Rect,
    border_radius: int = 0,
) -> None:
    """Draw a semi-transparent rectangle (colour tuple with 4 channels)."""
    tmp = pygame.Surface((rect.w, rect.h), pygame.SRCALPHA)
    pygame.draw.rect(tmp, color, (0, 0, rect.w, rect.h), border_radius=border_radius)
    target.blit(tmp, rect.topleft)
