#!/usr/bin/env python3
"""Mode banner, gauges, scene panel, counters, splash screen and pause banner (mixin)."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pygame

from .helpers import (
    draw_alpha_rect,
    format_counter_lines,
    format_scene_lines,
    gauge_fraction,
    mode_color,
    render_text,
)
from .types import DashboardFrame


class HudRenderer:
    """Mixin that draws every dashboard element."""

    # ------------------------------------------------------------------ #
    #  Mode banner                                                         #
    # ------------------------------------------------------------------ #

    def draw_mode_banner(self, surface: pygame.Surface, frame: DashboardFrame, tick: float) -> None:
        if self.font_title is None or self.font_tiny is None:
            return
        m = self.PANEL_MARGIN
        rect = pygame.Rect(m, m, self.width - 2 * m, self.BANNER_HEIGHT)
        color = mode_color(frame.mode)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, rect, border_radius=6)
        pygame.draw.rect(surface, color, rect, width=2, border_radius=6)

        label = (frame.mode or "waiting").upper()
        render_text(surface, self.font_title, label, (rect.x + 16, rect.centery), color, "midleft")

        cooldown = float(frame.state.get("cooldown_remaining", 0.0))
        scenario = str(frame.state.get("scenario", "-")).upper()
        render_text(surface, self.font_tiny, f"SCENARIO {scenario}",
                    (rect.right - 16, rect.y + 14), self.MUTED_TEXT_COLOR, "topright")
        render_text(surface, self.font_tiny, f"COOLDOWN {cooldown:4.1f} S",
                    (rect.right - 16, rect.y + 32), self.MUTED_TEXT_COLOR, "topright")

        blink_on = int((tick * 1000) // self.HUD_BLINK_MS) % 2 == 0
        if frame.emergency and blink_on:
            render_text(surface, self.font_small, "EMERGENCY RESPONSE ACTIVE",
                        (rect.centerx, rect.centery), self.WARNING_COLOR, "center")

    # ------------------------------------------------------------------ #
    #  Gauges                                                              #
    # ------------------------------------------------------------------ #

    def _draw_gauge(
        self,
        surface: pygame.Surface,
        rect: pygame.Rect,
        fraction: float,
        color,
        marker: Optional[float] = None,
    ) -> None:
        pygame.draw.rect(surface, self.GAUGE_TRACK_COLOR, rect, border_radius=3)
        fill_w = int(rect.w * fraction)
        if fill_w > 0:
            pygame.draw.rect(surface, color, (rect.x, rect.y, fill_w, rect.h), border_radius=3)
        if marker is not None:
            mx = rect.x + int(rect.w * marker)
            pygame.draw.line(surface, self.TARGET_MARK_COLOR,
                             (mx, rect.y - 3), (mx, rect.bottom + 2), 2)

    def draw_dynamics(self, surface: pygame.Surface, frame: DashboardFrame) -> None:
        if self.font_small is None or self.font_tiny is None:
            return
        state = frame.state
        m = self.PANEL_MARGIN
        x = m
        y = m * 2 + self.BANNER_HEIGHT
        w = self.width // 2 - m * 2
        panel = pygame.Rect(x, y, w, 200)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, panel, border_radius=6)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, panel, width=1, border_radius=6)

        speed = float(state.get("current_speed", 0.0))
        target = float(state.get("target_speed", 0.0))
        steering = float(state.get("steering_angle", 0.0))
        brake = float(state.get("brake_force", 0.0))
        bar_w = w - 20
        gy = panel.y + 10

        render_text(surface, self.font_small,
                    f"SPEED {speed:5.1f} {self.SPEED_UNIT}   TARGET {target:5.1f}",
                    (panel.x + 10, gy), self.TEXT_COLOR)
        self._draw_gauge(
            surface, pygame.Rect(panel.x + 10, gy + 20, bar_w, self.GAUGE_HEIGHT),
            gauge_fraction(speed, 0.0, self.SPEED_GAUGE_MAX_KMH),
            self.GAUGE_FILL_COLOR,
            marker=gauge_fraction(target, 0.0, self.SPEED_GAUGE_MAX_KMH),
        )

        gy += 48
        render_text(surface, self.font_small, f"STEERING {steering:+5.1f} DEG",
                    (panel.x + 10, gy), self.TEXT_COLOR)
        limit = self.STEERING_GAUGE_MAX_DEG
        track = pygame.Rect(panel.x + 10, gy + 20, bar_w, self.GAUGE_HEIGHT)
        pygame.draw.rect(surface, self.GAUGE_TRACK_COLOR, track, border_radius=3)
        cx = track.x + int(track.w * gauge_fraction(steering, -limit, limit))
        pygame.draw.line(surface, self.TEXT_COLOR, (track.centerx, track.y), (track.centerx, track.bottom), 1)
        pygame.draw.circle(surface, self.GAUGE_FILL_COLOR, (cx, track.centery), self.GAUGE_HEIGHT // 2)

        gy += 48
        render_text(surface, self.font_small, f"BRAKE FORCE {brake:5.1f} %",
                    (panel.x + 10, gy), self.TEXT_COLOR)
        self._draw_gauge(
            surface, pygame.Rect(panel.x + 10, gy + 20, bar_w, self.GAUGE_HEIGHT),
            gauge_fraction(brake, 0.0, self.BRAKE_GAUGE_MAX),
            self.BRAKE_COLOR,
        )

        gy += 48
        instruction = frame.brake
        if instruction and instruction.get("active"):
            render_text(surface, self.font_tiny,
                        f"AEB ENGAGED  LEVEL {instruction.get('level', 0.0):.2f}",
                        (panel.x + 10, gy), self.WARNING_COLOR)
        else:
            render_text(surface, self.font_tiny, "AEB IDLE", (panel.x + 10, gy), self.MUTED_TEXT_COLOR)

    # ------------------------------------------------------------------ #
    #  Speed history                                                       #
    # ------------------------------------------------------------------ #

    def draw_speed_history(self, surface: pygame.Surface, speeds: Sequence[float]) -> None:
        m = self.PANEL_MARGIN
        rect = pygame.Rect(m, m * 3 + self.BANNER_HEIGHT + 200,
                           self.width - 2 * m, self.height - (m * 4 + self.BANNER_HEIGHT + 200))
        if rect.h < 30:
            return
        pygame.draw.rect(surface, self.HUD_BG_COLOR, rect, border_radius=6)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, rect, width=1, border_radius=6)
        if len(speeds) < 2:
            return
        values = np.asarray(speeds, dtype=float)
        xs = np.linspace(rect.x + 8, rect.right - 8, values.size)
        fractions = np.clip(values / self.SPEED_GAUGE_MAX_KMH, 0.0, 1.0)
        ys = rect.bottom - 8 - fractions * (rect.h - 16)
        pygame.draw.lines(surface, self.GAUGE_FILL_COLOR, False,
                          list(zip(xs.tolist(), ys.tolist())), 2)

    # ------------------------------------------------------------------ #
    #  Scene / counters panel                                              #
    # ------------------------------------------------------------------ #

    def draw_scene_panel(self, surface: pygame.Surface, frame: DashboardFrame) -> None:
        if self.font_small is None or self.font_tiny is None:
            return
        m = self.PANEL_MARGIN
        x = self.width // 2
        y = m * 2 + self.BANNER_HEIGHT
        panel = pygame.Rect(x, y, self.width // 2 - m, 200)
        pygame.draw.rect(surface, self.HUD_BG_COLOR, panel, border_radius=6)
        pygame.draw.rect(surface, self.HUD_BORDER_COLOR, panel, width=1, border_radius=6)

        ty = panel.y + 10
        render_text(surface, self.font_tiny, "SCENE", (panel.x + 10, ty), self.MUTED_TEXT_COLOR)
        ty += 18
        for line in format_scene_lines(frame.scene):
            render_text(surface, self.font_small, line, (panel.x + 10, ty), self.TEXT_COLOR)
            ty += 18

        ty += 8
        render_text(surface, self.font_tiny, "BUS", (panel.x + 10, ty), self.MUTED_TEXT_COLOR)
        ty += 16
        for line in format_counter_lines(frame.metrics):
            render_text(surface, self.font_tiny, line, (panel.x + 10, ty), self.TEXT_COLOR)
            ty += 14

    # ------------------------------------------------------------------ #
    #  Legend                                                              #
    # ------------------------------------------------------------------ #

    def _draw_legend(self, surface: pygame.Surface) -> None:
        if self.font_tiny is None:
            return
        x = self.width - 130
        y = self.height - 16 - len(self.LEGEND_ITEMS) * 18 - 8
        for label, color in self.LEGEND_ITEMS:
            pygame.draw.circle(surface, color, (x + 4, y + 6), 4)
            render_text(surface, self.font_tiny, label, (x + 14, y), (200, 200, 200))
            y += 18

    # ------------------------------------------------------------------ #
    #  Splash screen                                                       #
    # ------------------------------------------------------------------ #

    def _draw_splash(self, surface: pygame.Surface, tick: float) -> None:
        if self.font_title is None or self.font_small is None:
            return
        render_text(surface, self.font_title, "ADAS MODE MONITOR",
                    (self.width // 2, self.height // 2 - 30), (240, 240, 240), "center")
        if int(tick * 2) % 2 == 0:
            render_text(surface, self.font_small, "Press any key to start",
                        (self.width // 2, self.height // 2 + 20), (160, 160, 160), "center")
        lines = [
            "SPACE  Pause/Resume",
            "R      Reset pipeline",
            "L      Toggle legend",
            "ESC    Quit",
        ]
        y = self.height // 2 + 60
        for line in lines:
            if self.font_tiny:
                render_text(surface, self.font_tiny, line, (self.width // 2, y), (100, 100, 100), "center")
                y += 16

    # ------------------------------------------------------------------ #
    #  Pause banner                                                        #
    # ------------------------------------------------------------------ #

    def _draw_pause_banner(self, surface: pygame.Surface) -> None:
        draw_alpha_rect(surface, (0, 0, 0, 100), pygame.Rect(0, 0, self.width, self.height))
        if self.font_title:
            render_text(surface, self.font_title, "PAUSED",
                        (self.width // 2, self.height // 2), (220, 220, 220), "center")
