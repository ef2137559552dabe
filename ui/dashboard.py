#!/usr/bin/env python3
"""
Main view class — combines the UI mixins into one runnable Pygame window.

Module layout
─────────────
    ui/
    ├── types.py       – ColorRGB, ColorRGBA, DashboardFrame
    ├── constants.py   – ViewConstants mixin (all class-level constants)
    ├── helpers.py     – mode colours, gauge scaling, text formatting
    ├── hud.py         – HudRenderer mixin (banner, gauges, panels, splash)
    └── dashboard.py   – DashboardView (this file – main loop)
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Optional

import pygame

from .constants import ViewConstants
from .hud import HudRenderer
from .types import DashboardFrame

log = logging.getLogger("dashboard")


class DashboardView(ViewConstants, HudRenderer):
    """Live pipeline monitor powered by Pygame.

    Polls the pipeline snapshot once per frame; never blocks the
    pipeline thread.
    """

    SPEED_HISTORY_LEN = 300

    def __init__(self, pipeline: Any, width: int = 900, height: int = 560, fps: int = 30):
        self.pipeline = pipeline
        self.width = width
        self.height = height
        self.fps = fps

        self.screen: Optional[pygame.Surface] = None
        self.clock: Optional[pygame.time.Clock] = None
        self.font_small: Optional[pygame.font.Font] = None
        self.font_tiny: Optional[pygame.font.Font] = None
        self.font_title: Optional[pygame.font.Font] = None

        self.time_seconds = 0.0
        self.speed_history: Deque[float] = deque(maxlen=self.SPEED_HISTORY_LEN)

        # UI state
        self.paused = False
        self.show_legend = True
        self.show_splash = True

    @staticmethod
    def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
        return pygame.font.SysFont("dejavusansmono,consolas,monospace", size, bold=bold)

    # ------------------------------------------------------------------ #
    #  Polling                                                             #
    # ------------------------------------------------------------------ #
    def poll(self) -> DashboardFrame:
        """Grab one consistent-enough frame from the pipeline getters."""
        frame = DashboardFrame(
            scene=self.pipeline.get_scene(),
            car_data=self.pipeline.get_car_data(),
            state=self.pipeline.get_vehicle_state(),
            brake=self.pipeline.get_brake_instruction(),
            metrics=self.pipeline.get_metrics(),
            emergency=self.pipeline.is_emergency_active(),
        )
        if "current_speed" in frame.state:
            self.speed_history.append(float(frame.state["current_speed"]))
        return frame

    def toggle_pause(self) -> None:
        self.paused = not self.paused
        self.pipeline.set_paused(self.paused)

    def reset(self) -> None:
        self.speed_history.clear()
        self.paused = False
        self.pipeline.reset()
        self.pipeline.set_paused(False)
        log.info("Dashboard requested pipeline reset")

    # ------------------------------------------------------------------ #
    #  Resize                                                              #
    # ------------------------------------------------------------------ #
    def _handle_resize(self, new_w: int, new_h: int) -> None:
        self.width = max(600, new_w)
        self.height = max(400, new_h)
        self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)

    # ------------------------------------------------------------------ #
    #  Main loop                                                           #
    # ------------------------------------------------------------------ #
    def run(self) -> None:
        pygame.init()
        pygame.display.set_caption("ADAS MODE MONITOR")
        self.screen = pygame.display.set_mode((self.width, self.height), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.font_small = self._load_font(13)
        self.font_tiny = self._load_font(11)
        self.font_title = self._load_font(28, bold=True)

        frame = DashboardFrame()
        running = True
        while running:
            delta_time = self.clock.tick(self.fps) / 1000.0
            self.time_seconds += delta_time

            # ---- events ------------------------------------------------- #
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    self._handle_resize(event.w, event.h)
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                        continue
                    if self.show_splash:
                        self.show_splash = False
                        continue
                    if event.key == pygame.K_SPACE:
                        self.toggle_pause()
                    elif event.key == pygame.K_r:
                        self.reset()
                    elif event.key == pygame.K_l:
                        self.show_legend = not self.show_legend

            # ---- splash ------------------------------------------------- #
            if self.show_splash:
                self.screen.fill(self.BG_COLOR)
                self._draw_splash(self.screen, self.time_seconds)
                pygame.display.flip()
                continue

            if not self.paused:
                frame = self.poll()

            # ---- render ------------------------------------------------- #
            self.screen.fill(self.BG_COLOR)
            self.draw_mode_banner(self.screen, frame, self.time_seconds)
            self.draw_dynamics(self.screen, frame)
            self.draw_scene_panel(self.screen, frame)
            self.draw_speed_history(self.screen, list(self.speed_history))
            if self.show_legend:
                self._draw_legend(self.screen)
            if self.paused:
                self._draw_pause_banner(self.screen)

            pygame.display.flip()

        pygame.quit()


# ---------------------------------------------------------------------- #
#  Convenience entry point                                                 #
# ---------------------------------------------------------------------- #
def run_dashboard(pipeline: Any, width: int = 900, height: int = 560, fps: int = 30) -> None:
    view = DashboardView(pipeline=pipeline, width=width, height=height, fps=fps)
    view.run()
