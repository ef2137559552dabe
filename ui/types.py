"""
ui/types.py
===========
Lightweight data containers used across every UI module.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

ColorRGB = Tuple[int, int, int]
ColorRGBA = Tuple[int, int, int, int]


@dataclass
class DashboardFrame:
    """Everything one frame draws, polled from the pipeline in one go."""
    scene: Optional[Dict[str, Any]] = None
    car_data: Optional[Dict[str, Any]] = None
    state: Dict[str, Any] = field(default_factory=dict)
    brake: Optional[Dict[str, Any]] = None
    metrics: Dict[str, Any] = field(default_factory=dict)
    emergency: bool = False

    @property
    def mode(self) -> Optional[str]:
        if self.car_data is None:
            return None
        return self.car_data.get("driving_mode")
