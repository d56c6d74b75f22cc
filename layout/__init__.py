"""Force-directed layout for graph views."""

from .vector import Vec2, ZERO
from .params import SimulationParameters, clamp
from .seeding import random_layout, circle_layout, random_point
from .engine import LayoutEngine, DRAG_TIME_STEP_FACTOR

__all__ = [
    "Vec2",
    "ZERO",
    "SimulationParameters",
    "clamp",
    "random_layout",
    "circle_layout",
    "random_point",
    "LayoutEngine",
    "DRAG_TIME_STEP_FACTOR",
]
