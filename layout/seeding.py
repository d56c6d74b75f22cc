"""Initial node placements for the layout engine."""

import math
import random
from typing import Dict, Iterable, Optional

from graph.model import GraphNode
from .vector import ZERO, Vec2


SEED_EXTENT = 100.0


def random_point(rng: random.Random, extent: float = SEED_EXTENT) -> Vec2:
    """Uniform point in the square [-extent, extent]^2."""
    return Vec2(rng.uniform(-extent, extent), rng.uniform(-extent, extent))


def random_layout(
    nodes: Iterable[GraphNode],
    extent: float = SEED_EXTENT,
    rng: Optional[random.Random] = None,
) -> Dict[GraphNode, Vec2]:
    """Place every node at an independent random point."""
    rng = rng or random.Random()
    return {node: random_point(rng, extent) for node in nodes}


def circle_layout(
    nodes: Iterable[GraphNode],
    center: Vec2 = ZERO,
    radius: float = 200.0,
    rng: Optional[random.Random] = None,
) -> Dict[GraphNode, Vec2]:
    """
    Place every node on a circle around center at a random angle.

    Useful as the snapshot passed to ``LayoutEngine.reset_positions`` when
    switching views: nodes start evenly far from the middle and the
    simulation pulls connected ones together.
    """
    rng = rng or random.Random()
    layout: Dict[GraphNode, Vec2] = {}
    for node in nodes:
        angle = rng.uniform(0.0, math.tau)
        layout[node] = center + Vec2(radius * math.cos(angle), radius * math.sin(angle))
    return layout
