"""Force-directed (spring-electrical) layout engine."""

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor
from itertools import combinations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from graph.model import EdgeValue, GraphNode
from .params import SimulationParameters
from .seeding import SEED_EXTENT, random_point
from .vector import ZERO, Vec2


logger = logging.getLogger(__name__)

MIN_SPRING_DISTANCE = 0.1
MIN_REPULSION_DISTANCE_SQ = 10.0
DRAG_TIME_STEP_FACTOR = 0.4

ForceMap = Dict[GraphNode, List[float]]


class LayoutEngine:
    """
    Positions the nodes of the active graph view, one tick per frame.

    Each tick computes spring forces along edges and inverse-square
    repulsion between every pair of nodes, then integrates velocity and
    position for every node with unit mass. The two force phases only read
    positions and write into their own maps, so they can run on separate
    worker threads; integration runs afterwards on the calling thread.

    Positions and velocities are keyed by node value, so they survive graph
    rebuilds for as long as the node stays in the active view. Nodes seen
    for the first time are seeded at a random point.
    """

    def __init__(
        self,
        params: Optional[SimulationParameters] = None,
        rng: Optional[random.Random] = None,
        parallel: bool = True,
        seed_extent: float = SEED_EXTENT,
    ):
        self.params = params if params is not None else SimulationParameters()
        self.positions: Dict[GraphNode, Vec2] = {}
        self.velocities: Dict[GraphNode, Vec2] = {}
        self.initial_layout: Dict[GraphNode, Vec2] = {}
        self.seed_extent = seed_extent
        self._rng = rng if rng is not None else random.Random()
        self._parallel = parallel
        self._executor: Optional[ThreadPoolExecutor] = None
        self._dragged: Optional[GraphNode] = None

    # -- node bookkeeping ---------------------------------------------------

    def sync(self, nodes: Iterable[GraphNode]) -> None:
        """
        Track exactly the given nodes.

        Nodes no longer present are forgotten, along with their initial
        position; new ones get a random position and zero velocity.
        """
        active = list(dict.fromkeys(nodes))
        keep = set(active)
        for node in [n for n in self.positions if n not in keep]:
            del self.positions[node]
            self.velocities.pop(node, None)
        for node in [n for n in self.initial_layout if n not in keep]:
            del self.initial_layout[node]
        if self._dragged is not None and self._dragged not in keep:
            self._dragged = None
        for node in active:
            self._ensure(node)

    def _ensure(self, node: GraphNode) -> Vec2:
        pos = self.positions.get(node)
        if pos is None:
            pos = random_point(self._rng, self.seed_extent)
            self.positions[node] = pos
            self.velocities[node] = ZERO
            self.initial_layout[node] = pos
        return pos

    def position(self, node: GraphNode) -> Vec2:
        """Current position of node, seeding one if the node is new."""
        return self._ensure(node)

    def velocity(self, node: GraphNode) -> Vec2:
        self._ensure(node)
        return self.velocities[node]

    def set_position(self, node: GraphNode, pos: Vec2) -> None:
        """Move node to pos and stop it."""
        self.positions[node] = pos
        self.velocities[node] = ZERO

    def reset_positions(self, initial_layout: Mapping[GraphNode, Vec2]) -> None:
        """
        Replace every position with the given snapshot and zero all velocities.

        Nodes placed here for the first time also take this position as
        their initial one.
        """
        self.positions = dict(initial_layout)
        self.velocities = {node: ZERO for node in self.positions}
        for node, pos in self.positions.items():
            self.initial_layout.setdefault(node, pos)
        self._dragged = None

    def reset_layout(self) -> None:
        """Put every node back where it was first placed."""
        self.reset_positions(self.initial_layout)

    # -- dragging -------------------------------------------------------------

    @property
    def dragging(self) -> bool:
        return self._dragged is not None

    @property
    def dragged_node(self) -> Optional[GraphNode]:
        return self._dragged

    def begin_drag(self, node: GraphNode) -> None:
        self._ensure(node)
        self._dragged = node
        self.velocities[node] = ZERO

    def drag(self, node: GraphNode, delta: Vec2) -> None:
        """Move a node by a pointer delta. Starts a drag if none is active."""
        if self._dragged != node:
            self.begin_drag(node)
        self.set_position(node, self.positions[node] + delta)

    def end_drag(self) -> None:
        self._dragged = None

    @property
    def effective_time_step(self) -> float:
        """Time step used for the next tick; reduced while a node is dragged."""
        if self.dragging:
            return self.params.time_step * DRAG_TIME_STEP_FACTOR
        return self.params.time_step

    # -- simulation ---------------------------------------------------------

    def step(self, nodes: Iterable[GraphNode], edges: Iterable[EdgeValue]) -> None:
        """
        Advance the simulation by one tick for the given view.

        Args:
            nodes: Node values of the active view.
            edges: (source, target) value pairs of the active view. Edges
                   touching a node outside ``nodes`` are ignored.
        """
        self.sync(nodes)
        if self.params.frozen:
            return

        active_edges = [
            (source, target) for source, target in edges
            if source in self.positions and target in self.positions
        ]
        spring, repulsion = self._compute_forces(active_edges)
        self._integrate(spring, repulsion)

    def tick(self, nodes: Iterable[GraphNode], edges: Iterable[EdgeValue], count: int = 1) -> None:
        """Run several ticks over the same view."""
        nodes = list(nodes)
        edges = list(edges)
        for _ in range(count):
            self.step(nodes, edges)

    def _compute_forces(self, edges: Sequence[EdgeValue]) -> Tuple[ForceMap, ForceMap]:
        nodes = list(self.positions)
        if not self._parallel or len(nodes) < 2:
            return self.spring_forces(edges), self.repulsion_forces(nodes)

        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="nexusmap-layout")
        spring = self._executor.submit(self.spring_forces, edges)
        repulsion = self._executor.submit(self.repulsion_forces, nodes)
        return spring.result(), repulsion.result()

    def spring_forces(self, edges: Sequence[EdgeValue]) -> ForceMap:
        """
        Hooke's law along every edge.

        The force is added to the source and subtracted from the target, so
        the pair is pulled together beyond the ideal length and pushed apart
        below it. Duplicate edges act as independent springs.
        """
        k = self.params.spring_constant
        rest = self.params.ideal_edge_length
        forces: ForceMap = {}
        for source, target in edges:
            p1 = self.positions[source]
            p2 = self.positions[target]
            dx = p2.x - p1.x
            dy = p2.y - p1.y
            distance = max(math.hypot(dx, dy), MIN_SPRING_DISTANCE)
            scale = k * (distance - rest) / distance
            fx, fy = dx * scale, dy * scale

            acc = forces.setdefault(source, [0.0, 0.0])
            acc[0] += fx
            acc[1] += fy
            acc = forces.setdefault(target, [0.0, 0.0])
            acc[0] -= fx
            acc[1] -= fy
        return forces

    def repulsion_forces(self, nodes: Sequence[GraphNode]) -> ForceMap:
        """
        Inverse-square repulsion between every unordered pair of nodes.

        The squared distance is clamped to MIN_REPULSION_DISTANCE_SQ before
        dividing. Nodes sitting exactly on top of each other are pushed
        apart along the x axis.
        """
        strength = self.params.repulsion_constant
        forces: ForceMap = {node: [0.0, 0.0] for node in nodes}
        placed = [(node, self.positions[node]) for node in nodes]
        for (n1, p1), (n2, p2) in combinations(placed, 2):
            dx = p2.x - p1.x
            dy = p2.y - p1.y
            distance_sq = dx * dx + dy * dy
            if distance_sq == 0.0:
                dx, dy, distance = 1.0, 0.0, 1.0
            else:
                distance = max(math.sqrt(distance_sq), MIN_SPRING_DISTANCE)
            scale = strength / max(distance_sq, MIN_REPULSION_DISTANCE_SQ) / distance
            fx, fy = dx * scale, dy * scale

            acc = forces[n1]
            acc[0] -= fx
            acc[1] -= fy
            acc = forces[n2]
            acc[0] += fx
            acc[1] += fy
        return forces

    def _integrate(self, spring: ForceMap, repulsion: ForceMap) -> None:
        dt = self.effective_time_step
        decay = self.params.damping * (1.0 - self.params.friction)
        for node, pos in list(self.positions.items()):
            if node == self._dragged:
                continue
            fx = fy = 0.0
            for forces in (spring, repulsion):
                acc = forces.get(node)
                if acc is not None:
                    fx += acc[0]
                    fy += acc[1]

            vel = self.velocities.get(node, ZERO)
            vx = (vel.x + fx * dt) * decay
            vy = (vel.y + fy * dt) * decay
            self.velocities[node] = Vec2(vx, vy)
            self.positions[node] = Vec2(pos.x + vx * dt, pos.y + vy * dt)

    # -- lifecycle ------------------------------------------------------------

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "LayoutEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self.positions)

    def __repr__(self) -> str:
        state = "frozen" if self.params.frozen else "running"
        return f"LayoutEngine(nodes={len(self.positions)}, {state}, dragging={self.dragging})"
