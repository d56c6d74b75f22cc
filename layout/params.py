"""Tunable parameters of the force-directed simulation."""

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional


DEFAULT_DAMPING = 0.55
DEFAULT_SPRING_CONSTANT = 0.3
DEFAULT_REPULSION_CONSTANT = 18000.0
DEFAULT_IDEAL_EDGE_LENGTH = 180.0
DEFAULT_TIME_STEP = 0.3
DEFAULT_FRICTION = 0.4


def clamp(value: float, low: float, high: Optional[float] = None) -> float:
    """Clamp value into [low, high]; NaN maps to low."""
    value = float(value)
    if math.isnan(value):
        return low
    if value < low:
        return low
    if high is not None and value > high:
        return high
    return value


@dataclass
class SimulationParameters:
    """
    Simulation tunables.

    Every numeric field is clamped into its valid range both on
    construction and through the ``set_*`` methods; out-of-range input is
    never rejected.

    Ranges:
        damping, friction: [0, 1]
        spring_constant, repulsion_constant, ideal_edge_length, time_step: >= 0
    """
    damping: float = DEFAULT_DAMPING
    spring_constant: float = DEFAULT_SPRING_CONSTANT
    repulsion_constant: float = DEFAULT_REPULSION_CONSTANT
    ideal_edge_length: float = DEFAULT_IDEAL_EDGE_LENGTH
    time_step: float = DEFAULT_TIME_STEP
    friction: float = DEFAULT_FRICTION
    frozen: bool = False

    def __post_init__(self):
        self.set_damping(self.damping)
        self.set_spring_constant(self.spring_constant)
        self.set_repulsion_constant(self.repulsion_constant)
        self.set_ideal_edge_length(self.ideal_edge_length)
        self.set_time_step(self.time_step)
        self.set_friction(self.friction)
        self.frozen = bool(self.frozen)

    def set_damping(self, damping: float) -> None:
        self.damping = clamp(damping, 0.0, 1.0)

    def set_spring_constant(self, spring_constant: float) -> None:
        self.spring_constant = clamp(spring_constant, 0.0)

    def set_repulsion_constant(self, repulsion_constant: float) -> None:
        self.repulsion_constant = clamp(repulsion_constant, 0.0)

    def set_ideal_edge_length(self, length: float) -> None:
        self.ideal_edge_length = clamp(length, 0.0)

    def set_time_step(self, time_step: float) -> None:
        self.time_step = clamp(time_step, 0.0)

    def set_friction(self, friction: float) -> None:
        self.friction = clamp(friction, 0.0, 1.0)

    def set_frozen(self, frozen: bool) -> None:
        self.frozen = bool(frozen)

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimulationParameters":
        """
        Build parameters from a mapping, e.g. a config file section.

        Keys that are not parameter names raise KeyError; missing keys keep
        their defaults.
        """
        unknown = set(data) - set(cls.field_names())
        if unknown:
            raise KeyError(f"unknown simulation parameter(s): {', '.join(sorted(unknown))}")
        return cls(**dict(data))

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
