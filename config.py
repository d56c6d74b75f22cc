"""
Settings loaded from a YAML file.

Example ``nexusmap.yaml``::

    scan:
      show_hidden: false
    view:
      kind: tags          # or "reference"
      show_images: true
      tag_filter: ""
    layout:
      ticks: 300
      seed: 7
      damping: 0.55
      spring_constant: 0.3
      repulsion_constant: 18000
      ideal_edge_length: 180
      time_step: 0.3
      friction: 0.4
      frozen: false

Every section and key is optional. Simulation values are clamped into their
valid ranges like any other parameter update.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from graph.model import GraphView
from layout.params import SimulationParameters


class ConfigError(Exception):
    """Raised when a settings file cannot be read or is malformed."""


@dataclass
class Settings:
    show_hidden: bool = False
    view: GraphView = GraphView.REFERENCE
    show_images: bool = True
    tag_filter: str = ""
    ticks: int = 0
    seed: Optional[int] = None
    simulation: SimulationParameters = field(default_factory=SimulationParameters)


_SECTIONS = {"scan", "view", "layout"}
_SCAN_KEYS = {"show_hidden": bool}
_VIEW_KEYS = {"kind": str, "show_images": bool, "tag_filter": str}
_LAYOUT_KEYS = {"ticks": int, "seed": int}
_NULLABLE_KEYS = {"layout.seed"}


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Settings file. None returns the defaults.

    Returns:
        Settings instance.

    Raises:
        ConfigError: If the file cannot be read or contains unknown keys or
                     values of the wrong type.
    """
    if path is None:
        return Settings()

    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    return settings_from_mapping(data, source=str(path))


def settings_from_mapping(data: Any, source: str = "<settings>") -> Settings:
    """Validate a parsed settings document and build Settings from it."""
    if not isinstance(data, Mapping):
        raise ConfigError(f"{source}: top level must be a mapping")
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ConfigError(f"{source}: unknown section(s): {', '.join(sorted(unknown))}")

    settings = Settings()

    scan = _section(data, "scan", source)
    _check_keys(scan, _SCAN_KEYS, "scan", source)
    if "show_hidden" in scan:
        settings.show_hidden = scan["show_hidden"]

    view = _section(data, "view", source)
    _check_keys(view, _VIEW_KEYS, "view", source)
    if "kind" in view:
        settings.view = parse_view(view["kind"], source)
    if "show_images" in view:
        settings.show_images = view["show_images"]
    if "tag_filter" in view:
        settings.tag_filter = view["tag_filter"]

    layout = dict(_section(data, "layout", source))
    extra = {key: layout.pop(key) for key in list(layout) if key in _LAYOUT_KEYS}
    _check_keys(extra, _LAYOUT_KEYS, "layout", source)
    if "ticks" in extra:
        if extra["ticks"] < 0:
            raise ConfigError(f"{source}: layout.ticks must not be negative")
        settings.ticks = extra["ticks"]
    if "seed" in extra:
        settings.seed = extra["seed"]

    for key, value in layout.items():
        if key == "frozen":
            if not isinstance(value, bool):
                raise ConfigError(f"{source}: layout.frozen must be a boolean")
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{source}: layout.{key} must be a number")
    try:
        settings.simulation = SimulationParameters.from_mapping(layout)
    except KeyError as exc:
        raise ConfigError(f"{source}: {exc.args[0]}") from exc

    return settings


def parse_view(value: str, source: str = "<settings>") -> GraphView:
    """Map ``reference``/``tags`` (or ``tag``) to a GraphView."""
    normalized = str(value).strip().lower()
    if normalized in ("reference", "references", "links"):
        return GraphView.REFERENCE
    if normalized in ("tag", "tags"):
        return GraphView.TAG
    raise ConfigError(f"{source}: unknown view kind {value!r}")


def _section(data: Mapping[str, Any], name: str, source: str) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"{source}: section '{name}' must be a mapping")
    return dict(section)


def _check_keys(section: Mapping[str, Any], allowed: Mapping[str, type], name: str, source: str) -> None:
    for key, value in section.items():
        expected = allowed.get(key)
        if expected is None:
            raise ConfigError(f"{source}: unknown key '{name}.{key}'")
        if value is None and f"{name}.{key}" in _NULLABLE_KEYS:
            continue
        # bool is an int subclass; keep the two apart
        if expected is int and isinstance(value, bool):
            raise ConfigError(f"{source}: {name}.{key} must be an integer")
        if not isinstance(value, expected):
            raise ConfigError(f"{source}: {name}.{key} must be of type {expected.__name__}")
