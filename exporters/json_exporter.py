"""JSON exporter for graph views (machine-friendly format)."""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from graph.model import FileNode, Graph, GraphNode
from layout.vector import Vec2


def to_json(
    graph: Graph,
    root: Optional[Path] = None,
    positions: Optional[Mapping[GraphNode, Vec2]] = None,
    indent: int = 2,
    include_dangling: bool = True,
) -> str:
    """
    Convert a graph view to JSON format.

    Args:
        graph: The graph to export.
        root: Scan root; file paths are shown relative to it when possible.
        positions: Optional layout positions to attach as ``x``/``y``.
        indent: JSON indentation level.
        include_dangling: If True, include dangling (unresolved) references.

    Returns:
        JSON string representation of the graph.
    """
    nodes: List[Dict[str, Any]] = []
    for node in graph.nodes:
        entry = _node_entry(node, root)
        if positions is not None and node in positions:
            pos = positions[node]
            entry["x"] = round(pos.x, 3)
            entry["y"] = round(pos.y, 3)
        nodes.append(entry)

    edges: List[Dict[str, Any]] = []
    for source, target in graph.iter_edges():
        edges.append({"source": node_id(source, root), "target": node_id(target, root)})

    data: Dict[str, Any] = {
        "view": graph.view.value,
        "nodes": nodes,
        "edges": edges,
    }

    if include_dangling:
        data["dangling"] = [
            {"source": _get_path_str(source, root), "target": _get_path_str(target, root)}
            for source, target in graph.iter_dangling()
        ]

    return json.dumps(data, indent=indent)


def node_id(node: GraphNode, root: Optional[Path] = None) -> str:
    """Stable string identity for a node: ``file:<path>`` or ``tag:<name>``."""
    if isinstance(node, FileNode):
        return f"file:{_get_path_str(node.path, root)}"
    return f"tag:{node.name}"


def _node_entry(node: GraphNode, root: Optional[Path]) -> Dict[str, Any]:
    if isinstance(node, FileNode):
        return {
            "id": node_id(node, root),
            "kind": "file",
            "label": _get_path_str(node.path, root),
            "image": node.image,
        }
    return {"id": node_id(node, root), "kind": "tag", "label": node.label, "image": False}


def _get_path_str(path: Path, root: Optional[Path]) -> str:
    """Get the string representation of a path."""
    if root is not None:
        try:
            return str(path.relative_to(root)).replace("\\", "/")
        except ValueError:
            pass
    return str(path).replace("\\", "/")
