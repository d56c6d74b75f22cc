"""Mermaid flowchart exporter for graph views."""

import re
from pathlib import Path
from typing import Dict, List, Set

from graph.model import FileNode, Graph, GraphNode, TagNode


# Ids Mermaid would read as syntax, plus the id of the grouped tag subgraph
RESERVED_IDS = {"end", "graph", "subgraph", "flowchart", "style", "tags"}


def to_mermaid(
    graph: Graph,
    root: Path,
    orientation: str = "LR",
    group_by_directory: bool = False,
    include_dangling: bool = True,
) -> str:
    """
    Convert a graph view to Mermaid flowchart syntax.

    File nodes are drawn as boxes, tag nodes as stadiums. Dangling
    references point at dashed ``[MISSING]`` nodes.

    Args:
        graph: The graph to export.
        root: Scan root for relative labels.
        orientation: Flowchart orientation (LR, TD, TB, RL, BT).
        group_by_directory: If True, group file nodes by top-level directory.
        include_dangling: If True, show dangling references.

    Returns:
        Mermaid flowchart string.
    """
    lines = [f"flowchart {orientation}"]

    node_ids = _assign_ids(graph, root)

    missing_ids: Dict[Path, str] = {}
    if include_dangling:
        for _, target in graph.iter_dangling():
            if target not in missing_ids:
                missing_ids[target] = _unique(
                    _sanitize_id_simple(f"missing_{_get_label(target, root)}"),
                    RESERVED_IDS | set(node_ids.values()) | set(missing_ids.values()),
                )

    if group_by_directory:
        lines.extend(_grouped_nodes(graph, root, node_ids))
    else:
        for node in graph.nodes:
            lines.append(f"    {_node_definition(node, node_ids[node], root)}")

    if missing_ids:
        lines.append("")
        lines.append("    %% Dangling references")
        for target in sorted(missing_ids):
            missing_id = missing_ids[target]
            lines.append(f'    {missing_id}["{_escape_label(_get_label(target, root))} [MISSING]"]')
            lines.append(f"    style {missing_id} stroke:#ff0000,stroke-dasharray: 5 5")

    lines.append("")
    for source, target in graph.iter_edges():
        lines.append(f"    {node_ids[source]} --> {node_ids[target]}")

    if include_dangling:
        for source, target in graph.iter_dangling():
            lines.append(f"    {node_ids[FileNode(source)]} -.-> {missing_ids[target]}")

    return "\n".join(lines)


def _grouped_nodes(graph: Graph, root: Path, node_ids: Dict[GraphNode, str]) -> List[str]:
    """Node definitions with file nodes in subgraphs per top-level directory."""
    lines: List[str] = []

    groups: Dict[str, List[GraphNode]] = {}
    tags: List[GraphNode] = []
    for node in graph.nodes:
        if isinstance(node, TagNode):
            tags.append(node)
            continue
        try:
            rel_path = node.path.relative_to(root)
            top_dir = rel_path.parts[0] if len(rel_path.parts) > 1 else "root"
        except ValueError:
            top_dir = "external"
        groups.setdefault(top_dir, []).append(node)

    for group_name in sorted(groups):
        subgraph_id = _sanitize_id_simple(f"dir_{group_name}")
        lines.append(f"    subgraph {subgraph_id}[{group_name}]")
        for node in groups[group_name]:
            lines.append(f"        {_node_definition(node, node_ids[node], root)}")
        lines.append("    end")
        lines.append("")

    if tags:
        lines.append("    subgraph tags[Tags]")
        for node in tags:
            lines.append(f"        {_node_definition(node, node_ids[node], root)}")
        lines.append("    end")

    return lines


def _node_definition(node: GraphNode, node_id: str, root: Path) -> str:
    if isinstance(node, TagNode):
        return f'{node_id}(["{_escape_label(node.label)}"])'
    return f'{node_id}["{_escape_label(_get_label(node.path, root))}"]'


def _assign_ids(graph: Graph, root: Path) -> Dict[GraphNode, str]:
    ids: Dict[GraphNode, str] = {}
    taken: Set[str] = set(RESERVED_IDS)
    for node in graph.nodes:
        if isinstance(node, TagNode):
            base = _sanitize_id_simple(f"tag_{node.name}")
        else:
            base = _sanitize_id_simple(_get_label(node.path, root))
        ids[node] = _unique(base, taken)
        taken.add(ids[node])
    return ids


def _unique(base: str, taken: Set[str]) -> str:
    candidate, n = base, 2
    while candidate in taken:
        candidate = f"{base}_{n}"
        n += 1
    return candidate


def _sanitize_id_simple(value: str) -> str:
    """Sanitize a string to be a valid Mermaid ID."""
    # Replace path separators and dots with underscores
    sanitized = re.sub(r"[/\\.\-]", "_", value)
    # Remove any remaining invalid characters
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "", sanitized)
    # Ensure it starts with a letter
    if sanitized and not sanitized[0].isalpha():
        sanitized = "n_" + sanitized
    return sanitized or "unknown"


def _escape_label(label: str) -> str:
    """Escape double quotes so a label stays inside its quoted string."""
    return label.replace('"', "#quot;")


def _get_label(path: Path, root: Path) -> str:
    """Get the display label for a path."""
    try:
        return str(path.relative_to(root)).replace("\\", "/")
    except ValueError:
        return str(path).replace("\\", "/")
