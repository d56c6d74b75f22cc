"""Visible subgraph selection and node search for the active graph view."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .model import EdgeValue, FileNode, Graph, GraphNode, GraphView, TagNode


@dataclass(frozen=True)
class VisibleView:
    """The node and edge values a renderer should draw this frame."""
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[EdgeValue, ...]


def visible_view(graph: Graph, show_images: bool = True, tag_filter: str = "") -> VisibleView:
    """
    Select the part of a graph that is currently visible.

    Args:
        graph: Reference or tag graph.
        show_images: If False, image nodes (and their edges) are hidden.
        tag_filter: Tag graphs only. Keep tag nodes whose name contains this
                    substring; an empty filter keeps every tag.

    Returns:
        VisibleView with node values in graph order.
    """
    if graph.view is GraphView.TAG:
        return _visible_tag_view(graph, show_images, tag_filter)

    nodes = [
        node for node in graph.nodes
        if show_images or not (isinstance(node, FileNode) and node.image)
    ]
    visible = set(nodes)
    edges = [
        (source, target) for source, target in graph.iter_edges()
        if source in visible and target in visible
    ]
    return VisibleView(tuple(nodes), tuple(edges))


def _visible_tag_view(graph: Graph, show_images: bool, tag_filter: str) -> VisibleView:
    nodes: List[GraphNode] = []
    tags = set()
    for node in graph.nodes:
        if isinstance(node, TagNode):
            if tag_filter in node.name:
                tags.add(node)
                nodes.append(node)
        elif show_images or not node.image:
            nodes.append(node)

    edges = [(source, target) for source, target in graph.iter_edges() if source in tags]
    return VisibleView(tuple(nodes), tuple(edges))


def subgraph(graph: Graph, view: VisibleView) -> Graph:
    """
    Build a graph holding only the nodes and edges of a visible view.

    Dangling references are carried over for files that stay visible.
    """
    restricted = Graph(graph.view)
    for node in view.nodes:
        restricted.add_node(node)
    for source, target in view.edges:
        restricted.add_edge(restricted.index_of(source), restricted.index_of(target))

    visible_files = {node.path for node in view.nodes if isinstance(node, FileNode)}
    for source, target in graph.iter_dangling():
        if source in visible_files:
            restricted.add_dangling(source, target)
    return restricted


def node_name(node: GraphNode) -> str:
    """Name used for searching: the file name for files, the tag for tags."""
    if isinstance(node, TagNode):
        return node.name
    return node.path.name or str(node.path)


def search_nodes(graph: Graph, query: str) -> List[GraphNode]:
    """Case-insensitive substring search over node names, in graph order."""
    query = query.lower()
    if not query:
        return []
    return [node for node in graph.nodes if query in node_name(node).lower()]


class SearchCursor:
    """Steps through search results, wrapping around at either end."""

    def __init__(self, results: Sequence[GraphNode]):
        self.results = list(results)
        self.position = 0

    @property
    def current(self) -> Optional[GraphNode]:
        if not self.results:
            return None
        return self.results[self.position]

    def next(self) -> Optional[GraphNode]:
        if self.results:
            self.position = (self.position + 1) % len(self.results)
        return self.current

    def previous(self) -> Optional[GraphNode]:
        if self.results:
            self.position = (self.position - 1) % len(self.results)
        return self.current

    def __len__(self) -> int:
        return len(self.results)
