"""Graph views built from scan facts."""

from .model import FileNode, TagNode, GraphNode, Graph, GraphView
from .builder import build_reference_graph, build_tag_graph, build_graph
from .view import VisibleView, visible_view, subgraph, search_nodes, SearchCursor

__all__ = [
    "FileNode",
    "TagNode",
    "GraphNode",
    "Graph",
    "GraphView",
    "build_reference_graph",
    "build_tag_graph",
    "build_graph",
    "VisibleView",
    "visible_view",
    "subgraph",
    "search_nodes",
    "SearchCursor",
]
