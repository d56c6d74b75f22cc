"""Builders that turn a scan snapshot into graph views."""

import logging

from scanner.facts import ScanSnapshot
from .model import FileNode, Graph, GraphView, TagNode


logger = logging.getLogger(__name__)


def build_reference_graph(snapshot: ScanSnapshot) -> Graph:
    """
    Build the reference graph.

    Every scanned file and every image becomes a node, whether or not it
    references anything. Each resolved reference whose target is a node
    becomes an edge; any other reference is recorded as dangling.

    Args:
        snapshot: Scan facts to build from.

    Returns:
        Graph with view REFERENCE.
    """
    graph = Graph(GraphView.REFERENCE)
    images = set(snapshot.images)

    for path in sorted(snapshot.references):
        graph.add_node(FileNode(path, image=path in images))
    for path in snapshot.images:
        graph.add_node(FileNode(path, image=True))

    for source in sorted(snapshot.references):
        source_idx = graph.file_index(source)
        for target in snapshot.references[source]:
            target_idx = graph.file_index(target)
            if target_idx is None:
                graph.add_dangling(source, target)
            else:
                graph.add_edge(source_idx, target_idx)

    logger.debug("Built %r", graph)
    return graph


def build_tag_graph(snapshot: ScanSnapshot) -> Graph:
    """
    Build the tag graph.

    Nodes are files with at least one tag, all images, and one node per
    distinct tag. There is one edge per (tag, file) pair, pointing from the
    tag to the file. Untagged files do not appear at all.

    Args:
        snapshot: Scan facts to build from.

    Returns:
        Graph with view TAG.
    """
    graph = Graph(GraphView.TAG)

    tagged = sorted(path for path, tags in snapshot.tags.items() if tags)
    for path in tagged:
        graph.add_node(FileNode(path))
    for path in snapshot.images:
        graph.add_node(FileNode(path, image=True))

    for path in tagged:
        file_idx = graph.file_index(path)
        # A tag repeated inside one file still links it once
        for tag in dict.fromkeys(snapshot.tags[path]):
            tag_idx = graph.add_node(TagNode(tag))
            graph.add_edge(tag_idx, file_idx)

    logger.debug("Built %r", graph)
    return graph


def build_graph(snapshot: ScanSnapshot, view: GraphView) -> Graph:
    """Build whichever view is requested."""
    if view is GraphView.TAG:
        return build_tag_graph(snapshot)
    return build_reference_graph(snapshot)
