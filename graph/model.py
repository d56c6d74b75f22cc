"""Graph data model for file reference and tag relationships."""

import collections
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Counter, Dict, Iterator, List, Optional, Set, Tuple, Union


@dataclass(frozen=True, order=True)
class FileNode:
    """A scanned file or image. Identity is the path alone."""
    path: Path
    image: bool = field(default=False, compare=False)

    @property
    def label(self) -> str:
        return self.path.name or str(self.path)


@dataclass(frozen=True, order=True)
class TagNode:
    """A distinct ``#tag``. Identity is the tag name."""
    name: str

    @property
    def label(self) -> str:
        return f"#{self.name}"


GraphNode = Union[FileNode, TagNode]
EdgeValue = Tuple[GraphNode, GraphNode]


class GraphView(Enum):
    REFERENCE = "reference"
    TAG = "tags"


class Graph:
    """
    A directed multigraph over file and tag nodes.

    Nodes live in an arena and are addressed by integer index. Indices are
    only meaningful for the build that produced them; anything that must
    survive a rebuild (layout positions, selections) should key on the node
    value instead. Dangling references (targets that are not nodes) are
    tracked separately and never become edges.
    """

    def __init__(self, view: GraphView = GraphView.REFERENCE):
        self.view = view
        self._nodes: List[GraphNode] = []
        self._index: Dict[GraphNode, int] = {}
        self._edges: List[Tuple[int, int]] = []
        self._dangling: Dict[Path, List[Path]] = {}  # source -> unresolved targets

    @property
    def nodes(self) -> List[GraphNode]:
        """Return all nodes in index order."""
        return list(self._nodes)

    @property
    def edges(self) -> List[Tuple[int, int]]:
        """Return edges as (source index, target index) pairs."""
        return list(self._edges)

    @property
    def dangling(self) -> Dict[Path, List[Path]]:
        """Return dangling references (source -> targets that are not nodes)."""
        return {k: list(v) for k, v in self._dangling.items()}

    @property
    def file_indices(self) -> Dict[Path, int]:
        """Lookup from file path to node index."""
        return {
            node.path: idx for node, idx in self._index.items()
            if isinstance(node, FileNode)
        }

    @property
    def tag_indices(self) -> Dict[str, int]:
        """Lookup from tag name to node index."""
        return {
            node.name: idx for node, idx in self._index.items()
            if isinstance(node, TagNode)
        }

    def add_node(self, node: GraphNode) -> int:
        """
        Add a node and return its index.

        Adding a value that is already present returns the existing index.
        """
        idx = self._index.get(node)
        if idx is None:
            idx = len(self._nodes)
            self._nodes.append(node)
            self._index[node] = idx
        return idx

    def add_edge(self, source: int, target: int) -> None:
        """
        Add a directed edge between two existing node indices.

        Duplicate edges are kept; each one counts on its own.
        """
        if not (0 <= source < len(self._nodes) and 0 <= target < len(self._nodes)):
            raise IndexError(f"edge ({source}, {target}) refers to an unknown node")
        self._edges.append((source, target))

    def add_dangling(self, source: Path, target: Path) -> None:
        """Record a reference whose target is not a node of this graph."""
        self._dangling.setdefault(source, []).append(target)

    def index_of(self, node: GraphNode) -> Optional[int]:
        return self._index.get(node)

    def node_at(self, idx: int) -> GraphNode:
        return self._nodes[idx]

    def file_index(self, path: Path) -> Optional[int]:
        """Get the index of the file node for path, if any."""
        return self._index.get(FileNode(path))

    def tag_index(self, name: str) -> Optional[int]:
        return self._index.get(TagNode(name))

    def iter_edges(self) -> Iterator[EdgeValue]:
        """Iterate over all edges as (source node, target node) tuples."""
        for source, target in self._edges:
            yield self._nodes[source], self._nodes[target]

    def iter_dangling(self) -> Iterator[Tuple[Path, Path]]:
        """Iterate over all dangling references as (source, target) tuples."""
        for source, targets in self._dangling.items():
            for target in targets:
                yield source, target

    def node_values(self) -> Set[GraphNode]:
        return set(self._nodes)

    def edge_values(self) -> Counter[EdgeValue]:
        """Edges as a multiset of value pairs, independent of index assignment."""
        return collections.Counter(self.iter_edges())

    def get_targets(self, node: GraphNode) -> List[GraphNode]:
        """Get all nodes that node points at."""
        return [target for source, target in self.iter_edges() if source == node]

    def get_sources(self, node: GraphNode) -> List[GraphNode]:
        """Get all nodes that point at node."""
        return [source for source, target in self.iter_edges() if target == node]

    def has_dangling(self) -> bool:
        return bool(self._dangling)

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._nodes)

    def __contains__(self, node: GraphNode) -> bool:
        return node in self._index

    def __repr__(self) -> str:
        dangling_count = sum(len(t) for t in self._dangling.values())
        return (
            f"Graph(view={self.view.value}, nodes={len(self._nodes)}, "
            f"edges={len(self._edges)}, dangling={dangling_count})"
        )
