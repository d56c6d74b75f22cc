"""Scan facts and the shared store that holds them between scans."""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping, Tuple

from .resolver import is_within


@dataclass(frozen=True)
class ScanFact:
    """
    Everything the scanner learned about one file.

    ``references`` holds targets exactly as written. ``resolved_references``
    is filled in once the whole tree has been traversed, so forward
    references to files visited later resolve the same way as backward ones.
    """
    path: Path
    references: Tuple[str, ...] = ()
    resolved_references: Tuple[Path, ...] = ()
    tags: Tuple[str, ...] = ()
    is_image: bool = False


@dataclass(frozen=True)
class ScanSnapshot:
    """
    A read-only copy of the store, shaped the way graph builders consume it.

    Attributes:
        references: Every scanned file and image mapped to its resolved
                    outbound references (empty for images).
        images: Paths classified as images.
        tags: Files with at least one tag mapped to their tags.
        facts: The underlying facts, keyed by path.
    """
    references: Mapping[Path, Tuple[Path, ...]] = field(default_factory=dict)
    images: Tuple[Path, ...] = ()
    tags: Mapping[Path, Tuple[str, ...]] = field(default_factory=dict)
    facts: Mapping[Path, ScanFact] = field(default_factory=dict)

    @classmethod
    def from_facts(cls, facts: Iterable[ScanFact]) -> "ScanSnapshot":
        by_path = {fact.path: fact for fact in facts}
        return cls(
            references={path: fact.resolved_references for path, fact in by_path.items()},
            images=tuple(sorted(path for path, fact in by_path.items() if fact.is_image)),
            tags={path: fact.tags for path, fact in by_path.items() if fact.tags},
            facts=by_path,
        )

    def __len__(self) -> int:
        return len(self.facts)


class FactStore:
    """
    Shared scan results, guarded by a single lock.

    The scanner is the only writer; readers take a snapshot. A commit for a
    root replaces every fact under that root, so rescanning a subtree clears
    and rediscovers it while leaving the rest of the store alone.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._facts: Dict[Path, ScanFact] = {}

    def replace_subtree(self, root: Path, facts: Mapping[Path, ScanFact]) -> None:
        """Drop all facts at or below root, then insert the given ones."""
        with self.lock:
            self._facts = {
                path: fact for path, fact in self._facts.items()
                if not is_within(path, root)
            }
            self._facts.update(facts)

    def snapshot(self) -> ScanSnapshot:
        with self.lock:
            return ScanSnapshot.from_facts(list(self._facts.values()))

    def get(self, path: Path) -> ScanFact:
        with self.lock:
            return self._facts[path]

    def clear(self) -> None:
        with self.lock:
            self._facts.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._facts)

    def __contains__(self, path: Path) -> bool:
        with self.lock:
            return path in self._facts

    def __repr__(self) -> str:
        return f"FactStore(facts={len(self)})"
