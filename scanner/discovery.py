"""File discovery utilities for scanning directory trees."""

import logging
from pathlib import Path
from typing import Iterator, Optional, Protocol, Tuple


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".ind"}
HIDDEN_PREFIX = "."


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


def is_image_path(path: Path) -> bool:
    """Check if a path has one of the image extensions."""
    return path.suffix.lower() in IMAGE_EXTENSIONS


def is_hidden(path: Path) -> bool:
    """Check if a file or directory name marks it as hidden."""
    return path.name.startswith(HIDDEN_PREFIX)


def iter_files(
    root: Path,
    show_hidden: bool = False,
    cancel: Optional[CancelToken] = None,
) -> Iterator[Tuple[Path, float]]:
    """
    Iterate over files in a directory tree, depth-first in sorted order.

    Each directory owns a span of the unit interval that is split evenly
    among its entries, so the reported fractions never decrease.

    Args:
        root: Root directory to scan.
        show_hidden: If False, skip dot-files and do not descend into
                     dot-directories.
        cancel: Optional token checked before entering each directory.
                Once set, iteration stops without error.

    Yields:
        (path, fraction) tuples, where fraction is the share of the tree
        covered once the file has been handled.
    """
    root = root.resolve()

    def _cancelled() -> bool:
        return cancel is not None and cancel.is_set()

    def _walk(current: Path, low: float, high: float) -> Iterator[Tuple[Path, float]]:
        if _cancelled():
            return

        try:
            entries = sorted(current.iterdir())
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", current, exc)
            return

        if not show_hidden:
            entries = [entry for entry in entries if not is_hidden(entry)]
        if not entries:
            return

        step = (high - low) / len(entries)
        for i, entry in enumerate(entries):
            start = low + i * step
            try:
                is_dir = entry.is_dir()
                # Following directory links could loop forever
                is_link = is_dir and entry.is_symlink()
                is_file = not is_dir and entry.is_file()
            except OSError as exc:
                logger.debug("Skipping unreadable entry %s: %s", entry, exc)
                continue

            if is_dir:
                if is_link:
                    continue
                yield from _walk(entry, start, start + step)
                if _cancelled():
                    return
            elif is_file:
                yield entry, start + step

    yield from _walk(root, 0.0, 1.0)
