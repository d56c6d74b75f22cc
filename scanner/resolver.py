"""Path resolution utilities for mapping raw references to file paths."""

import os
from pathlib import Path


def resolve_reference(target: str, root: Path) -> Path:
    """
    Resolve a raw reference target to an absolute path.

    Absolute targets are kept as they are. Relative targets are joined
    against the scan root, not against the directory of the file that
    contains the reference. The result is normalised lexically only; the
    filesystem is never consulted, so targets that do not exist still
    resolve to a path (and become dangling references downstream).

    Args:
        target: The reference target as written in the file.
        root: The scan root directory.

    Returns:
        Normalised absolute path.
    """
    candidate = Path(target)
    if not candidate.is_absolute():
        candidate = root / candidate
    return Path(os.path.normpath(candidate))


def is_within(path: Path, root: Path) -> bool:
    """Check if a path lies at or below root."""
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


def get_relative_path(file_path: Path, root: Path) -> Path:
    """
    Get the path relative to root.

    Args:
        file_path: The file path to make relative.
        root: The root directory.

    Returns:
        Relative path, or the original path if it can't be made relative.
    """
    try:
        return file_path.relative_to(root)
    except ValueError:
        return file_path
