"""Parsers for extracting references and tags from text files."""

import re
from pathlib import Path
from typing import List, Optional


# Matches either [label](target) or [[target]]. Group 2 holds the target of
# the first form, group 3 the target of the second.
LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)|\[\[([^\]]+)\]\]")

TAG_PATTERN = re.compile(r"#(\w+)")


def read_text(file_path: Path) -> Optional[str]:
    """
    Read a file as UTF-8 text.

    Args:
        file_path: Path to the file to read.

    Returns:
        The file contents, or None if the file cannot be read or is not
        valid UTF-8 (binary files end up here).
    """
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def extract_references(content: str) -> List[str]:
    """
    Extract raw reference targets from text.

    Both ``[label](target)`` and ``[[target]]`` are recognised. Targets are
    returned exactly as written, in order of appearance, duplicates kept.

    Args:
        content: Text to search.

    Returns:
        List of unresolved target strings.
    """
    references: List[str] = []
    for match in LINK_PATTERN.finditer(content):
        target = match.group(2)
        if target is None:
            target = match.group(3)
        references.append(target)
    return references


def extract_tags(content: str) -> List[str]:
    """Extract ``#word`` tags from text, in order, duplicates kept."""
    return TAG_PATTERN.findall(content)
