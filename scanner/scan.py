"""Scanner that turns a directory tree into scan facts."""

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .discovery import CancelToken, is_image_path, iter_files
from .errors import ScanError, ScanInProgressError
from .facts import FactStore, ScanFact, ScanSnapshot
from .parser import extract_references, extract_tags, read_text
from .progress import ProgressChannel, ProgressChannelClosed
from .resolver import resolve_reference


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanReport:
    """Summary of a finished (or cancelled) scan."""
    root: Path
    files: int
    images: int
    tagged: int
    references: int
    cancelled: bool = False
    elapsed: float = 0.0


def scan_file(file_path: Path) -> Optional[ScanFact]:
    """
    Build the fact for a single file.

    Args:
        file_path: File to inspect.

    Returns:
        ScanFact for images and readable text files, None for files that
        cannot be read as text.
    """
    if is_image_path(file_path):
        return ScanFact(path=file_path, is_image=True)

    content = read_text(file_path)
    if content is None:
        logger.debug("Skipping unreadable file %s", file_path)
        return None

    return ScanFact(
        path=file_path,
        references=tuple(extract_references(content)),
        tags=tuple(extract_tags(content)),
    )


class Scanner:
    """
    Walks a directory tree and commits what it finds to a FactStore.

    One Scanner runs at most one scan at a time. Results are collected
    privately and committed in one step at the end, so a scan that fails
    leaves the store exactly as it was.
    """

    def __init__(self, store: Optional[FactStore] = None):
        self.store = store if store is not None else FactStore()
        self._running = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._running.locked()

    def snapshot(self) -> ScanSnapshot:
        return self.store.snapshot()

    def scan(
        self,
        root: Path,
        show_hidden: bool = False,
        progress: Optional[ProgressChannel] = None,
        cancel: Optional[CancelToken] = None,
    ) -> ScanReport:
        """
        Scan a directory tree.

        Args:
            root: Directory to scan.
            show_hidden: Include dot-files and dot-directories.
            progress: Optional channel receiving (fraction, message) events.
            cancel: Optional token; once set the scan stops at the next
                    directory and commits what it has collected so far.

        Returns:
            ScanReport describing the committed facts.

        Raises:
            ScanError: If root is not a directory or a progress event
                       cannot be delivered.
            ScanInProgressError: If this scanner is already scanning.
        """
        root = Path(root)
        if not root.is_dir():
            raise ScanError(f"Path is not a directory: {root}")

        if not self._running.acquire(blocking=False):
            raise ScanInProgressError()
        try:
            return self._scan(root.resolve(), show_hidden, progress, cancel)
        finally:
            self._running.release()

    def _scan(
        self,
        root: Path,
        show_hidden: bool,
        progress: Optional[ProgressChannel],
        cancel: Optional[CancelToken],
    ) -> ScanReport:
        started = time.monotonic()
        logger.info("Scanning %s (show_hidden=%s)", root, show_hidden)

        collected: Dict[Path, ScanFact] = {}
        for file_path, fraction in iter_files(root, show_hidden=show_hidden, cancel=cancel):
            _send(progress, fraction, f"Scanning: {file_path}")
            fact = scan_file(file_path)
            if fact is not None:
                collected[file_path] = fact

        cancelled = cancel is not None and cancel.is_set()
        if cancelled:
            logger.warning("Scan of %s cancelled after %d files", root, len(collected))

        # Resolve only now that every file under root is known
        resolved = {
            path: dataclasses.replace(
                fact,
                resolved_references=tuple(
                    resolve_reference(target, root) for target in fact.references
                ),
            )
            for path, fact in collected.items()
        }

        # Readers that react to the terminal event block on the store lock
        # until the commit below has landed.
        with self.store.lock:
            _send(progress, 1.0, "Scan cancelled" if cancelled else "Scan complete")
            self.store.replace_subtree(root, resolved)

        report = ScanReport(
            root=root,
            files=sum(1 for fact in resolved.values() if not fact.is_image),
            images=sum(1 for fact in resolved.values() if fact.is_image),
            tagged=sum(1 for fact in resolved.values() if fact.tags),
            references=sum(len(fact.references) for fact in resolved.values()),
            cancelled=cancelled,
            elapsed=time.monotonic() - started,
        )
        logger.info(
            "Scanned %s: %d files, %d images, %d tagged, %d references in %.2fs",
            root, report.files, report.images, report.tagged, report.references,
            report.elapsed,
        )
        return report


def _send(progress: Optional[ProgressChannel], fraction: float, message: str) -> None:
    if progress is None:
        return
    try:
        progress.send(fraction, message)
    except ProgressChannelClosed as exc:
        logger.warning("Aborting scan: %s", exc)
        raise ScanError(f"Failed to report progress: {exc}") from exc
