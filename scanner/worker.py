"""Background scanning for callers that poll once per frame."""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .errors import ScanError, ScanInProgressError
from .facts import ScanSnapshot
from .progress import ProgressChannel, ProgressEvent
from .scan import ScanReport, Scanner


logger = logging.getLogger(__name__)


class ScanState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    READY = "ready"
    ERROR = "error"


class ScanSession:
    """
    Runs a Scanner on a worker thread and tracks its progress.

    The owning thread calls ``poll()`` regularly; it never blocks, and it
    is where state transitions become visible. Only one scan may be in
    flight per session.
    """

    def __init__(self, scanner: Optional[Scanner] = None):
        self.scanner = scanner if scanner is not None else Scanner()
        self.state = ScanState.IDLE
        self.progress = 0.0
        self.status = ""
        self.error: Optional[str] = None
        self.report: Optional[ScanReport] = None
        self.root: Optional[Path] = None

        self._thread: Optional[threading.Thread] = None
        self._channel: Optional[ProgressChannel] = None
        self._cancel: Optional[threading.Event] = None
        self._outcome_lock = threading.Lock()
        self._outcome: Optional[ScanReport] = None
        self._failure: Optional[str] = None

    @property
    def scanning(self) -> bool:
        return self.state is ScanState.SCANNING

    def start(self, root: Path, show_hidden: bool = False) -> None:
        """
        Start scanning root in the background.

        Raises:
            ScanInProgressError: If a scan is still running.
        """
        if self._thread is not None and self._thread.is_alive():
            raise ScanInProgressError()
        self._finish()

        self.root = Path(root)
        self.state = ScanState.SCANNING
        self.progress = 0.0
        self.status = f"Scanning: {self.root}"
        self.error = None
        self.report = None
        self._outcome = None
        self._failure = None

        self._channel = ProgressChannel()
        self._cancel = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self.root, show_hidden, self._channel, self._cancel),
            name="nexusmap-scan",
            daemon=True,
        )
        self._thread.start()

    def _run(
        self,
        root: Path,
        show_hidden: bool,
        channel: ProgressChannel,
        cancel: threading.Event,
    ) -> None:
        try:
            report = self.scanner.scan(root, show_hidden=show_hidden, progress=channel, cancel=cancel)
        except ScanError as exc:
            logger.error("Scan of %s failed: %s", root, exc)
            with self._outcome_lock:
                self._failure = str(exc)
        except Exception as exc:
            # A worker thread has nowhere else to report to
            logger.exception("Unexpected error scanning %s", root)
            with self._outcome_lock:
                self._failure = f"Unexpected error: {exc}"
        else:
            with self._outcome_lock:
                self._outcome = report

    def poll(self) -> List[ProgressEvent]:
        """
        Drain pending progress events and update the session state.

        Returns:
            The events received since the last poll, oldest first.
        """
        events: List[ProgressEvent] = []
        if self._channel is not None:
            events = self._channel.poll()
        if events:
            self.progress = events[-1].fraction
            self.status = events[-1].message

        if self._thread is not None and not self._thread.is_alive():
            self._finish()
        return events

    def wait(self, timeout: Optional[float] = None) -> List[ProgressEvent]:
        """Block until the running scan ends (or timeout), then poll."""
        if self._thread is not None:
            self._thread.join(timeout)
        return self.poll()

    def cancel(self) -> None:
        """
        Ask the running scan to stop and wait for it.

        Facts gathered before the cancellation are committed.
        """
        if self._cancel is None or self._thread is None:
            return
        self._cancel.set()
        self.wait()
        if self.state is ScanState.READY and self.report is not None and self.report.cancelled:
            self.status = "Scan cancelled"

    def close(self) -> None:
        """Stop listening. A scan still running fails on its next progress event."""
        if self._channel is not None:
            self._channel.close()
        if self._thread is not None:
            self._thread.join()
        self._finish()

    def snapshot(self) -> ScanSnapshot:
        return self.scanner.snapshot()

    def _finish(self) -> None:
        if self._thread is None:
            return
        self._thread.join()
        self._thread = None

        with self._outcome_lock:
            outcome, failure = self._outcome, self._failure
        if failure is not None:
            self.state = ScanState.ERROR
            self.error = failure
            self.status = failure
        elif outcome is not None:
            self.state = ScanState.READY
            self.report = outcome
            self.progress = 1.0
        else:
            self.state = ScanState.IDLE

    def __repr__(self) -> str:
        return f"ScanSession(state={self.state.value}, progress={self.progress:.2f})"
