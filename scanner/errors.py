"""Exceptions raised by the scanner."""


class ScanError(Exception):
    """A scan could not be completed; prior results are left untouched."""


class ScanInProgressError(ScanError):
    """A scan was requested while another one is still running."""

    def __init__(self, message: str = "a scan is already in progress"):
        super().__init__(message)
