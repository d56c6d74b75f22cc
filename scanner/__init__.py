"""Scanner module for file discovery and reference/tag extraction."""

from .discovery import iter_files, is_image_path, is_hidden, IMAGE_EXTENSIONS
from .parser import read_text, extract_references, extract_tags
from .resolver import resolve_reference, get_relative_path
from .facts import ScanFact, ScanSnapshot, FactStore
from .progress import ProgressChannel, ProgressChannelClosed, ProgressEvent
from .errors import ScanError, ScanInProgressError
from .scan import Scanner, ScanReport, scan_file
from .worker import ScanSession, ScanState

__all__ = [
    "iter_files",
    "is_image_path",
    "is_hidden",
    "IMAGE_EXTENSIONS",
    "read_text",
    "extract_references",
    "extract_tags",
    "resolve_reference",
    "get_relative_path",
    "ScanFact",
    "ScanSnapshot",
    "FactStore",
    "ProgressChannel",
    "ProgressChannelClosed",
    "ProgressEvent",
    "ScanError",
    "ScanInProgressError",
    "Scanner",
    "ScanReport",
    "scan_file",
    "ScanSession",
    "ScanState",
]
