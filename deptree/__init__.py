"""deptree - breadth-first npm dependency tree scanner."""

from deptree.config import ScanConfig
from deptree.graph.projections import ScanResult
from deptree.parsers.base import FetchFailure, MalformedInputError, ResolutionFailure
from deptree.parsers.npm.version_resolver import resolve_version
from deptree.runtime.cache import FileCache, MemoryCache
from deptree.runtime.scanner import Scanner, scan

__version__ = "0.1.0"

__all__ = [
    "FetchFailure",
    "FileCache",
    "MalformedInputError",
    "MemoryCache",
    "ResolutionFailure",
    "ScanConfig",
    "ScanResult",
    "Scanner",
    "resolve_version",
    "scan",
]
