"""Public graph API surface."""

from deptree.graph.projections import (
    SUCCESS_MESSAGE,
    GraphProjections,
    ScanResult,
    VisitRecord,
    VisitState,
)

__all__ = [
    "GraphProjections",
    "SUCCESS_MESSAGE",
    "ScanResult",
    "VisitRecord",
    "VisitState",
]
