"""Configuration schema and validation for deptree."""

from .schema import DEFAULT_REGISTRY, DEPENDENCY_CATEGORIES, ScanConfig

__all__ = [
    "DEFAULT_REGISTRY",
    "DEPENDENCY_CATEGORIES",
    "ScanConfig",
]
