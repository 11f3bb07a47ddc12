"""Configuration schema definitions using Pydantic for validation.

Using Pydantic ensures configuration errors are caught before a scan starts
with clear error messages.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from deptree.runtime.cache import is_cache

DEFAULT_REGISTRY = "https://registry.npmjs.org"

# Optional dependency categories and the option enabling each of them
DEPENDENCY_CATEGORIES = (
    ("dependencies", None),
    ("devDependencies", "development"),
    ("optionalDependencies", "optional"),
    ("peerDependencies", "peer"),
)


class ScanConfig(BaseModel):
    """Top-level configuration for a dependency scan.

    Attributes:
        development: Include ``devDependencies``.
        optional: Include ``optionalDependencies``.
        peer: Include ``peerDependencies``.
        depth: Maximum number of levels expanded below the root (0 = unlimited).
        registry: Base URL of the package registry.
        debug: Emit per-level and per-package scan logging at INFO.
        cache: Object exposing ``get(key)`` and ``set(key, value)``.
        max_workers: Maximum concurrent metadata fetches per level.
        timeout: Per-request transport timeout (seconds).
        max_retries: Transport attempts for connection errors and 5xx responses.
        hosted_default_ref: Git reference used when a hosted spec names none.
    """

    development: bool = True
    optional: bool = False
    peer: bool = False
    depth: int = Field(default=1, ge=0)
    registry: str = DEFAULT_REGISTRY
    debug: bool = False
    cache: Optional[Any] = None
    max_workers: int = Field(default=8, ge=1, le=64)
    timeout: float = Field(default=15.0, gt=0, le=600.0)
    max_retries: int = Field(default=2, ge=1, le=10)
    hosted_default_ref: str = "HEAD"

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("registry")
    @classmethod
    def validate_registry(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"registry must be an http(s) URL, got '{v}'")
        return v.rstrip("/")

    @field_validator("cache")
    @classmethod
    def validate_cache(cls, v: Any) -> Any:
        if v is not None and not is_cache(v):
            raise ValueError("cache must expose callable get(key) and set(key, value)")
        return v

    @property
    def unlimited_depth(self) -> bool:
        return self.depth == 0

    def enabled_categories(self) -> list:
        """Dependency categories expanded for every visited package."""
        return [
            category
            for category, option in DEPENDENCY_CATEGORIES
            if option is None or getattr(self, option)
        ]

    @classmethod
    def default(cls) -> "ScanConfig":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanConfig":
        """Build a config from a mapping, accepting a nested ``[scan]`` table."""
        if "scan" in data and isinstance(data["scan"], dict):
            data = data["scan"]
        return cls.model_validate(data)
