"""Helpers for loading scan configuration from TOML/JSON sources.

This module provides a single entry point `load_scan_config` that accepts
various configuration sources:

* None -> default ScanConfig
* dict -> ScanConfig.from_dict
* Path / path-like string -> load .toml/.json from filesystem
* Inline JSON/TOML strings
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union
import json
import logging

from deptree.config import ScanConfig

logger = logging.getLogger("deptree.runtime.config_loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _parse_toml(text: str) -> Dict[str, Any]:
    """Parse TOML text into a dict.

    Uses stdlib tomllib on Python 3.11+ and `tomli` on older interpreters.
    """
    try:
        import tomllib  # type: ignore[attr-defined]
    except ImportError:  # pragma: no cover - Python <3.11 path
        import tomli as tomllib  # type: ignore[import-not-found,no-redef]
    return tomllib.loads(text)


def load_scan_config(source: ConfigSource, **overrides: Any) -> ScanConfig:
    """Load ScanConfig from various configuration sources.

    Args:
        source: One of:
            * None: returns ScanConfig.default()
            * dict: treated as already-parsed configuration mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)
        **overrides: Option values applied on top of the loaded mapping
            (None values are ignored).

    Returns:
        ScanConfig instance.
    """
    overrides = {k: v for k, v in overrides.items() if v is not None}

    if source is None:
        logger.debug("No config source provided; using default ScanConfig")
        return ScanConfig.from_dict(overrides)

    # Already parsed mapping
    if isinstance(source, dict):
        logger.debug("Loading ScanConfig from provided dict")
        return ScanConfig.from_dict(_merge(source, overrides))

    # Path or string (file path or inline text)
    if isinstance(source, (str, Path)):
        path = Path(source)
        text: Optional[str] = None
        fmt: Optional[str] = None

        if _is_existing_file(path):
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".toml", ".tml"}:
                fmt = "toml"
            elif suffix == ".json":
                fmt = "json"
            else:
                # Fallback: guess from content
                stripped = text.lstrip()
                fmt = "json" if stripped.startswith(("{", "[")) else "toml"
            logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
        else:
            # Inline string; auto-detect format
            text = str(source)
            stripped = text.lstrip()
            fmt = "json" if stripped.startswith(("{", "[")) else "toml"
            logger.info("Loading configuration from inline %s string", fmt)

        if fmt == "json":
            data = json.loads(text)
        else:
            data = _parse_toml(text)

        if not isinstance(data, dict):
            raise ValueError("Top-level configuration must be a mapping/dict")

        return ScanConfig.from_dict(_merge(data, overrides))

    raise TypeError(f"Unsupported config source type: {type(source)!r}")


def _is_existing_file(path: Path) -> bool:
    try:
        return path.is_file()
    except (OSError, ValueError):
        # Inline TOML/JSON text can be an invalid or overlong path
        return False


def _merge(data: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    if "scan" in data and isinstance(data["scan"], dict):
        data = data["scan"]
    merged = dict(data)
    merged.update(overrides)
    return merged


__all__ = ["load_scan_config"]
