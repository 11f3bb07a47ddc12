"""Metadata caches keyed by ``name@spec``.

Any object exposing ``get(key)`` and ``set(key, value)`` can be plugged into
:class:`~deptree.config.ScanConfig`; the two implementations here cover the
in-process and on-disk cases.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger("deptree.runtime.cache")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class MetadataCache(Protocol):
    """Cache contract consumed by the metadata fetcher."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryCache:
    """Thread-safe in-process cache."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data


class FileCache:
    """Directory-backed cache storing one JSON document per key.

    Attributes:
        root: Cache directory, created on first write.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        """Return the file used for ``key``.

        Keys are sanitized to a filename; a short digest keeps keys that
        sanitize identically apart (``@a/b@1`` vs ``a-b@1``).
        """
        safe = _UNSAFE_CHARS.sub("_", key).strip("_") or "key"
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:10]
        return self.root / f"{safe}-{digest}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read cache entry %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(f".{threading.get_ident()}.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Cached %s at %s", key, path)


def is_cache(obj: object) -> bool:
    """Return True when ``obj`` exposes callable ``get`` and ``set``."""
    return callable(getattr(obj, "get", None)) and callable(getattr(obj, "set", None))


__all__ = ["FileCache", "MemoryCache", "MetadataCache", "is_cache"]
