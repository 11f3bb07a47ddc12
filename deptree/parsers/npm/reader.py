"""Readers turning manifest and lockfile text into scan seeds.

- ``package.json`` -> manifest mapping (walked directly as the root)
- ``package-lock.json`` -> ``[{"name", "version"}]``
- ``yarn.lock`` (v1) -> ``[{"name", "version"}]``
"""

import json
import logging
import re
from typing import Any, Dict, List

from deptree.parsers.base import MalformedInputError

logger = logging.getLogger("deptree.parsers.npm.reader")

_NODE_MODULES = "node_modules/"

# "@scope/name@^1.0.0", "@scope/name@^1.1.0": version "1.2.0"
_YARN_QUOTED_SCOPED = re.compile(r'^"(@[^@]+)@[^:]+":\s+version "([^"]+)"')
_YARN_QUOTED = re.compile(r'^"([^@]+)@[^:]+"?:\s+version "([^"]+)"')
_YARN_QUOTED_GIT = re.compile(r'^"(@?[^@]+)@(git[^"]+)"')
_YARN_PLAIN = re.compile(r'^([^@"]+)@[^:]+:\s+version "([^"]+)"')


def _require_text(file: Any, label: str) -> str:
    if not file or not isinstance(file, str):
        raise MalformedInputError(f"{label} must be a non-empty utf-8 string")
    return file


def _load_json(file: str, label: str) -> Any:
    try:
        return json.loads(file)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON in {label}: {e}") from e


def read_package_json(file: str) -> Dict[str, Any]:
    """Parse ``package.json`` text into a manifest mapping.

    Raises:
        MalformedInputError: If the text is empty, not JSON or not an object.
    """
    data = _load_json(_require_text(file, "package.json"), "package.json")
    if not isinstance(data, dict):
        raise MalformedInputError("package.json must contain a JSON object")
    return data


def read_package_lock(file: str) -> List[Dict[str, str]]:
    """Extract ``{name, version}`` pairs from ``package-lock.json`` text.

    Lockfile v1 ``dependencies`` and v2/v3 ``packages`` are both read; the
    first occurrence of a name wins.

    Raises:
        MalformedInputError: If the text is empty, not JSON or not an object.
    """
    lock = _load_json(_require_text(file, "package-lock.json"), "package-lock.json")
    if not isinstance(lock, dict):
        raise MalformedInputError("package-lock.json must contain a JSON object")

    output: List[Dict[str, str]] = []
    seen = set()

    def add(name: str, version: Any) -> None:
        if name and isinstance(version, str) and version and name not in seen:
            seen.add(name)
            output.append({"name": name, "version": version})

    dependencies = lock.get("dependencies")
    if isinstance(dependencies, dict):
        for name, info in dependencies.items():
            if isinstance(info, dict):
                add(name, info.get("version"))

    packages = lock.get("packages")
    if isinstance(packages, dict):
        for path, info in packages.items():
            # "" is the root project itself
            if not path or not isinstance(info, dict) or info.get("link"):
                continue
            idx = path.rfind(_NODE_MODULES)
            name = info.get("name") or (path[idx + len(_NODE_MODULES):] if idx >= 0 else "")
            add(name, info.get("version"))

    logger.debug("package-lock.json: %d entries", len(output))
    return output


def read_yarn_lock(file: str) -> List[Dict[str, str]]:
    """Extract ``{name, version}`` pairs from a yarn v1 lockfile.

    Raises:
        MalformedInputError: If the text is empty or not a string.
    """
    text = _require_text(file, "yarn.lock").replace("\r\n", "\n")
    blocks = [block.strip("\n") for block in text.split("\n\n")]

    output: List[Dict[str, str]] = []
    for block in blocks:
        if not block or block.startswith("#"):
            continue
        if block.startswith('"'):
            match = (
                _YARN_QUOTED_SCOPED.match(block)
                or _YARN_QUOTED.match(block)
                or _YARN_QUOTED_GIT.match(block)
            )
        else:
            match = _YARN_PLAIN.match(block)
        if match:
            output.append({"name": match.group(1), "version": match.group(2)})

    logger.debug("yarn.lock: %d entries", len(output))
    return output


__all__ = ["read_package_json", "read_package_lock", "read_yarn_lock"]
