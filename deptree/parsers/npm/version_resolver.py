"""npm version range resolution.

Resolves a range or dist-tag against the versions published in a registry
document. Range semantics follow npm (``semantic_version.NpmSpec``): the
highest satisfying version wins and pre-releases only match ranges that
explicitly mention a pre-release of the same ``major.minor.patch``.
"""

import logging
import re
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from semantic_version import NpmSpec, Version

from deptree.parsers.base import ResolutionFailure

logger = logging.getLogger("deptree.parsers.npm.version_resolver")

WILDCARD = "*"
LATEST_TAG = "latest"

_OPERATOR_GAP = re.compile(r"(<=|>=|<|>|=|\^|~)\s+")


def parse_version(text: str) -> Optional[Version]:
    """Parse a published version loosely (``v1.2.3`` and ``=1.2.3`` accepted).

    Args:
        text: Version string as published.

    Returns:
        Optional[Version]: Parsed version, None if it is not valid semver.
    """
    cleaned = (text or "").strip().lstrip("=v").strip()
    try:
        return Version(cleaned)
    except ValueError:
        return None


def normalize_range(range_text: str) -> str:
    """Collapse whitespace and glue operators to their versions (``>= 1`` -> ``>=1``)."""
    collapsed = " ".join((range_text or "").split())
    return _OPERATOR_GAP.sub(r"\1", collapsed)


def _parse_available(available: Iterable[str]) -> List[Tuple[Version, str]]:
    parsed: List[Tuple[Version, str]] = []
    seen = set()
    for raw in available:
        version = parse_version(raw)
        if version is None:
            logger.debug("Ignoring non-semver version %r", raw)
            continue
        if version in seen:
            continue
        seen.add(version)
        parsed.append((version, raw))
    return parsed


def max_satisfying(range_text: str, available: Iterable[str]) -> Optional[str]:
    """Return the highest version in ``available`` that satisfies ``range_text``.

    Args:
        range_text: npm range expression (``^1.2.0``, ``1.x || >=3``, ``*``).
        available: Published version strings.

    Returns:
        Optional[str]: The matching published string, None when nothing
        matches or the range is not a valid npm range.
    """
    try:
        spec = NpmSpec(normalize_range(range_text))
    except ValueError:
        logger.debug("Not a valid npm range: %r", range_text)
        return None

    by_version = dict(_parse_available(available))
    best = spec.select(by_version.keys())
    if best is None:
        return None
    return by_version[best]


def resolve_version(
    requested: Optional[str],
    available: Iterable[str],
    dist_tags: Optional[Mapping[str, str]] = None,
) -> Union[str, ResolutionFailure]:
    """Resolve a range or dist-tag to a concrete published version.

    Steps:
    1. ``latest`` (and an empty spec) is treated as the wildcard range ``*``.
    2. The highest version satisfying the range wins.
    3. For ``*`` when every published version is a pre-release, the
       ``latest`` dist-tag is used.
    4. A spec naming a dist-tag resolves to that tag's version.

    Args:
        requested: Range or tag as written by the dependent package.
        available: Published version strings (registry ``versions`` keys).
        dist_tags: Registry ``dist-tags`` mapping.

    Returns:
        Union[str, ResolutionFailure]: A member of ``available`` or a failure.
    """
    available = list(available)
    tags: Dict[str, str] = dict(dist_tags or {})
    original = (requested or "").strip()
    range_text = original
    if range_text in ("", LATEST_TAG):
        range_text = WILDCARD

    version = max_satisfying(range_text, available)

    if version is None and range_text == WILDCARD:
        parsed = _parse_available(available)
        if parsed and all(v.prerelease for v, _ in parsed):
            latest = tags.get(LATEST_TAG)
            if latest in available:
                version = latest

    if version is None and original in tags and tags[original] in available:
        version = tags[original]

    if version is None:
        return ResolutionFailure(f"no satisfying version for {original or WILDCARD}")
    return version


__all__ = ["max_satisfying", "parse_version", "resolve_version"]
