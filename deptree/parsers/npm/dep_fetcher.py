"""NPM metadata fetcher.

Handles fetching of package manifests from:
- npm registry (full package document, then version resolution)
- Git hosting raw-content endpoints (github, gitlab, bitbucket)
- an optional metadata cache keyed by ``name@spec``

Failures are returned as :class:`~deptree.parsers.base.Failure` values and
never raised.
"""

import json
import logging
import time
from typing import Any, Dict, Optional, Union

import requests

from deptree.config import ScanConfig
from deptree.parsers.base import Failure, FetchFailure, is_failure
from deptree.parsers.npm.package_arg import (
    escape_name,
    is_git_spec,
    make_mark,
    parse_hosted_ref,
)
from deptree.parsers.npm.version_resolver import resolve_version

logger = logging.getLogger("deptree.parsers.npm.dep_fetcher")

Manifest = Dict[str, Any]
FetchResult = Union[Manifest, Failure]


class NpmMetadataFetcher:
    """Fetch package manifests for ``(name, spec)`` pairs.

    Usage:
        fetcher = NpmMetadataFetcher(ScanConfig())
        manifest = fetcher.fetch("lodash", "^4.17.0")
        if is_failure(manifest):
            print(manifest.message)

    Attributes:
        config: Scan configuration (registry, cache, timeout, retries).
        session: Object with a ``requests``-compatible ``get(url, timeout=...)``.
    """

    RETRY_BACKOFF = 1.0

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        session: Optional[Any] = None,
    ) -> None:
        self.config = config or ScanConfig.default()
        self.session = session or requests.Session()

    def fetch(self, name: str, spec: str) -> FetchResult:
        """Fetch the manifest for ``name`` at ``spec``.

        Args:
            name: Package name (scoped names allowed).
            spec: Range, dist-tag, exact version or git spec.

        Returns:
            FetchResult: Version manifest, or a failure value.
        """
        mark = make_mark(name, spec)
        logger.debug("load %s", mark)

        cached = self._read_cache(mark)
        if cached is not None:
            logger.debug("hit from cache: %s", mark)
            return cached

        hosted = parse_hosted_ref(spec) if is_git_spec(spec) else None
        if hosted is not None and hosted.recognized:
            result = self._fetch_from_hosted(mark, hosted.raw_manifest_url(self.config.hosted_default_ref))
        else:
            if hosted is not None:
                logger.debug("unsupported git host %s for %s, using registry", hosted.host, mark)
            result = self._fetch_from_registry(name, spec)

        if not is_failure(result):
            self._write_cache(mark, result)
        return result

    def fetch_document(self, name: str) -> Union[Dict[str, Any], Failure]:
        """Fetch the full registry document (all versions and dist-tags)."""
        url = f"{self.config.registry}/{escape_name(name)}"
        logger.debug("fetch registry document: %s", url)
        return self._get_json(url, name)

    def _fetch_from_registry(self, name: str, spec: str) -> FetchResult:
        document = self.fetch_document(name)
        if is_failure(document):
            return document

        versions = document.get("versions") or {}
        if not isinstance(versions, dict):
            return FetchFailure(f"could not load {make_mark(name, spec)}: malformed registry document")

        resolved = resolve_version(spec, versions.keys(), document.get("dist-tags") or {})
        if is_failure(resolved):
            logger.warning("%s: %s", name, resolved.message)
            return resolved

        logger.debug("Resolved version: %s@%s -> %s", name, spec, resolved)
        return versions[resolved]

    def _fetch_from_hosted(self, mark: str, url: str) -> FetchResult:
        logger.debug("fetch hosted manifest: %s", url)
        return self._get_json(url, mark)

    def _get_json(self, url: str, label: str) -> Union[Dict[str, Any], Failure]:
        """GET a JSON document, retrying connection errors and 5xx responses."""
        max_retries = self.config.max_retries
        failure: Optional[FetchFailure] = None

        for attempt in range(max_retries):
            try:
                response = self.session.get(url, timeout=self.config.timeout)
            except requests.RequestException as e:
                failure = FetchFailure(f"could not load {label}: {e}")
            else:
                status = response.status_code
                if 200 <= status < 300:
                    try:
                        body = response.json()
                    except ValueError as e:
                        return FetchFailure(f"could not load {label}: invalid JSON ({e})", status)
                    if not isinstance(body, dict):
                        return FetchFailure(f"could not load {label}: unexpected JSON document", status)
                    return body
                reason = getattr(response, "reason", "") or "HTTP error"
                failure = FetchFailure(f"could not load {label}: {status} {reason}", status)
                if status < 500:
                    break

            if attempt < max_retries - 1:
                wait_time = (attempt + 1) * self.RETRY_BACKOFF
                logger.warning(
                    "Retry %d/%d for %s after error: %s (waiting %.1fs)",
                    attempt + 1,
                    max_retries,
                    label,
                    failure.message,
                    wait_time,
                )
                time.sleep(wait_time)

        logger.warning("%s", failure.message)
        return failure

    def _read_cache(self, mark: str) -> Optional[Manifest]:
        cache = self.config.cache
        if cache is None:
            return None
        try:
            raw = cache.get(mark)
        except Exception as e:
            logger.warning("Cache lookup failed for %s: %s", mark, e)
            return None
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.debug('"%s" hit from cache but JSON parse error: %s', mark, e)
            return None
        if not isinstance(value, dict) or not value:
            return None
        return value

    def _write_cache(self, mark: str, manifest: Manifest) -> None:
        cache = self.config.cache
        if cache is None:
            return
        try:
            cache.set(mark, json.dumps(manifest))
        except Exception as e:
            logger.warning("Failed to write cache entry for %s: %s", mark, e)


__all__ = ["FetchResult", "Manifest", "NpmMetadataFetcher"]
