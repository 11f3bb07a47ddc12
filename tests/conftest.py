"""Shared fixtures: an in-memory npm registry served through a fake session."""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import pytest
import requests

REGISTRY = "https://registry.test"


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, status_code: int, body: Any = None, reason: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.reason = reason

    def json(self) -> Any:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeRegistry:
    """Serves registry documents and raw manifests by URL and records requests."""

    def __init__(self, base: str = REGISTRY) -> None:
        self.base = base
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.raw: Dict[str, Dict[str, Any]] = {}
        self.errors: Dict[str, Any] = {}
        self.requests: List[str] = []

    def publish(
        self,
        name: str,
        versions: Dict[str, Dict[str, Any]],
        dist_tags: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Publish a package; each version value holds extra manifest fields."""
        document = {
            "name": name,
            "dist-tags": dist_tags or {"latest": list(versions)[-1]},
            "versions": {
                version: {"name": name, "version": version, **fields}
                for version, fields in versions.items()
            },
        }
        self.documents[name] = document
        return document

    def requests_for(self, name: str) -> int:
        return self.requests.count(f"{self.base}/{name}")

    def get(self, url: str, timeout: Optional[float] = None) -> FakeResponse:
        self.requests.append(unquote(url))
        if url in self.errors:
            error = self.errors[url]
            if isinstance(error, Exception):
                raise error
            return FakeResponse(error, reason="Server Error")
        if url in self.raw:
            return FakeResponse(200, self.raw[url], "OK")
        if url.startswith(self.base + "/"):
            name = unquote(url[len(self.base) + 1:])
            if name in self.documents:
                return FakeResponse(200, self.documents[name], "OK")
        return FakeResponse(404, {"error": "Not found"}, "Not Found")


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    """Disable retry sleeps in the metadata fetcher."""
    from deptree.parsers.npm.dep_fetcher import NpmMetadataFetcher

    monkeypatch.setattr(NpmMetadataFetcher, "RETRY_BACKOFF", 0.0)


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("connection refused")
