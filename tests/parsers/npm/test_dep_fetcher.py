"""Tests for NpmMetadataFetcher against an in-memory registry."""

from __future__ import annotations

import json

import pytest

from deptree.config import ScanConfig
from deptree.parsers.base import FetchFailure, ResolutionFailure
from deptree.parsers.npm.dep_fetcher import NpmMetadataFetcher
from deptree.runtime.cache import MemoryCache

from conftest import REGISTRY, FakeRegistry


def _fetcher(registry: FakeRegistry, **options) -> NpmMetadataFetcher:
    config = ScanConfig(registry=REGISTRY, **options)
    return NpmMetadataFetcher(config, session=registry)


class ExplodingCache:
    """Cache whose writes always fail."""

    def get(self, key):
        return None

    def set(self, key, value):
        raise OSError("disk full")


def test_registry_fetch_resolves_range(registry: FakeRegistry) -> None:
    registry.publish("left-pad", {"1.0.0": {}, "1.3.0": {"license": "WTFPL"}, "2.0.0": {}})

    manifest = _fetcher(registry).fetch("left-pad", "^1.0.0")

    assert manifest["version"] == "1.3.0"
    assert manifest["license"] == "WTFPL"
    assert registry.requests == [f"{REGISTRY}/left-pad"]


def test_scoped_name_is_escaped_in_url(registry: FakeRegistry) -> None:
    registry.publish("@scope/pkg", {"1.0.0": {}})

    manifest = _fetcher(registry).fetch("@scope/pkg", "latest")

    assert manifest["name"] == "@scope/pkg"
    assert registry.requests_for("@scope/pkg") == 1


def test_not_found_is_a_failure_value_and_not_retried(registry: FakeRegistry) -> None:
    result = _fetcher(registry, max_retries=3).fetch("missing", "1.0.0")

    assert isinstance(result, FetchFailure)
    assert result.status_code == 404
    assert "404" in result.message
    assert "missing" in result.message
    assert registry.requests_for("missing") == 1


def test_server_errors_are_retried(registry: FakeRegistry, no_backoff) -> None:
    registry.errors[f"{REGISTRY}/flaky"] = 503

    result = _fetcher(registry, max_retries=3).fetch("flaky", "1.0.0")

    assert isinstance(result, FetchFailure)
    assert result.status_code == 503
    assert registry.requests_for("flaky") == 3


def test_transport_error_is_a_failure_value(
    registry: FakeRegistry, no_backoff, connection_error
) -> None:
    registry.errors[f"{REGISTRY}/down"] = connection_error

    result = _fetcher(registry, max_retries=2).fetch("down", "1.0.0")

    assert isinstance(result, FetchFailure)
    assert "connection refused" in result.message


def test_unsatisfiable_range_is_a_resolution_failure(registry: FakeRegistry) -> None:
    registry.publish("old", {"0.1.0": {}})

    result = _fetcher(registry).fetch("old", "^1.0.0")

    assert isinstance(result, ResolutionFailure)
    assert result.message == "no satisfying version for ^1.0.0"


def test_cache_hit_skips_network(registry: FakeRegistry) -> None:
    cache = MemoryCache()
    cache.set("cached@1.0.0", json.dumps({"name": "cached", "version": "1.0.0"}))

    manifest = _fetcher(registry, cache=cache).fetch("cached", "1.0.0")

    assert manifest == {"name": "cached", "version": "1.0.0"}
    assert registry.requests == []


def test_successful_fetch_is_written_to_cache(registry: FakeRegistry) -> None:
    registry.publish("lib", {"1.0.0": {}, "1.1.0": {}})
    cache = MemoryCache()

    _fetcher(registry, cache=cache).fetch("lib", "~1.0.0")

    assert json.loads(cache.get("lib@~1.0.0"))["version"] == "1.0.0"


def test_failures_are_not_cached(registry: FakeRegistry) -> None:
    cache = MemoryCache()

    _fetcher(registry, cache=cache).fetch("missing", "1.0.0")

    assert len(cache) == 0


def test_unparseable_cache_entry_falls_back_to_network(registry: FakeRegistry) -> None:
    registry.publish("lib", {"1.0.0": {}})
    cache = MemoryCache()
    cache.set("lib@1.0.0", "{not json")

    manifest = _fetcher(registry, cache=cache).fetch("lib", "1.0.0")

    assert manifest["version"] == "1.0.0"
    assert registry.requests_for("lib") == 1


def test_cache_write_failure_does_not_fail_fetch(registry: FakeRegistry) -> None:
    registry.publish("lib", {"1.0.0": {}})

    manifest = _fetcher(registry, cache=ExplodingCache()).fetch("lib", "1.0.0")

    assert manifest["version"] == "1.0.0"


def test_hosted_git_spec_reads_raw_manifest(registry: FakeRegistry) -> None:
    url = "https://raw.githubusercontent.com/acme/widget/v2/package.json"
    registry.raw[url] = {"name": "widget", "version": "2.0.0"}

    manifest = _fetcher(registry).fetch("widget", "github:acme/widget#v2")

    assert manifest == {"name": "widget", "version": "2.0.0"}
    assert registry.requests == [url]


def test_hosted_git_spec_uses_default_ref(registry: FakeRegistry) -> None:
    url = "https://raw.githubusercontent.com/acme/widget/main/package.json"
    registry.raw[url] = {"name": "widget", "version": "0.0.1"}

    manifest = _fetcher(registry, hosted_default_ref="main").fetch(
        "widget", "git+https://github.com/acme/widget.git"
    )

    assert manifest["version"] == "0.0.1"


def test_unsupported_git_host_falls_back_to_registry(registry: FakeRegistry) -> None:
    registry.publish("lib", {"1.0.0": {}})
    spec = "git+https://git.example.com/team/lib.git"

    result = _fetcher(registry).fetch("lib", spec)

    assert isinstance(result, ResolutionFailure)
    assert result.message == f"no satisfying version for {spec}"
    assert registry.requests == [f"{REGISTRY}/lib"]


def test_local_path_spec_never_reaches_a_git_host(registry: FakeRegistry) -> None:
    result = _fetcher(registry).fetch("local", "../local")

    assert isinstance(result, FetchFailure)
    assert registry.requests == [f"{REGISTRY}/local"]


def test_invalid_json_body_is_a_failure(registry: FakeRegistry) -> None:
    registry.raw[f"{REGISTRY}/broken"] = ValueError("Expecting value")
    # raw entries are returned as bodies; json() raises the stored exception
    result = _fetcher(registry).fetch("broken", "1.0.0")

    assert isinstance(result, FetchFailure)
    assert "invalid JSON" in result.message


@pytest.mark.parametrize("spec", ["latest", "*"])
def test_fetch_document_exposes_all_versions(registry: FakeRegistry, spec: str) -> None:
    registry.publish("lib", {"1.0.0": {}, "2.0.0": {}})

    document = _fetcher(registry).fetch_document("lib")

    assert sorted(document["versions"]) == ["1.0.0", "2.0.0"]
    assert _fetcher(registry).fetch("lib", spec)["version"] == "2.0.0"
