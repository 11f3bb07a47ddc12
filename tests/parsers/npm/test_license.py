"""Tests for manifest license normalization."""

from deptree.parsers.npm.license import extract_license


def test_string_license_is_returned_verbatim() -> None:
    assert extract_license({"license": "(MIT OR Apache-2.0)"}) == "(MIT OR Apache-2.0)"


def test_license_wins_over_deprecated_licenses() -> None:
    manifest = {"license": "ISC", "licenses": [{"type": "MIT"}]}
    assert extract_license(manifest) == "ISC"


def test_single_descriptor_array() -> None:
    assert extract_license({"licenses": [{"type": "MIT", "url": "x"}]}) == "MIT"


def test_duplicate_types_collapse() -> None:
    assert extract_license({"licenses": [{"type": "MIT"}, {"type": "MIT"}]}) == "MIT"


def test_multiple_types_are_joined_with_or() -> None:
    manifest = {"licenses": [{"type": "MIT"}, {"type": "Apache-2.0"}, {"url": "no-type"}]}
    assert extract_license(manifest) == "MIT OR Apache-2.0"


def test_legacy_object_license() -> None:
    assert extract_license({"license": {"type": "BSD-3-Clause"}}) == "BSD-3-Clause"


def test_private_package_without_license() -> None:
    assert extract_license({"name": "app", "private": True}) == "private"


def test_missing_license_is_none() -> None:
    assert extract_license({"name": "lib"}) is None
