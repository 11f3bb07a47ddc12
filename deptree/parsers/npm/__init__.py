"""NPM ecosystem package.

This package provides dependency metadata handling for npm packages,
including:
- npm range and dist-tag resolution
- registry and git-host manifest fetching
- license normalization
- package.json, package-lock.json and yarn.lock reading
"""

from deptree.parsers.npm.dep_fetcher import NpmMetadataFetcher
from deptree.parsers.npm.license import extract_license
from deptree.parsers.npm.package_arg import parse_hosted_ref, split_package_arg
from deptree.parsers.npm.reader import read_package_json, read_package_lock, read_yarn_lock
from deptree.parsers.npm.version_resolver import resolve_version

__all__ = [
    "NpmMetadataFetcher",
    "extract_license",
    "parse_hosted_ref",
    "read_package_json",
    "read_package_lock",
    "read_yarn_lock",
    "resolve_version",
    "split_package_arg",
]
