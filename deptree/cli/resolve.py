"""Resolve command implementation."""

import logging

from pydantic import ValidationError

from deptree.parsers.base import FetchError, ResolutionError, is_failure
from deptree.parsers.npm.dep_fetcher import NpmMetadataFetcher
from deptree.parsers.npm.package_arg import split_package_arg
from deptree.parsers.npm.version_resolver import resolve_version
from deptree.runtime.config_loader import load_scan_config

logger = logging.getLogger("deptree.cli.resolve")


def resolve_version_of(fetcher: NpmMetadataFetcher, name: str, spec: str) -> str:
    """Resolve ``spec`` against the registry document of ``name``.

    Raises:
        FetchError: If the registry document cannot be fetched.
        ResolutionError: If no published version satisfies ``spec``.
    """
    document = fetcher.fetch_document(name)
    if is_failure(document):
        raise document.to_error()

    resolved = resolve_version(
        spec,
        (document.get("versions") or {}).keys(),
        document.get("dist-tags") or {},
    )
    if is_failure(resolved):
        raise resolved.to_error()
    return resolved


def resolve_command(args) -> int:
    """Print the version a range or dist-tag resolves to.

    Args:
        args: Parsed command-line arguments (``package``, ``range``, ``registry``).

    Returns:
        int: Exit code, 1 when the document cannot be fetched or nothing matches.
    """
    name, spec = split_package_arg(args.package)
    if getattr(args, "range", None):
        spec = args.range

    try:
        config = load_scan_config(None, registry=getattr(args, "registry", None))
        resolved = resolve_version_of(NpmMetadataFetcher(config), name, spec)
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    except FetchError as e:
        logger.error("%s", e)
        return 1
    except ResolutionError as e:
        logger.error("%s: %s", name, e)
        return 1

    print(f"{name}@{resolved}")
    return 0
