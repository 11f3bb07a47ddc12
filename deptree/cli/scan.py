"""Scan command implementation."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from rich.console import Console

from deptree.config import ScanConfig
from deptree.export.json import export_json
from deptree.graph.projections import ScanResult
from deptree.parsers.base import ConfigurationError
from deptree.parsers.npm.reader import read_package_json, read_package_lock, read_yarn_lock
from deptree.runtime.cache import FileCache
from deptree.runtime.config_loader import load_scan_config
from deptree.runtime.scanner import Scanner

logger = logging.getLogger("deptree.cli.scan")

RECOVERABLE_SCAN_ERRORS = (
    ConfigurationError,
    json.JSONDecodeError,
    OSError,
    TypeError,
    ValidationError,
    ValueError,
)


def build_config(args) -> ScanConfig:
    """Merge the config source with command-line options (options win)."""
    overrides: Dict[str, Any] = {
        "development": getattr(args, "development", None),
        "optional": getattr(args, "optional", None),
        "peer": getattr(args, "peer", None),
        "depth": getattr(args, "depth", None),
        "registry": getattr(args, "registry", None),
        "max_workers": getattr(args, "workers", None),
        "debug": True if getattr(args, "debug", False) else None,
    }
    cache_dir = getattr(args, "cache_dir", None)
    if cache_dir:
        overrides["cache"] = FileCache(Path(cache_dir).expanduser())
    return load_scan_config(getattr(args, "config", None), **overrides)


def run_scan(args, config: ScanConfig, on_level=None) -> ScanResult:
    """Read the seed named by ``args`` and run one scan."""
    scanner = Scanner(config, on_level=on_level)

    name = getattr(args, "name", None) or getattr(args, "package", None)
    if name:
        return scanner.scan_name(name, getattr(args, "pkg_version", None))

    package_json = getattr(args, "package_json", None)
    yarn = getattr(args, "yarn", None)
    if package_json:
        text = Path(package_json).read_text(encoding="utf-8")
        return scanner.scan_package_json(read_package_json(text))
    if yarn:
        text = Path(yarn).read_text(encoding="utf-8")
        return scanner.scan_lock(read_yarn_lock(text))
    text = Path(args.lock).read_text(encoding="utf-8")
    return scanner.scan_lock(read_package_lock(text))


def scan_command(args, console: Optional[Console] = None) -> int:
    """Execute scan command.

    Args:
        args: Parsed command-line arguments.
        console: Console used for the spinner and status lines (stderr).

    Returns:
        int: Exit code.
    """
    console = console or Console(stderr=True)
    show_spinner = not getattr(args, "debug", False)
    start_time = time.time()

    try:
        config = build_config(args)
        if show_spinner:
            with console.status("Scanning") as status:
                def on_level(depth: int, count: int) -> None:
                    status.update(f"Scanning depth {depth} ({count} packages)")

                result = run_scan(args, config, on_level=on_level)
        else:
            result = run_scan(args, config)
    except KeyboardInterrupt:
        logger.warning("Scan interrupted by user (Ctrl+C)")
        return 130
    except RECOVERABLE_SCAN_ERRORS as e:
        if show_spinner:
            console.print(f"[red]✗[/red] Scan failed: {e}")
        logger.error("Scan failed: %s", e, exc_info=getattr(args, "debug", False))
        return 1

    elapsed = time.time() - start_time
    if show_spinner:
        console.print(f"[green]✓[/green] Scan success ({len(result.records)} packages, {elapsed:.2f}s)")
    logger.info("Scan completed in %.2fs", elapsed)

    output = getattr(args, "file", None)
    try:
        export_json(result, getattr(args, "format", "default"), Path(output) if output else None)
    except OSError as e:
        logger.error("Failed to write output %s: %s", output, e)
        return 1
    return 0
