"""JSON export for scan results."""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, TextIO

import networkx as nx

from deptree.graph.projections import ScanResult

logger = logging.getLogger("deptree.export.json")

OUTPUT_FORMATS = ("default", "combined", "flat", "graph")


def render_result(result: ScanResult, fmt: str = "default") -> Any:
    """Return the JSON-ready document for an output format.

    ``graph`` renders networkx node-link data; the other formats select one
    of the three projections.
    """
    if fmt == "graph":
        return nx.readwrite.json_graph.node_link_data(result.to_graph(), edges="edges")
    return result.select(fmt)


def export_json(
    result: ScanResult,
    fmt: str = "default",
    output_path: Optional[Path] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """Write a scan result as indented JSON.

    Args:
        result: Scan result to export.
        fmt: One of ``default``, ``combined``, ``flat``, ``graph``.
        output_path: File to write; stdout (or ``stream``) when omitted.
        stream: Alternative text stream used when no path is given.
    """
    data = render_result(result, fmt)

    if output_path is None:
        out = stream or sys.stdout
        json.dump(data, out, indent=2, ensure_ascii=False)
        out.write("\n")
        return

    output_path = Path(output_path)
    logger.info("Exporting %s view to JSON: %s", fmt, output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    logger.info("JSON export completed: %s", output_path)
