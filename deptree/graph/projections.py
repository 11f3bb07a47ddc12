"""Visit arena and the three projections of a scan.

Every dequeued edge owns exactly one :class:`VisitRecord`. The nested tree
and the flattened combined tree are index structures over the same records,
so the two views can never disagree on ``name``, ``version``, ``message``,
``license`` or ``package``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import networkx as nx

from deptree.parsers.npm.package_arg import make_mark

logger = logging.getLogger("deptree.graph.projections")

SUCCESS_MESSAGE = "success"


class VisitState(str, Enum):
    """Lifecycle state of a visit record."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CIRCULAR = "circular"


@dataclass
class VisitRecord:
    """Canonical per-visit result shared by all projections.

    Attributes:
        visit_id: Arena index.
        name: Package name (None for the synthetic lockfile root).
        version: Requested spec until populated, resolved version afterwards.
        depth: Traversal level the record was visited at.
        children: Tree index, category -> mark -> visit id.
        combined: Flattened index, mark -> visit id (one child per mark).
        requested: ``name@spec`` the record was allocated for.
    """

    visit_id: int
    name: Optional[str]
    version: Optional[str]
    depth: int
    state: VisitState = VisitState.PENDING
    message: Optional[str] = None
    license: Optional[str] = None
    package: Optional[Dict[str, Any]] = None
    children: Dict[str, Dict[str, int]] = field(default_factory=dict)
    combined: Dict[str, int] = field(default_factory=dict)
    requested: str = ""

    @property
    def mark(self) -> str:
        return make_mark(self.name or "", self.version or "")

    @property
    def synthetic(self) -> bool:
        return self.name is None

    def summary(self) -> Dict[str, Any]:
        """Node fields without children, in output order."""
        if self.synthetic:
            return {}
        data: Dict[str, Any] = {"name": self.name, "version": self.version}
        if self.state is VisitState.CIRCULAR:
            data["circular"] = True
            return data
        if self.message is not None:
            data["message"] = self.message
        if self.state is VisitState.SUCCESS:
            data["license"] = self.license
            data["package"] = self.package
        return data


class GraphProjections:
    """Arena of visit records plus the first-seen map.

    Mutated only by the scanner between level barriers.
    """

    def __init__(self) -> None:
        self._records: List[VisitRecord] = []
        self._map: Dict[str, int] = {}
        self.root_id: Optional[int] = None

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, visit_id: int) -> VisitRecord:
        return self._records[visit_id]

    def allocate(self, name: Optional[str], version: Optional[str], depth: int) -> VisitRecord:
        record = VisitRecord(len(self._records), name, version, depth)
        record.requested = make_mark(name or "", version or "")
        self._records.append(record)
        if self.root_id is None:
            self.root_id = record.visit_id
        return record

    def attach(
        self,
        parent: VisitRecord,
        category: str,
        name: str,
        version: str,
    ) -> Tuple[VisitRecord, bool]:
        """Allocate (or reuse) the child slot for ``name@version`` under ``parent``.

        A mark appearing in several categories of the same parent shares one
        record, so it is fetched once.

        Returns:
            Tuple[VisitRecord, bool]: Child record and whether it was created.
        """
        mark = make_mark(name, version)
        existing = parent.combined.get(mark)
        created = existing is None
        if created:
            child = self.allocate(name, version, parent.depth + 1)
            parent.combined[mark] = child.visit_id
        else:
            child = self._records[existing]
        parent.children.setdefault(category, {})[mark] = child.visit_id
        return child, created

    def populate(
        self,
        record: VisitRecord,
        manifest: Dict[str, Any],
        license: Optional[str],
    ) -> None:
        """Record a successful visit and register it in the map when new."""
        record.name = manifest.get("name") or record.name
        record.version = manifest.get("version") or record.version
        record.message = SUCCESS_MESSAGE
        record.license = license
        record.package = manifest
        record.state = VisitState.SUCCESS
        self._remember(record)

    def fail(self, record: VisitRecord, message: str) -> None:
        """Record a failed visit; it keeps its requested version."""
        record.message = message
        record.state = VisitState.FAILED
        self._remember(record)

    def _remember(self, record: VisitRecord) -> None:
        # first visit wins; the root never enters the map
        mark = record.mark
        if record.depth > 0 and mark not in self._map:
            self._map[mark] = record.visit_id

    def mark_circular(self, record: VisitRecord) -> None:
        record.state = VisitState.CIRCULAR

    def result(self) -> "ScanResult":
        return ScanResult(self)


class ScanResult:
    """The three views of one traversal, rendered as JSON-ready dicts."""

    FORMATS = {
        "default": "tree",
        "tree": "tree",
        "combined": "combined_tree",
        "flat": "map",
        "map": "map",
    }

    def __init__(self, projections: GraphProjections) -> None:
        self._projections = projections

    @property
    def records(self) -> List[VisitRecord]:
        return [self._projections[i] for i in range(len(self._projections))]

    @property
    def root(self) -> Optional[VisitRecord]:
        if self._projections.root_id is None:
            return None
        return self._projections[self._projections.root_id]

    @property
    def tree(self) -> Dict[str, Any]:
        """Nested view with dependency categories kept apart."""
        if self.root is None:
            return {}
        return self._render_tree(self.root)

    @property
    def combined_tree(self) -> Dict[str, Any]:
        """Nested view with every category flattened into ``dependencies``."""
        if self.root is None:
            return {}
        return self._render_combined(self.root)

    @property
    def map(self) -> Dict[str, Dict[str, Any]]:
        """Flat first-seen lookup by resolved mark (root excluded)."""
        return {
            mark: self._projections[visit_id].summary()
            for mark, visit_id in self._projections._map.items()
        }

    def select(self, fmt: str = "default") -> Dict[str, Any]:
        """Return the view named by an output format.

        Unknown formats fall back to the tree.
        """
        attr = self.FORMATS.get(fmt)
        if attr is None:
            logger.warning("Unknown format %r, using default", fmt)
            attr = "tree"
        return getattr(self, attr)

    def to_dict(self) -> Dict[str, Any]:
        return {"tree": self.tree, "combinedTree": self.combined_tree, "map": self.map}

    def to_graph(self) -> nx.DiGraph:
        """Directed graph over visited packages.

        Nodes are resolved marks (requested marks for failed visits); edges
        carry the dependency ``category``. A circular child is not a node of
        its own: its edge points back at the visit it repeats.
        """
        graph = nx.DiGraph()
        visited: Dict[str, str] = {}
        for record in self.records:
            if record.synthetic or record.state is VisitState.CIRCULAR:
                continue
            node_id = record.mark
            visited.setdefault(record.requested, node_id)
            if not graph.has_node(node_id):
                graph.add_node(
                    node_id,
                    name=record.name,
                    version=record.version,
                    state=record.state.value,
                    message=record.message,
                    license=record.license,
                )
        for record in self.records:
            for category, entries in record.children.items():
                for visit_id in entries.values():
                    child = self._projections[visit_id]
                    if child.state is VisitState.CIRCULAR:
                        target = visited.get(child.requested)
                        if target is None and graph.has_node(child.mark):
                            target = child.mark
                    else:
                        target = child.mark
                    if target is None:
                        logger.debug("No visit found for circular edge %s", child.requested)
                        continue
                    if record.synthetic:
                        graph.nodes[target]["root"] = True
                        continue
                    graph.add_edge(record.mark, target, category=category)
        return graph

    def _render_tree(self, record: VisitRecord) -> Dict[str, Any]:
        data = record.summary()
        for category, entries in record.children.items():
            data[category] = {
                mark: self._render_tree(self._projections[visit_id])
                for mark, visit_id in entries.items()
            }
        return data

    def _render_combined(self, record: VisitRecord) -> Dict[str, Any]:
        data = record.summary()
        if record.children:
            data["dependencies"] = {
                mark: self._render_combined(self._projections[visit_id])
                for mark, visit_id in record.combined.items()
            }
        return data


__all__ = [
    "GraphProjections",
    "SUCCESS_MESSAGE",
    "ScanResult",
    "VisitRecord",
    "VisitState",
]
