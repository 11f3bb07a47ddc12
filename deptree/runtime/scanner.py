"""Level-synchronous dependency traversal.

The scanner expands a package's declared dependencies breadth-first:

1. Seed the frontier from a package name, a parsed manifest, or lockfile pairs.
2. Fetch every edge of the current level concurrently.
3. Wait for the whole level to settle, then apply the results in frontier
   order: populate records, register them in the map, and collect the next
   frontier.
4. Stop when a level produces no new edges or the depth budget is reached.

Only the fetches run on worker threads; the arena, the map and the frontier
are touched by the calling thread alone, between level barriers.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from deptree.config import ScanConfig
from deptree.graph.projections import GraphProjections, ScanResult, VisitRecord
from deptree.parsers.base import MalformedInputError, is_failure
from deptree.parsers.npm.dep_fetcher import FetchResult, NpmMetadataFetcher
from deptree.parsers.npm.license import extract_license
from deptree.parsers.npm.package_arg import make_mark, split_package_arg

logger = logging.getLogger("deptree.runtime.scanner")

ConfigSource = Union[ScanConfig, Mapping[str, Any], None]
LevelCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Edge:
    """One not-yet-resolved dependency relationship.

    Attributes:
        record_id: Visit record the result is written to.
        name: Dependency name.
        version: Requested range, tag, version or git spec.
        lineage: Visit ids of the combined-tree ancestors, root first and
            parent last. Empty for a root edge.
    """

    record_id: int
    name: str
    version: str
    lineage: Tuple[int, ...] = ()

    @property
    def mark(self) -> str:
        return make_mark(self.name, self.version)


class Scanner:
    """Breadth-first, depth-bounded, cycle-safe dependency crawler.

    A scanner runs exactly one scan.

    Usage:
        scanner = Scanner({"depth": 2, "peer": True})
        result = scanner.scan_name("express", "^4.18.0")
        print(result.tree)

    Attributes:
        config: Validated scan configuration.
        fetcher: Metadata source exposing ``fetch(name, spec)``.
        depth: Level currently (or last) processed.
    """

    def __init__(
        self,
        config: ConfigSource = None,
        fetcher: Optional[Any] = None,
        on_level: Optional[LevelCallback] = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            config: ``ScanConfig`` or a mapping of its options.
            fetcher: Metadata fetcher; defaults to :class:`NpmMetadataFetcher`.
            on_level: Called with ``(depth, edge_count)`` before each level.
        """
        if config is None:
            config = ScanConfig.default()
        elif not isinstance(config, ScanConfig):
            config = ScanConfig.from_dict(dict(config))
        self.config = config
        self.fetcher = fetcher or NpmMetadataFetcher(config)
        self.on_level = on_level
        self.depth = 0

        self._projections = GraphProjections()
        self._queue: List[Edge] = []
        self._seed_marks: frozenset = frozenset()
        self._fetched: Dict[str, FetchResult] = {}
        self._started = False
        self._log = logger.info if config.debug else logger.debug

    # ------------------------------------------------------------------
    # Seeds
    # ------------------------------------------------------------------

    def scan_name(self, name: str, version: Optional[str] = None) -> ScanResult:
        """Scan a single package.

        Args:
            name: Package name, or ``name@spec`` when ``version`` is omitted.
            version: Range, tag, exact version or git spec.

        Raises:
            MalformedInputError: If the name is empty.
        """
        self._begin()
        if not version:
            name, version = split_package_arg(name)
        if not name:
            raise MalformedInputError("package name must be a non-empty string")

        root = self._projections.allocate(name, version, 0)
        edge = Edge(root.visit_id, name, version)
        self._seed_marks = frozenset([edge.mark])
        self._queue.append(edge)
        return self._run()

    def scan_package_json(self, manifest: Mapping[str, Any]) -> ScanResult:
        """Scan from an already parsed manifest, which becomes the depth-0 root.

        Raises:
            MalformedInputError: If ``manifest`` is not a mapping.
        """
        self._begin()
        if not isinstance(manifest, Mapping):
            raise MalformedInputError("package.json must be a JSON object")

        manifest = dict(manifest)
        root = self._projections.allocate(manifest.get("name"), manifest.get("version"), 0)
        if root.name is None:
            root.name = ""
        self._visit(root, manifest, ())
        return self._run()

    def scan_lock(self, entries: Iterable[Mapping[str, str]]) -> ScanResult:
        """Scan ``{name, version}`` pairs as depth-1 children of a synthetic root.

        Entries missing a name or version are ignored.

        Raises:
            MalformedInputError: If ``entries`` is not a list of mappings.
        """
        self._begin()
        if isinstance(entries, (str, bytes, Mapping)):
            raise MalformedInputError("lock entries must be a list of {name, version} pairs")
        entries = list(entries)
        if not all(isinstance(entry, Mapping) for entry in entries):
            raise MalformedInputError("lock entries must be a list of {name, version} pairs")

        root = self._projections.allocate(None, None, 0)
        for entry in entries:
            name, version = entry.get("name"), entry.get("version")
            if name and version:
                self._push(root, "dependencies", name, version, (root.visit_id,))
        return self._run()

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _begin(self) -> None:
        if self._started:
            raise RuntimeError("Scanner instances are single-use; create a new Scanner")
        self._started = True

    def _run(self) -> ScanResult:
        while self._queue:
            batch, self._queue = self._queue, []
            self.depth = self._projections[batch[0].record_id].depth

            self._log("depth %d: %d queued edges", self.depth, len(batch))
            if self.on_level is not None:
                self.on_level(self.depth, len(batch))

            self._process_batch(batch)
            self._log("depth %d end: %d edges queued for next level", self.depth, len(self._queue))

        self._log("scan done: %d visits", len(self._projections))
        return self._projections.result()

    def _process_batch(self, batch: List[Edge]) -> None:
        pending: List[Tuple[Edge, VisitRecord]] = []
        for edge in batch:
            record = self._projections[edge.record_id]
            if self._is_circular(edge):
                self._log("skip circular dependency %s", edge.mark)
                self._projections.mark_circular(record)
                continue
            pending.append((edge, record))

        results = self._fetch_all([edge for edge, _ in pending])

        for edge, record in pending:
            result = results[edge.mark]
            if is_failure(result):
                self._projections.fail(record, result.message)
                continue
            self._visit(record, result, edge.lineage + (record.visit_id,))
            self._log("walk end %s", edge.mark)

    def _fetch_all(self, edges: List[Edge]) -> Dict[str, FetchResult]:
        """Fetch each distinct mark once, concurrently, and wait for all."""
        todo: Dict[str, Edge] = {}
        for edge in edges:
            if edge.mark not in self._fetched and edge.mark not in todo:
                todo[edge.mark] = edge

        if todo:
            workers = min(self.config.max_workers, len(todo))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="deptree-fetch") as executor:
                fetched = executor.map(
                    lambda e: self.fetcher.fetch(e.name, e.version),
                    todo.values(),
                )
                self._fetched.update(zip(todo.keys(), fetched))

        return {edge.mark: self._fetched[edge.mark] for edge in edges}

    def _is_circular(self, edge: Edge) -> bool:
        """Check the edge's mark against its ancestor chain.

        The parent's own index always holds the mark, so it is only compared
        by its own resolved mark; ancestors above the parent are compared by
        their child indexes too.
        """
        if not edge.lineage:
            return False
        mark = edge.mark
        if mark in self._seed_marks:
            return True
        for position, visit_id in enumerate(reversed(edge.lineage)):
            ancestor = self._projections[visit_id]
            if not ancestor.synthetic and ancestor.mark == mark:
                return True
            if position > 0 and mark in ancestor.combined:
                return True
        return False

    def _visit(self, record: VisitRecord, manifest: Dict[str, Any], lineage: Tuple[int, ...]) -> None:
        """Populate a record and enqueue its dependencies unless at the depth budget."""
        self._projections.populate(record, manifest, extract_license(manifest))
        if lineage == ():
            lineage = (record.visit_id,)

        if not self.config.unlimited_depth and record.depth >= self.config.depth:
            return

        for category in self.config.enabled_categories():
            dependencies = manifest.get(category)
            if not isinstance(dependencies, Mapping) or not dependencies:
                continue
            for name, spec in dependencies.items():
                if not name or not isinstance(spec, str):
                    logger.debug("Ignoring malformed %s entry %r in %s", category, name, record.mark)
                    continue
                self._push(record, category, name, spec.strip() or "*", lineage)

    def _push(
        self,
        parent: VisitRecord,
        category: str,
        name: str,
        version: str,
        lineage: Tuple[int, ...],
    ) -> None:
        child, created = self._projections.attach(parent, category, name, version)
        if created:
            self._queue.append(Edge(child.visit_id, name, version, lineage))


def scan(
    name: Optional[str] = None,
    version: Optional[str] = None,
    *,
    manifest: Optional[Mapping[str, Any]] = None,
    lock: Optional[Iterable[Mapping[str, str]]] = None,
    config: ConfigSource = None,
    fetcher: Optional[Any] = None,
) -> ScanResult:
    """Run one scan from exactly one seed (name, manifest or lock entries)."""
    seeds = [seed for seed in (name, manifest, lock) if seed is not None]
    if len(seeds) != 1:
        raise MalformedInputError("exactly one of name, manifest or lock must be given")

    scanner = Scanner(config, fetcher=fetcher)
    if name is not None:
        return scanner.scan_name(name, version)
    if manifest is not None:
        return scanner.scan_package_json(manifest)
    return scanner.scan_lock(lock)


__all__ = ["Edge", "Scanner", "scan"]
