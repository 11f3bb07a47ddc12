"""Tests for the visit arena and its rendered views."""

from __future__ import annotations

import networkx as nx

from deptree.graph.projections import GraphProjections, VisitState


def _build() -> GraphProjections:
    """root@1.0.0 -> (dependencies) a@^1, (devDependencies) b@2.0.0 -> a@^1"""
    projections = GraphProjections()
    root = projections.allocate("root", "1.0.0", 0)
    projections.populate(root, {"name": "root", "version": "1.0.0"}, "MIT")

    a, _ = projections.attach(root, "dependencies", "a", "^1")
    b, _ = projections.attach(root, "devDependencies", "b", "2.0.0")
    projections.populate(a, {"name": "a", "version": "1.4.0"}, None)
    projections.fail(b, "could not load b@2.0.0: 404 Not Found")
    return projections


def test_first_allocation_is_the_root() -> None:
    projections = _build()
    result = projections.result()

    assert result.root.name == "root"
    assert len(result.records) == 3


def test_attach_reuses_mark_across_categories() -> None:
    projections = GraphProjections()
    root = projections.allocate("root", "1.0.0", 0)

    first, created_first = projections.attach(root, "dependencies", "a", "^1")
    second, created_second = projections.attach(root, "peerDependencies", "a", "^1")

    assert created_first and not created_second
    assert first is second
    assert first.depth == 1
    assert root.children == {
        "dependencies": {"a@^1": first.visit_id},
        "peerDependencies": {"a@^1": first.visit_id},
    }


def test_tree_and_combined_views() -> None:
    result = _build().result()

    assert result.tree["license"] == "MIT"
    assert result.tree["dependencies"]["a@^1"]["version"] == "1.4.0"
    assert result.tree["devDependencies"]["b@2.0.0"]["message"].endswith("404 Not Found")
    assert set(result.combined_tree["dependencies"]) == {"a@^1", "b@2.0.0"}


def test_map_is_keyed_by_resolved_mark_and_excludes_root() -> None:
    result = _build().result()

    assert list(result.map) == ["a@1.4.0", "b@2.0.0"]
    assert result.map["a@1.4.0"]["package"] == {"name": "a", "version": "1.4.0"}


def test_circular_summary() -> None:
    projections = GraphProjections()
    root = projections.allocate("a", "1.0.0", 0)
    child, _ = projections.attach(root, "dependencies", "a", "1.0.0")
    projections.mark_circular(child)

    assert child.state is VisitState.CIRCULAR
    assert child.summary() == {"name": "a", "version": "1.0.0", "circular": True}
    assert projections.result().map == {}


def test_select_formats() -> None:
    result = _build().result()

    assert result.select("default") == result.tree
    assert result.select("combined") == result.combined_tree
    assert result.select("flat") == result.map
    assert result.select("unknown") == result.tree
    assert set(result.to_dict()) == {"tree", "combinedTree", "map"}


def test_graph_projection() -> None:
    graph = _build().result().to_graph()

    assert isinstance(graph, nx.DiGraph)
    assert set(graph.nodes) == {"root@1.0.0", "a@1.4.0", "b@2.0.0"}
    assert graph.edges["root@1.0.0", "b@2.0.0"]["category"] == "devDependencies"
    assert graph.nodes["b@2.0.0"]["state"] == "failed"


def test_synthetic_root_renders_only_children() -> None:
    projections = GraphProjections()
    root = projections.allocate(None, None, 0)
    child, _ = projections.attach(root, "dependencies", "x", "1.0.0")
    projections.populate(child, {"name": "x", "version": "1.0.0"}, None)

    result = projections.result()

    assert result.tree == {"dependencies": {"x@1.0.0": child.summary()}}
    graph = result.to_graph()
    assert list(graph.nodes) == ["x@1.0.0"]
    assert graph.nodes["x@1.0.0"]["root"] is True


def test_circular_child_links_back_to_resolved_visit() -> None:
    """a@latest -> b@^1 -> a@^1 -> b@^1 (cut)"""
    projections = GraphProjections()
    root = projections.allocate("a", "latest", 0)
    projections.populate(root, {"name": "a", "version": "1.0.0"}, None)
    b, _ = projections.attach(root, "dependencies", "b", "^1")
    projections.populate(b, {"name": "b", "version": "1.0.0"}, None)
    a, _ = projections.attach(b, "dependencies", "a", "^1")
    projections.populate(a, {"name": "a", "version": "1.0.0"}, None)
    again, _ = projections.attach(a, "dependencies", "b", "^1")
    projections.mark_circular(again)

    graph = projections.result().to_graph()

    assert set(graph.nodes) == {"a@1.0.0", "b@1.0.0"}
    assert set(graph.edges) == {("a@1.0.0", "b@1.0.0"), ("b@1.0.0", "a@1.0.0")}
