import pytest

from px.modules.graph import CycleError, DependencyGraph


def _graph(*edges, nodes=()):
    g = DependencyGraph()
    for n in nodes:
        g.add_node(n)
    for src, dst in edges:
        g.add_edge(src, dst)
    return g


def test_add_edge_keeps_graph_simple():
    g = DependencyGraph()
    assert g.add_edge("a", "b")
    assert not g.add_edge("a", "b")
    assert not g.add_edge("a", "a")
    assert g.edges == [("a", "b")]
    assert g.out_degree("a") == 1
    assert g.in_degree("b") == 1
    assert g.predecessors("b") == ["a"]


def test_reachable_includes_seeds_and_ignores_unknown():
    g = _graph(("app", "api"), ("api", "core"), ("other", "core"))
    assert g.reachable(["app"]) == {"app", "api", "core"}
    assert g.reachable(["nope"]) == set()


def test_subgraph_is_induced():
    g = _graph(("app", "api"), ("api", "core"), ("app", "core"), ("other", "core"))
    sub = g.subgraph({"app", "core", "missing"})
    assert sorted(sub.nodes) == ["app", "core"]
    assert sub.edges == [("app", "core")]
    # parent graph untouched
    assert len(g) == 4


def test_topo_order_dependencies_first():
    g = _graph(("app", "api"), ("api", "core"), ("app", "core"))
    assert g.topo_order() == ["core", "api", "app"]


def test_topo_order_breaks_ties_by_name():
    g = _graph(("z", "a"), nodes=("m", "b"))
    assert g.topo_order() == ["a", "b", "m", "z"]


def test_topo_order_respects_every_edge():
    g = _graph(("d", "b"), ("d", "c"), ("b", "a"), ("c", "a"), ("e", "d"))
    order = g.topo_order()
    for src, dst in g.edges:
        assert order.index(dst) < order.index(src)


def test_cycle_raises_and_names_cycle():
    g = _graph(("a", "b"), ("b", "c"), ("c", "a"), ("d", "a"))
    with pytest.raises(CycleError) as exc:
        g.topo_order()
    assert exc.value.cycle == ["a", "b", "c"]
    assert "a -> b -> c -> a" in str(exc.value)


def test_find_cycle_none_on_dag():
    g = _graph(("a", "b"), ("b", "c"))
    assert g.find_cycle() is None


def test_empty_graph():
    g = DependencyGraph()
    assert g.topo_order() == []
    assert g.reachable([]) == set()
