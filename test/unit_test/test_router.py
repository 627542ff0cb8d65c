"""
Unit tests for the asset graph and route resolver
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from farm_adapter.routing import AssetGraph, Route, RouteStep, Router, materialize
from farm_adapter.types import FarmFromMode, FarmToMode
from farm_adapter.workflow import RunContext, Step, StepResult


class Hop(Step):
    """Step that remembers how it was built"""

    def __init__(self, label, account, from_mode, to_mode):
        self.name = label
        self.account = account
        self.from_mode = from_mode
        self.to_mode = to_mode

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        return StepResult(self.name, amount_in_step, amount_in_step + 1)


def hop_builder(label):
    def build(account, from_mode, to_mode):
        return Hop(label, account, from_mode, to_mode)
    return build


def self_edge(symbol):
    return hop_builder(f"self:{symbol}")


@pytest.fixture
def chain_graph():
    """A -> B -> C -> D plus a parallel B -> E"""
    graph = AssetGraph()
    graph.set_edge("A", "B", hop_builder("A-B"))
    graph.set_edge("B", "C", hop_builder("B-C"))
    graph.set_edge("B", "E", hop_builder("B-E"))
    graph.set_edge("C", "D", hop_builder("C-D"))
    graph.set_node("X")
    return graph


def test_route_correctness(chain_graph):
    print("Testing route correctness...")

    route = Router(chain_graph, self_edge).get_route("A", "D")

    assert len(route) == 3
    assert [(s.from_symbol, s.to_symbol) for s in route] == [("A", "B"), ("B", "C"), ("C", "D")]
    assert str(route) == "A -> B -> C -> D"
    assert route.to_array() == ["A", "B", "C", "D"]

    # Route invariants: consecutive hops share a node
    steps = list(route)
    for left, right in zip(steps, steps[1:]):
        assert left.to_symbol == right.from_symbol

    print("  route correctness: PASSED")


def test_self_route(chain_graph):
    print("Testing self route...")

    route = Router(chain_graph, self_edge).get_route("X", "X")

    assert len(route) == 1
    step = route.get_step(0)
    assert step.from_symbol == step.to_symbol == "X"
    assert str(route) == "X -> X"
    assert step.build("0xabc", FarmFromMode.EXTERNAL, FarmToMode.EXTERNAL).name == "self:X"

    print("  self route: PASSED")


def test_self_route_for_unknown_node(chain_graph):
    # Self routes never consult the graph
    route = Router(chain_graph, self_edge).get_route("ZZZ", "ZZZ")
    assert route.to_array() == ["ZZZ", "ZZZ"]


def test_no_route(chain_graph):
    print("Testing no route...")

    router = Router(chain_graph, self_edge)

    # Edges are directed
    assert len(router.get_route("D", "A")) == 0
    # Isolated node
    assert len(router.get_route("A", "X")) == 0
    # Absent nodes
    assert len(router.get_route("A", "Q")) == 0
    assert len(router.get_route("Q", "A")) == 0

    empty = router.get_route("D", "A")
    assert not empty
    assert empty.to_array() == []
    assert str(empty) == ""

    print("  no route: PASSED")


def test_idempotent_materialization(chain_graph):
    print("Testing idempotent materialization...")

    route = Router(chain_graph, self_edge).get_route("A", "D")
    step = route.get_step(1)

    first = step.build("0xabc", FarmFromMode.EXTERNAL, FarmToMode.INTERNAL)
    second = step.build("0xabc", FarmFromMode.INTERNAL, FarmToMode.EXTERNAL)

    assert first is not second
    assert (first.from_mode, first.to_mode) == (FarmFromMode.EXTERNAL, FarmToMode.INTERNAL)
    assert (second.from_mode, second.to_mode) == (FarmFromMode.INTERNAL, FarmToMode.EXTERNAL)

    print("  idempotent materialization: PASSED")


def test_parallel_edges_last_registration_wins():
    print("Testing parallel edges...")

    graph = AssetGraph()
    graph.set_edge("A", "B", hop_builder("first"))
    graph.set_edge("A", "B", hop_builder("second"))

    assert len(graph.edges_between("A", "B")) == 2
    assert graph.successors("A") == ["B"]
    assert graph.edge("A", "B").build("", FarmFromMode.EXTERNAL, FarmToMode.EXTERNAL).name == "second"

    route = Router(graph, self_edge).get_route("A", "B")
    assert route.get_step(0).build("", FarmFromMode.EXTERNAL, FarmToMode.EXTERNAL).name == "second"

    print("  parallel edges: PASSED")


def test_tie_break_follows_registration_order():
    """Two shortest paths: the one registered first wins"""
    graph = AssetGraph()
    graph.set_edge("S", "L", hop_builder("S-L"))
    graph.set_edge("S", "R", hop_builder("S-R"))
    graph.set_edge("R", "T", hop_builder("R-T"))
    graph.set_edge("L", "T", hop_builder("L-T"))

    assert Router(graph, self_edge).get_route("S", "T").to_array() == ["S", "L", "T"]

    graph2 = AssetGraph()
    graph2.set_edge("S", "R", hop_builder("S-R"))
    graph2.set_edge("S", "L", hop_builder("S-L"))
    graph2.set_edge("R", "T", hop_builder("R-T"))
    graph2.set_edge("L", "T", hop_builder("L-T"))

    assert Router(graph2, self_edge).get_route("S", "T").to_array() == ["S", "R", "T"]


def test_shortest_path_preferred():
    graph = AssetGraph()
    graph.set_edge("A", "B", hop_builder("A-B"))
    graph.set_edge("B", "C", hop_builder("B-C"))
    graph.set_edge("C", "D", hop_builder("C-D"))
    graph.set_edge("A", "D", hop_builder("A-D"))

    assert Router(graph, self_edge).get_route("A", "D").to_array() == ["A", "D"]


def test_graph_bookkeeping():
    graph = AssetGraph()
    edge = graph.set_edge("A", "B", hop_builder("A-B"), label="swap")
    graph.set_edge("A", "C", hop_builder("A-C"))

    assert graph.has_node("A") and graph.has_node("B")
    assert graph.nodes == ["A", "B", "C"]
    assert len(graph) == 3
    assert edge.label == "swap"
    assert [e.target for e in graph.out_edges("A")] == ["B", "C"]
    assert graph.out_edges("Z") == []
    assert graph.edge("B", "A") is None
    assert repr(graph) == "AssetGraph(nodes=3, edges=2)"


def test_materialize_modes(chain_graph):
    print("Testing materialize...")

    route = Router(chain_graph, self_edge).get_route("A", "D")
    steps = materialize(route, "0xabc", FarmFromMode.EXTERNAL, FarmToMode.EXTERNAL)

    assert [s.name for s in steps] == ["A-B", "B-C", "C-D"]
    assert [s.from_mode for s in steps] == [
        FarmFromMode.EXTERNAL, FarmFromMode.INTERNAL_TOLERANT, FarmFromMode.INTERNAL_TOLERANT,
    ]
    assert [s.to_mode for s in steps] == [FarmToMode.INTERNAL, FarmToMode.INTERNAL, FarmToMode.EXTERNAL]
    assert all(s.account == "0xabc" for s in steps)

    # A single hop gets both caller modes
    (only,) = materialize(Route([RouteStep("A", "B", hop_builder("A-B"))]), "0xabc",
                          FarmFromMode.INTERNAL, FarmToMode.INTERNAL)
    assert (only.from_mode, only.to_mode) == (FarmFromMode.INTERNAL, FarmToMode.INTERNAL)

    assert materialize(Route(), "0xabc") == []

    print("  materialize: PASSED")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
