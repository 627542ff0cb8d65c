"""
Asset conversion graph

Directed multigraph keyed by asset symbol. Each edge carries a builder
that turns the edge into a workflow Step for a given account and modes.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..types import FarmFromMode, FarmToMode
from ..workflow.base import Step

# build(account, from_mode, to_mode) -> Step
StepBuilder = Callable[[str, FarmFromMode, FarmToMode], Step]


@dataclass(frozen=True)
class Edge:
    """
    One conversion between two nodes

    Attributes:
        source: Symbol the edge starts from
        target: Symbol the edge leads to
        edge_id: Sequence number, unique per graph
        build: Step builder
        label: Short description for diagnostics
    """
    source: str
    target: str
    edge_id: int
    build: StepBuilder
    label: str = ""


class AssetGraph:
    """
    Ordered adjacency lists: node -> [Edge, ...] in registration order.

    Parallel edges between the same pair are kept. Lookups by pair with
    edge() return the most recently registered one.
    """

    def __init__(self):
        self._adjacency: Dict[str, List[Edge]] = {}
        self._by_pair: Dict[Tuple[str, str], Edge] = {}
        self._next_id = 0

    def set_node(self, symbol: str) -> None:
        self._adjacency.setdefault(symbol, [])

    def has_node(self, symbol: str) -> bool:
        return symbol in self._adjacency

    @property
    def nodes(self) -> List[str]:
        return list(self._adjacency)

    def set_edge(self, source: str, target: str, build: StepBuilder, label: str = "") -> Edge:
        """Register an edge, adding either node if it is missing"""
        self.set_node(source)
        self.set_node(target)
        edge = Edge(source, target, self._next_id, build, label)
        self._next_id += 1
        self._adjacency[source].append(edge)
        self._by_pair[(source, target)] = edge
        return edge

    def out_edges(self, symbol: str) -> List[Edge]:
        return list(self._adjacency.get(symbol, []))

    def edges_between(self, source: str, target: str) -> List[Edge]:
        return [e for e in self._adjacency.get(source, []) if e.target == target]

    def edge(self, source: str, target: str) -> Optional[Edge]:
        """Most recently registered edge from source to target"""
        return self._by_pair.get((source, target))

    def successors(self, symbol: str) -> List[str]:
        """Distinct targets reachable in one hop, in first-registration order"""
        seen: List[str] = []
        for e in self._adjacency.get(symbol, []):
            if e.target not in seen:
                seen.append(e.target)
        return seen

    def __len__(self) -> int:
        return len(self._adjacency)

    def __repr__(self) -> str:
        edge_count = sum(len(v) for v in self._adjacency.values())
        return f"AssetGraph(nodes={len(self._adjacency)}, edges={edge_count})"
