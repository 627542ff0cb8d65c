"""
Route resolution over an AssetGraph
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .graph import AssetGraph, StepBuilder
from ..types import FarmFromMode, FarmToMode
from ..workflow.base import Step

logger = logging.getLogger(__name__)

# self_edge_builder(symbol) -> StepBuilder for a symbol -> same symbol route
SelfEdgeBuilder = Callable[[str], StepBuilder]


@dataclass(frozen=True)
class RouteStep:
    """
    One hop of a route

    `build(account, from_mode, to_mode)` returns a new Step on every call.
    """
    from_symbol: str
    to_symbol: str
    build: StepBuilder
    label: str = ""

    def __str__(self) -> str:
        return f"{self.from_symbol} -> {self.to_symbol}"


class Route:
    """
    Ordered hops from a source to a destination.

    An empty route means no path was found. A self route has a single hop
    whose from and to are the same symbol.
    """

    def __init__(self, steps: Optional[Sequence[RouteStep]] = None):
        self._steps: List[RouteStep] = list(steps or [])

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[RouteStep]:
        return iter(self._steps)

    def __bool__(self) -> bool:
        return bool(self._steps)

    def get_step(self, index: int) -> RouteStep:
        return self._steps[index]

    def to_array(self) -> List[str]:
        """Node symbols in traversal order, source first"""
        if not self._steps:
            return []
        return [self._steps[0].from_symbol] + [s.to_symbol for s in self._steps]

    def __str__(self) -> str:
        return " -> ".join(self.to_array())

    def __repr__(self) -> str:
        return f"Route({self})"


class Router:
    """
    Shortest-path search (BFS) over an AssetGraph.

    Neighbours are visited in edge registration order, so ties between
    equally short paths resolve to the path registered first. When a pair
    has parallel edges, the most recently registered edge is used to build
    that hop.

    Usage:
        router = Router(graph, lambda symbol: transfer_builder(symbol))
        route = router.get_route("ETH", "HOOLIGAN")
        if not route:
            ...  # no path
    """

    def __init__(self, graph: AssetGraph, self_edge_builder: SelfEdgeBuilder):
        self.graph = graph
        self._self_edge_builder = self_edge_builder

    def get_route(self, from_symbol: str, to_symbol: str) -> Route:
        if from_symbol == to_symbol:
            return Route([
                RouteStep(from_symbol, to_symbol, self._self_edge_builder(from_symbol), "self"),
            ])

        if not self.graph.has_node(from_symbol) or not self.graph.has_node(to_symbol):
            logger.debug(f"get_route {from_symbol} -> {to_symbol}: node missing")
            return Route()

        path = self._shortest_path(from_symbol, to_symbol)
        if path is None:
            logger.debug(f"get_route {from_symbol} -> {to_symbol}: no path")
            return Route()

        steps = []
        for a, b in zip(path, path[1:]):
            edge = self.graph.edge(a, b)
            steps.append(RouteStep(a, b, edge.build, edge.label))
        route = Route(steps)
        logger.debug(f"get_route {from_symbol} -> {to_symbol}: {route}")
        return route

    def _shortest_path(self, source: str, target: str) -> Optional[List[str]]:
        parents: Dict[str, Optional[str]] = {source: None}
        queue = deque([source])
        while queue:
            node = queue.popleft()
            if node == target:
                break
            for nxt in self.graph.successors(node):
                if nxt not in parents:
                    parents[nxt] = node
                    queue.append(nxt)

        if target not in parents:
            return None

        path = [target]
        while parents[path[-1]] is not None:
            path.append(parents[path[-1]])
        path.reverse()
        return path


def materialize(
    route: Route,
    account: str,
    from_mode: FarmFromMode = FarmFromMode.EXTERNAL,
    to_mode: FarmToMode = FarmToMode.EXTERNAL,
) -> List[Step]:
    """
    Build one Step per hop.

    The first hop reads from `from_mode` and the last delivers to `to_mode`.
    Hops in between leave tokens in the internal balance and read them back
    with INTERNAL_TOLERANT.
    """
    steps: List[Step] = []
    last = len(route) - 1
    for i, hop in enumerate(route):
        hop_from = from_mode if i == 0 else FarmFromMode.INTERNAL_TOLERANT
        hop_to = to_mode if i == last else FarmToMode.INTERNAL
        steps.append(hop.build(account, hop_from, hop_to))
    return steps
