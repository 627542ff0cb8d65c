"""
Route resolution for Farm Adapter

Provides:
- AssetGraph: directed multigraph of conversions between asset symbols
- Router / Route / RouteStep: BFS route search and step materialization
- build_swap_graph / build_deposit_graph: the standard graphs
"""

from .graph import AssetGraph, Edge, StepBuilder
from .router import Route, RouteStep, Router, materialize
from .swap_graph import build_swap_graph
from .deposit_graph import build_deposit_graph, silo_target, SILO_SUFFIX

__all__ = [
    "AssetGraph",
    "Edge",
    "StepBuilder",
    "Route",
    "RouteStep",
    "Router",
    "materialize",
    "build_swap_graph",
    "build_deposit_graph",
    "silo_target",
    "SILO_SUFFIX",
]
