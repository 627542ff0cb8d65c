"""
Deposit graph

Every whitelisted symbol has two nodes: the token itself and a deposit
target "{SYMBOL}:SILO". Swapping into HOOLIGAN3CRV and depositing
HOOLIGAN3CRV are different hops, so the deposit is the edge
HOOLIGAN3CRV -> HOOLIGAN3CRV:SILO.
"""

import logging
from typing import Sequence

from .graph import AssetGraph
from ..infra.contracts import ProtocolContracts
from ..types import AssetRegistry
from ..workflow.actions import AddLiquidity, Deposit, WrapEth
from ..workflow.presets import LibraryPresets

logger = logging.getLogger(__name__)

SILO_SUFFIX = ":SILO"

INPUT_SYMBOLS = ("DAI", "USDC", "USDT", "3CRV", "WETH", "ETH")

# Coin positions in the HOOLIGAN:3CRV metapool and in 3pool
METAPOOL_INDEXES = {"HOOLIGAN": (1, 0), "3CRV": (0, 1)}
THREEPOOL_INDEXES = {"DAI": (1, 0, 0), "USDC": (0, 1, 0), "USDT": (0, 0, 1)}


def silo_target(symbol: str) -> str:
    """Deposit target node for a whitelisted symbol"""
    return f"{symbol}{SILO_SUFFIX}"


def build_deposit_graph(
    contracts: ProtocolContracts,
    registry: AssetRegistry,
    presets: LibraryPresets,
) -> AssetGraph:
    graph = AssetGraph()

    for asset in registry.whitelist:
        graph.set_node(asset.symbol)
    for asset in registry.whitelist:
        graph.set_node(silo_target(asset.symbol))
    for symbol in INPUT_SYMBOLS:
        if registry.find_by_symbol(symbol) is not None:
            graph.set_node(symbol)

    # Deposit edges
    for asset in registry.whitelist:
        graph.set_edge(
            asset.symbol,
            silo_target(asset.symbol),
            lambda account, from_mode, to_mode, a=asset: Deposit(contracts, a, from_mode),
            "deposit",
        )

    def add_liquidity_edges(target: str, pool: str, pool_registry: str, indexes: dict) -> None:
        if not graph.has_node(target):
            return
        for symbol, mask in indexes.items():
            if not graph.has_node(symbol):
                continue
            graph.set_edge(
                symbol,
                target,
                _add_liquidity_builder(contracts, pool, pool_registry, mask),
                "addLiquidity",
            )

    # [HOOLIGAN, 3CRV] -> HOOLIGAN3CRV
    add_liquidity_edges(
        "HOOLIGAN3CRV",
        contracts.addresses.pool_hooligan_crv3,
        contracts.addresses.registry_meta_factory,
        METAPOOL_INDEXES,
    )
    # [DAI, USDC, USDT] -> 3CRV
    add_liquidity_edges(
        "3CRV",
        contracts.addresses.pool_3pool,
        contracts.addresses.registry_pool,
        THREEPOOL_INDEXES,
    )

    if graph.has_node("WETH") and graph.has_node("USDT"):
        graph.set_edge(
            "WETH", "USDT",
            lambda account, from_mode, to_mode: presets.weth2usdt(from_mode, to_mode),
            "exchange",
        )
    if graph.has_node("ETH") and graph.has_node("WETH"):
        graph.set_edge(
            "ETH", "WETH",
            lambda account, from_mode, to_mode: WrapEth(contracts, to_mode),
            "wrapEth",
        )

    logger.debug(f"Deposit graph built: {graph!r}")
    return graph


def _add_liquidity_builder(contracts: ProtocolContracts, pool: str, pool_registry: str, mask: Sequence[int]):
    def build(account, from_mode, to_mode):
        return AddLiquidity(contracts, pool, pool_registry, mask, from_mode, to_mode)
    return build
