"""
Swap graph: which tokens convert into which, and with what step
"""

import logging

from .graph import AssetGraph
from ..infra.contracts import ProtocolContracts
from ..types import AssetRegistry
from ..workflow.actions import Exchange, ExchangeUnderlying, UnwrapEth, WrapEth
from ..workflow.presets import LibraryPresets

logger = logging.getLogger(__name__)

SWAP_SYMBOLS = ("ETH", "WETH", "HOOLIGAN", "USDT", "USDC", "DAI", "3CRV")


def build_swap_graph(
    contracts: ProtocolContracts,
    registry: AssetRegistry,
    presets: LibraryPresets,
) -> AssetGraph:
    """
    Build the swap graph for the assets present in `registry`.

    Edges whose endpoints are missing from the registry are skipped.
    """
    graph = AssetGraph()
    for symbol in SWAP_SYMBOLS:
        if registry.find_by_symbol(symbol) is not None:
            graph.set_node(symbol)

    def has(*symbols: str) -> bool:
        return all(graph.has_node(s) for s in symbols)

    # ETH <> WETH
    if has("ETH", "WETH"):
        graph.set_edge(
            "ETH", "WETH",
            lambda account, from_mode, to_mode: WrapEth(contracts, to_mode),
            "wrapEth",
        )
        graph.set_edge(
            "WETH", "ETH",
            lambda account, from_mode, to_mode: UnwrapEth(contracts, from_mode),
            "unwrapEth",
        )

    # WETH <> USDT (tricrypto2)
    if has("WETH", "USDT"):
        graph.set_edge(
            "WETH", "USDT",
            lambda account, from_mode, to_mode: presets.weth2usdt(from_mode, to_mode),
            "exchange",
        )
        graph.set_edge(
            "USDT", "WETH",
            lambda account, from_mode, to_mode: presets.usdt2weth(from_mode, to_mode),
            "exchange",
        )

    # USDT <> HOOLIGAN (metapool underlying)
    if has("USDT", "HOOLIGAN"):
        graph.set_edge(
            "USDT", "HOOLIGAN",
            lambda account, from_mode, to_mode: presets.usdt2hooligan(from_mode, to_mode),
            "exchangeUnderlying",
        )
        graph.set_edge(
            "HOOLIGAN", "USDT",
            lambda account, from_mode, to_mode: presets.hooligan2usdt(from_mode, to_mode),
            "exchangeUnderlying",
        )

    pool = contracts.addresses.pool_hooligan_crv3

    # USDC, DAI <> HOOLIGAN (metapool underlying)
    for symbol in ("USDC", "DAI"):
        if not has(symbol, "HOOLIGAN"):
            continue
        token = registry.get_by_symbol(symbol)
        hooligan = registry.get_by_symbol("HOOLIGAN")
        graph.set_edge(
            symbol, "HOOLIGAN",
            lambda account, from_mode, to_mode, t=token: ExchangeUnderlying(
                contracts, pool, t, hooligan, from_mode, to_mode
            ),
            "exchangeUnderlying",
        )
        graph.set_edge(
            "HOOLIGAN", symbol,
            lambda account, from_mode, to_mode, t=token: ExchangeUnderlying(
                contracts, pool, hooligan, t, from_mode, to_mode
            ),
            "exchangeUnderlying",
        )

    # 3CRV <> HOOLIGAN (metapool coins)
    if has("3CRV", "HOOLIGAN"):
        crv3 = registry.get_by_symbol("3CRV")
        hooligan = registry.get_by_symbol("HOOLIGAN")
        meta_registry = contracts.addresses.registry_meta_factory
        graph.set_edge(
            "3CRV", "HOOLIGAN",
            lambda account, from_mode, to_mode: Exchange(
                contracts, pool, meta_registry, crv3, hooligan, from_mode, to_mode
            ),
            "exchange",
        )
        graph.set_edge(
            "HOOLIGAN", "3CRV",
            lambda account, from_mode, to_mode: Exchange(
                contracts, pool, meta_registry, hooligan, crv3, from_mode, to_mode
            ),
            "exchange",
        )

    logger.debug(f"Swap graph built: {graph!r}")
    return graph
