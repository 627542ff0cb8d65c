"""
Swap Module

Routes one token into another over the swap graph and runs the route as
a single farm transaction.
"""

import logging
from typing import Any, Dict, List, Optional

from ..config import TxConfig
from ..errors import UnsupportedOperation
from ..infra.contracts import ProtocolContracts
from ..infra.evm_signer import EVMSigner, TransactionHandle
from ..routing import Route, Router, build_swap_graph, materialize
from ..types import Asset, AssetRegistry, FarmFromMode, FarmToMode
from ..workflow import FarmWorkflow, LibraryPresets, TransferToken

logger = logging.getLogger(__name__)


class SwapOperation:
    """
    A resolved swap, ready to estimate or execute.

    The workflow is built once from the route; every estimate and execute
    re-runs the same steps.
    """

    def __init__(
        self,
        route: Route,
        token_in: Asset,
        token_out: Asset,
        account: str,
        from_mode: FarmFromMode,
        to_mode: FarmToMode,
        workflow: FarmWorkflow,
    ):
        self.route = route
        self.token_in = token_in
        self.token_out = token_out
        self.account = account
        self.from_mode = from_mode
        self.to_mode = to_mode
        self.workflow = workflow
        if route:
            workflow.add(materialize(route, account, from_mode, to_mode))

    def is_valid(self) -> bool:
        return len(self.route) > 0

    @property
    def path(self) -> List[str]:
        return self.route.to_array()

    def _require_route(self) -> None:
        if not self.is_valid():
            raise UnsupportedOperation.no_route(self.token_in.symbol, self.token_out.symbol)

    def estimate(self, amount_in: int) -> int:
        self._require_route()
        return self.workflow.estimate(amount_in, {"account": self.account})

    def estimate_reversed(self, amount_out: int) -> int:
        self._require_route()
        return self.workflow.estimate_reversed(amount_out, {"account": self.account})

    def execute(
        self,
        amount_in: int,
        slippage: Optional[float] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        self._require_route()
        run_data = {"account": self.account}
        run_data.update(data or {})
        return self.workflow.execute(amount_in, slippage=slippage, data=run_data)

    def __str__(self) -> str:
        return str(self.route) or f"{self.token_in.symbol} -> {self.token_out.symbol} (no route)"


class SwapModule:
    """
    Usage:
        op = client.swap.build_swap(weth, hooligan, account)
        out = op.estimate(10**18)
        result = op.execute(10**18, slippage=0.5).wait()
    """

    def __init__(
        self,
        contracts: ProtocolContracts,
        registry: AssetRegistry,
        presets: LibraryPresets,
        signer: Optional[EVMSigner] = None,
        tx_config: Optional[TxConfig] = None,
    ):
        self._contracts = contracts
        self._registry = registry
        self._signer = signer
        self._tx_config = tx_config
        self.graph = build_swap_graph(contracts, registry, presets)
        self.router = Router(self.graph, self._self_edge)

    def _self_edge(self, symbol: str):
        asset = self._registry.get_by_symbol(symbol)

        def build(account: str, from_mode: FarmFromMode, to_mode: FarmToMode):
            return TransferToken(self._contracts, asset.address, account, from_mode, to_mode)

        return build

    def build_swap(
        self,
        token_in: Asset,
        token_out: Asset,
        account: str,
        from_mode: FarmFromMode = FarmFromMode.EXTERNAL,
        to_mode: FarmToMode = FarmToMode.EXTERNAL,
    ) -> SwapOperation:
        route = self.router.get_route(token_in.symbol, token_out.symbol)
        if not route:
            logger.warning(f"No swap route from {token_in.symbol} to {token_out.symbol}")
        workflow = FarmWorkflow(
            self._contracts,
            signer=self._signer,
            tx_config=self._tx_config,
            name=f"Swap {token_in.symbol}->{token_out.symbol}",
        )
        return SwapOperation(route, token_in, token_out, account, from_mode, to_mode, workflow)
