"""
Deposit Module

Deposits any supported input token into a whitelisted silo asset by
routing input -> ... -> "{TARGET}:SILO" over the deposit graph.
"""

import logging
from typing import Any, Dict, Optional

from ..config import TxConfig
from ..errors import UnknownAsset, UnsupportedOperation
from ..infra.contracts import ProtocolContracts
from ..infra.evm_signer import EVMSigner, TransactionHandle
from ..routing import Route, Router, build_deposit_graph, materialize, silo_target
from ..types import Asset, AssetRegistry, FarmFromMode, FarmToMode
from ..workflow import DevDebug, FarmWorkflow, LibraryPresets

logger = logging.getLogger(__name__)


class DepositOperation:
    """
    Deposit into one whitelisted target.

    Call set_input_token() before estimating; changing the input token
    rebuilds the workflow.

    Usage:
        op = client.deposit.build_deposit(hooligan3crv, account)
        op.set_input_token(usdc)
        lp_deposited = op.estimate(1_000 * 10**6)
        op.execute(1_000 * 10**6, slippage=0.5).wait()
    """

    def __init__(
        self,
        contracts: ProtocolContracts,
        router: Router,
        target: Asset,
        account: str,
        signer: Optional[EVMSigner] = None,
        tx_config: Optional[TxConfig] = None,
    ):
        self._contracts = contracts
        self._router = router
        self._signer = signer
        self._tx_config = tx_config
        self.target = target
        self.account = account
        self.input_token: Optional[Asset] = None
        self.from_mode = FarmFromMode.EXTERNAL
        self.route: Route = Route()
        self.workflow: Optional[FarmWorkflow] = None

    def set_input_token(
        self,
        token: Asset,
        from_mode: FarmFromMode = FarmFromMode.EXTERNAL,
    ) -> "DepositOperation":
        """
        Raises:
            UnsupportedOperation: If no route leads from `token` to the target
        """
        route = self._router.get_route(token.symbol, silo_target(self.target.symbol))
        if not route:
            raise UnsupportedOperation.no_route(token.symbol, silo_target(self.target.symbol))

        workflow = FarmWorkflow(
            self._contracts,
            signer=self._signer,
            tx_config=self._tx_config,
            name=f"Deposit {token.symbol}->{self.target.symbol}",
        )
        workflow.add(materialize(route, self.account, from_mode, FarmToMode.INTERNAL))

        self.input_token = token
        self.from_mode = from_mode
        self.route = route
        self.workflow = workflow
        logger.debug(f"Deposit route: {route}")
        return self

    @property
    def path(self):
        return self.route.to_array()

    def _require_workflow(self) -> FarmWorkflow:
        if self.workflow is None:
            raise UnsupportedOperation(
                f"Deposit into {self.target.symbol} has no input token; call set_input_token() first",
                operation="deposit",
            )
        return self.workflow

    def estimate(self, amount_in: int) -> int:
        """Amount of the target asset that ends up deposited"""
        return self._require_workflow().estimate(amount_in, {"account": self.account})

    def execute(
        self,
        amount_in: int,
        slippage: Optional[float] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        workflow = self._require_workflow()
        run_data = {"account": self.account}
        run_data.update(data or {})
        return workflow.execute(amount_in, slippage=slippage, data=run_data)

    def __str__(self) -> str:
        return str(self.route) or f"-> {silo_target(self.target.symbol)} (no input)"


class DepositModule:
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
        self.graph = build_deposit_graph(contracts, registry, presets)
        self.router = Router(self.graph, self._self_edge)

    def _self_edge(self, symbol: str):
        def build(account: str, from_mode: FarmFromMode, to_mode: FarmToMode):
            return DevDebug(f"{symbol} -> {symbol} default")

        return build

    def build_deposit(self, target: Asset, account: str) -> DepositOperation:
        """
        Raises:
            UnknownAsset: If `target` is not whitelisted
        """
        if not self._registry.is_whitelisted(target):
            raise UnknownAsset.not_whitelisted(target.symbol)
        return DepositOperation(
            self._contracts,
            self.router,
            target,
            account,
            signer=self._signer,
            tx_config=self._tx_config,
        )
