"""
FarmWorkflow - aggregates a workflow into one protocol `farm(bytes[])` call
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .base import Workflow, RunMode, RunContext
from ..config import TxConfig
from ..errors import ConfigurationError
from ..infra.contracts import ProtocolContracts
from ..infra.correlation import CorrelationContext, log_with_correlation
from ..infra.evm_signer import EVMSigner, TransactionHandle

logger = logging.getLogger(__name__)


class FarmWorkflow(Workflow):
    """
    Workflow whose steps are submitted together through the protocol's
    `farm` entry point.

    Steps that target the protocol are added as-is. Steps that target any
    other contract are wrapped in `pipe((target, data))`. The ETH value of
    the transaction is the sum of all step values.

    Usage:
        wf = FarmWorkflow(contracts, signer=signer)
        wf.add(presets.weth2hooligan())
        out = wf.estimate(10**18)
        handle = wf.execute(10**18, slippage=0.5)
        result = handle.wait()
    """

    def __init__(
        self,
        contracts: ProtocolContracts,
        signer: Optional[EVMSigner] = None,
        tx_config: Optional[TxConfig] = None,
        name: str = "Farm",
    ):
        super().__init__(name=name)
        self._contracts = contracts
        self._signer = signer
        self._tx_config = tx_config or TxConfig()

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _prepare(
        self,
        amount_in: int,
        slippage: Optional[float],
        data: Optional[Dict[str, Any]],
    ) -> RunContext:
        run_data = dict(data or {})
        run_data["slippage"] = self._tx_config.default_slippage if slippage is None else slippage
        if self._signer is not None:
            run_data.setdefault("account", self._signer.address)
        self._run(int(amount_in), RunMode.EXECUTE, run_data)
        return self._context

    def encode_calls(self, context: Optional[RunContext] = None) -> List[bytes]:
        """Encoded farm entries for the results of the last run"""
        context = context or self._context
        if context is None:
            raise ConfigurationError.missing(f"a prior run of workflow '{self.name}'")

        protocol = self._contracts.protocol
        protocol_address = (self._contracts.addresses.protocol or "").lower()
        calls: List[bytes] = []
        for result in self._results:
            call_data = result.encode(context)
            if call_data is None:
                continue
            if result.target is None or result.target.lower() == protocol_address:
                calls.append(call_data)
            else:
                calls.append(protocol.encode_function_data("pipe", [(result.target, call_data)]))
        return calls

    def encode(self, context: Optional[RunContext] = None) -> bytes:
        """Call data for `farm(bytes[])` covering the last run"""
        return self._contracts.protocol.encode_function_data("farm", [self.encode_calls(context)])

    @property
    def value(self) -> int:
        """ETH to send with the transaction"""
        return sum(r.value for r in self._results)

    def build(
        self,
        amount_in: int,
        slippage: Optional[float] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Tuple[bytes, int]:
        """
        Run in EXECUTE mode and return (call_data, value) without sending.

        Permit and encoding errors surface here, before anything is submitted.
        """
        context = self._prepare(amount_in, slippage, data)
        return self.encode(context), self.value

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def call_static(
        self,
        amount_in: int,
        slippage: Optional[float] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> List[bytes]:
        """Simulate the aggregated call with eth_call and return each step's return data"""
        context = self._prepare(amount_in, slippage, data)
        tx: Dict[str, Any] = {"value": self.value}
        if self._signer is not None:
            tx["from"] = self._signer.address
        farm = self._contracts.protocol_contract().functions.farm(self.encode_calls(context))
        return list(farm.call(tx))

    def execute(
        self,
        amount_in: int,
        slippage: Optional[float] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> TransactionHandle:
        """
        Encode every step and submit one farm transaction.

        Args:
            amount_in: Amount entering the first step (raw)
            slippage: Tolerance in percent applied to each step's output
            data: Extra context values (e.g. "permit")

        Returns:
            TransactionHandle; call .wait() for the receipt

        Raises:
            ConfigurationError: If no signer is configured
        """
        if self._signer is None:
            raise ConfigurationError.missing("signer")

        with CorrelationContext(self.name.lower()):
            call_data, value = self.build(amount_in, slippage, data)
            log_with_correlation(
                logging.INFO,
                f"Submitting {len(self._results)} steps, value={value}",
                "farm.execute",
                target_logger=logger,
                steps=self.summarize(),
            )
            tx_hash = self._signer.send_transaction(
                self._contracts.web3,
                self._contracts.protocol_address,
                call_data,
                value=value,
                gas_limit_multiplier=self._tx_config.gas_limit_multiplier,
            )
            log_with_correlation(
                logging.INFO,
                f"Submitted {tx_hash}",
                "farm.execute",
                target_logger=logger,
                tx_hash=tx_hash,
            )

        return TransactionHandle(
            self._contracts.web3,
            tx_hash,
            poll_interval=self._tx_config.receipt_poll_interval,
        )
