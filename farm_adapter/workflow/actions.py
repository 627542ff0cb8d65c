"""
Farm actions

Each action is a Step that estimates through read calls and encodes one
protocol call. Amounts are raw integers. In EXECUTE mode the encoded
minimum output is the estimate reduced by the run's slippage.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from .base import Step, StepResult, RunContext
from ..errors import PermitRequired, UnsupportedOperation
from ..infra.contracts import (
    ContractInterface,
    ProtocolContracts,
    CURVE_POOL_INTERFACE,
    CURVE_CRYPTO_POOL_INTERFACE,
    CURVE_REGISTRY_INTERFACE,
    CURVE_CRYPTO_REGISTRY_INTERFACE,
    curve_calc_token_amount_abi,
)
from ..types import Asset, FarmFromMode, FarmToMode, SignedPermit

logger = logging.getLogger(__name__)


class FarmAction(Step):
    """Base for steps that encode a call on the protocol contract"""

    def __init__(self, contracts: ProtocolContracts):
        self._contracts = contracts

    def _encode(self, method: str, args: Sequence[Any]) -> bytes:
        return self._contracts.protocol.encode_function_data(method, list(args))

    def _pass_through(self, amount: int, method: str, args: Sequence[Any], value: int = 0) -> StepResult:
        return StepResult(
            name=self.name,
            amount_in=amount,
            amount_out=amount,
            call_data=self._encode(method, args),
            value=value,
        )


class WrapEth(FarmAction):
    """ETH -> WETH, delivered to `to_mode`"""

    name = "wrapEth"

    def __init__(self, contracts: ProtocolContracts, to_mode: FarmToMode = FarmToMode.INTERNAL):
        super().__init__(contracts)
        self.to_mode = to_mode

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        return self._pass_through(
            amount_in_step,
            "wrapEth",
            [amount_in_step, int(self.to_mode)],
            value=amount_in_step,
        )


class UnwrapEth(FarmAction):
    """WETH -> ETH, pulled from `from_mode`"""

    name = "unwrapEth"

    def __init__(self, contracts: ProtocolContracts, from_mode: FarmFromMode = FarmFromMode.INTERNAL):
        super().__init__(contracts)
        self.from_mode = from_mode

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        return self._pass_through(amount_in_step, "unwrapEth", [amount_in_step, int(self.from_mode)])


class TransferToken(FarmAction):
    """Move a token between balances or to another recipient"""

    name = "transferToken"

    def __init__(
        self,
        contracts: ProtocolContracts,
        token: str,
        recipient: str,
        from_mode: FarmFromMode = FarmFromMode.EXTERNAL,
        to_mode: FarmToMode = FarmToMode.EXTERNAL,
    ):
        super().__init__(contracts)
        self.token = token
        self.recipient = recipient
        self.from_mode = from_mode
        self.to_mode = to_mode

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        return self._pass_through(
            amount_in_step,
            "transferToken",
            [self.token, self.recipient, amount_in_step, int(self.from_mode), int(self.to_mode)],
        )


PermitSource = Union[SignedPermit, Mapping[str, Any], Callable[[RunContext], Any]]


class PermitERC20(FarmAction):
    """
    Apply a signed EIP-2612 permit so the protocol can spend `token`.

    The permit is resolved at execute time from, in order: the value given
    here (or the callable's result for the run context), then
    `context.data["permit"]`. Estimation never needs it.
    """

    name = "permitERC20"

    def __init__(
        self,
        contracts: ProtocolContracts,
        token: str,
        owner: Optional[str] = None,
        spender: Optional[str] = None,
        permit: Optional[PermitSource] = None,
    ):
        super().__init__(contracts)
        self.token = token
        self.owner = owner
        self.spender = spender
        self._permit = permit

    def resolve_permit(self, context: RunContext) -> SignedPermit:
        """
        Raises:
            PermitRequired: If no permit is available
            MalformedPermit: If the permit has the wrong shape
        """
        source = self._permit
        if callable(source):
            source = source(context)
        if source is None:
            source = context.data.get("permit")
        if source is None:
            raise PermitRequired(self.name)
        return SignedPermit.coerce(source)

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        def encoder(ctx: RunContext) -> bytes:
            permit = self.resolve_permit(ctx)
            owner = self.owner or ctx.data.get("account")
            if not owner:
                raise PermitRequired(self.name)
            spender = self.spender or self._contracts.protocol_address
            logger.debug(f"[permitERC20] token={self.token} owner={owner} value={amount_in_step}")
            return self._encode(
                "permitERC20",
                [self.token, owner, spender, amount_in_step, permit.deadline, permit.v, permit.r, permit.s],
            )

        return StepResult(
            name=self.name,
            amount_in=amount_in_step,
            amount_out=amount_in_step,
            encoder=encoder,
        )


class Exchange(FarmAction):
    """
    Swap through a Curve pool using the pool's own coins.

    Coin indices come from the registry. Crypto pools (uint256 indices)
    have no get_dx, so they cannot be estimated in reverse.
    """

    name = "exchange"

    def __init__(
        self,
        contracts: ProtocolContracts,
        pool: str,
        registry: str,
        token_in: Asset,
        token_out: Asset,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
        crypto: bool = False,
    ):
        super().__init__(contracts)
        self.pool = pool
        self.registry = registry
        self.token_in = token_in
        self.token_out = token_out
        self.from_mode = from_mode
        self.to_mode = to_mode
        self.crypto = crypto

    def _pool_interface(self) -> ContractInterface:
        return CURVE_CRYPTO_POOL_INTERFACE if self.crypto else CURVE_POOL_INTERFACE

    def _indices(self):
        registry_iface = CURVE_CRYPTO_REGISTRY_INTERFACE if self.crypto else CURVE_REGISTRY_INTERFACE
        indices = self._contracts.call(
            self.registry,
            registry_iface,
            "get_coin_indices",
            [self.pool, self.token_in.address, self.token_out.address],
        )
        return int(indices[0]), int(indices[1])

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        i, j = self._indices()
        if context.is_reversed:
            if self.crypto:
                raise UnsupportedOperation.reverse_estimate(
                    f"{self.name} {self.token_in.symbol}->{self.token_out.symbol}"
                )
            amount_out = amount_in_step
            amount_in = int(self._contracts.call(self.pool, CURVE_POOL_INTERFACE, "get_dx", [i, j, amount_out]))
        else:
            amount_in = amount_in_step
            amount_out = int(self._contracts.call(self.pool, self._pool_interface(), "get_dy", [i, j, amount_in]))

        min_out = context.min_amount_out(amount_out)
        return StepResult(
            name=self.name,
            amount_in=amount_in,
            amount_out=amount_out,
            call_data=self._encode(
                "exchange",
                [
                    self.pool,
                    self.registry,
                    self.token_in.address,
                    self.token_out.address,
                    amount_in,
                    min_out,
                    int(self.from_mode),
                    int(self.to_mode),
                ],
            ),
        )


class ExchangeUnderlying(FarmAction):
    """Swap through a Curve metapool using its underlying coins"""

    name = "exchangeUnderlying"

    def __init__(
        self,
        contracts: ProtocolContracts,
        pool: str,
        token_in: Asset,
        token_out: Asset,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ):
        super().__init__(contracts)
        self.pool = pool
        self.token_in = token_in
        self.token_out = token_out
        self.from_mode = from_mode
        self.to_mode = to_mode

    def _indices(self):
        indices = self._contracts.call(
            self._contracts.addresses.registry_meta_factory,
            CURVE_REGISTRY_INTERFACE,
            "get_coin_indices",
            [self.pool, self.token_in.address, self.token_out.address],
        )
        return int(indices[0]), int(indices[1])

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        i, j = self._indices()
        if context.is_reversed:
            amount_out = amount_in_step
            amount_in = int(self._contracts.call(
                self.pool, CURVE_POOL_INTERFACE, "get_dx_underlying", [i, j, amount_out]
            ))
        else:
            amount_in = amount_in_step
            amount_out = int(self._contracts.call(
                self.pool, CURVE_POOL_INTERFACE, "get_dy_underlying", [i, j, amount_in]
            ))

        min_out = context.min_amount_out(amount_out)
        return StepResult(
            name=self.name,
            amount_in=amount_in,
            amount_out=amount_out,
            call_data=self._encode(
                "exchangeUnderlying",
                [
                    self.pool,
                    self.token_in.address,
                    self.token_out.address,
                    amount_in,
                    min_out,
                    int(self.from_mode),
                    int(self.to_mode),
                ],
            ),
        )


class AddLiquidity(FarmAction):
    """
    Add one coin to a Curve pool and receive LP tokens.

    `indexes` is a 0/1 mask over the pool's coins marking which coin the
    incoming amount is. Reverse estimation is not supported.
    """

    name = "addLiquidity"

    def __init__(
        self,
        contracts: ProtocolContracts,
        pool: str,
        registry: str,
        indexes: Sequence[int],
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ):
        super().__init__(contracts)
        self.pool = pool
        self.registry = registry
        self.indexes = list(indexes)
        self.from_mode = from_mode
        self.to_mode = to_mode
        self._pool_interface = ContractInterface(curve_calc_token_amount_abi(len(self.indexes)))

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        if context.is_reversed:
            raise UnsupportedOperation.reverse_estimate(self.name)

        amounts: List[int] = [amount_in_step * flag for flag in self.indexes]
        amount_out = int(self._contracts.call(self.pool, self._pool_interface, "calc_token_amount", [amounts, True]))
        min_out = context.min_amount_out(amount_out)
        return StepResult(
            name=self.name,
            amount_in=amount_in_step,
            amount_out=amount_out,
            call_data=self._encode(
                "addLiquidity",
                [self.pool, self.registry, amounts, min_out, int(self.from_mode), int(self.to_mode)],
            ),
        )


class Deposit(FarmAction):
    """Deposit a whitelisted token into the silo"""

    name = "deposit"

    def __init__(
        self,
        contracts: ProtocolContracts,
        token: Asset,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
    ):
        super().__init__(contracts)
        self.token = token
        self.from_mode = from_mode

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        return self._pass_through(
            amount_in_step,
            "deposit",
            [self.token.address, amount_in_step, int(self.from_mode)],
        )


class DevDebug(Step):
    """Pass-through step that only logs; contributes no call"""

    name = "devdebug"

    def __init__(self, message: str = ""):
        self.message = message

    def run(self, amount_in_step: int, context: RunContext) -> StepResult:
        logger.debug(f"[devdebug] {self.message} amount={amount_in_step} mode={context.run_mode.value}")
        return StepResult(name=self.name, amount_in=amount_in_step, amount_out=amount_in_step)
