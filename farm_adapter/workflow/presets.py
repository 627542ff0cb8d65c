"""
Preset step lists for common conversions

Each preset returns fresh Step objects, so the same preset can be added
to any number of workflows.
"""

import logging
from typing import Any, List, Optional

from .actions import Exchange, ExchangeUnderlying, PermitERC20, TransferToken
from .base import Step
from ..errors import UnsupportedOperation
from ..infra.contracts import ProtocolContracts
from ..types import Asset, AssetRegistry, FarmFromMode, FarmToMode

logger = logging.getLogger(__name__)


class LibraryPresets:
    """
    Usage:
        presets = LibraryPresets(contracts, registry)
        wf.add(presets.weth2hooligan())
        wf.add(presets.load_pipeline(usdc, FarmFromMode.EXTERNAL, permit=permit))
    """

    def __init__(self, contracts: ProtocolContracts, registry: AssetRegistry):
        self._contracts = contracts
        self._registry = registry

    @property
    def _addresses(self):
        return self._contracts.addresses

    def _asset(self, symbol: str) -> Asset:
        return self._registry.get_by_symbol(symbol)

    # ------------------------------------------------------------------
    # Single hops
    # ------------------------------------------------------------------

    def weth2usdt(
        self,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ) -> Step:
        return Exchange(
            self._contracts,
            self._addresses.pool_tricrypto2,
            self._addresses.registry_crypto,
            self._asset("WETH"),
            self._asset("USDT"),
            from_mode,
            to_mode,
            crypto=True,
        )

    def usdt2weth(
        self,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ) -> Step:
        return Exchange(
            self._contracts,
            self._addresses.pool_tricrypto2,
            self._addresses.registry_crypto,
            self._asset("USDT"),
            self._asset("WETH"),
            from_mode,
            to_mode,
            crypto=True,
        )

    def usdt2hooligan(
        self,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ) -> Step:
        return ExchangeUnderlying(
            self._contracts,
            self._addresses.pool_hooligan_crv3,
            self._asset("USDT"),
            self._asset("HOOLIGAN"),
            from_mode,
            to_mode,
        )

    def hooligan2usdt(
        self,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ) -> Step:
        return ExchangeUnderlying(
            self._contracts,
            self._addresses.pool_hooligan_crv3,
            self._asset("HOOLIGAN"),
            self._asset("USDT"),
            from_mode,
            to_mode,
        )

    # ------------------------------------------------------------------
    # Two hops; the intermediate USDT stays in the internal balance
    # ------------------------------------------------------------------

    def weth2hooligan(
        self,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ) -> List[Step]:
        return [
            self.weth2usdt(from_mode, FarmToMode.INTERNAL),
            self.usdt2hooligan(FarmFromMode.INTERNAL, to_mode),
        ]

    def hooligan2weth(
        self,
        from_mode: FarmFromMode = FarmFromMode.INTERNAL_TOLERANT,
        to_mode: FarmToMode = FarmToMode.INTERNAL,
    ) -> List[Step]:
        return [
            self.hooligan2usdt(from_mode, FarmToMode.INTERNAL),
            self.usdt2weth(FarmFromMode.INTERNAL, to_mode),
        ]

    # ------------------------------------------------------------------
    # Pipeline loading
    # ------------------------------------------------------------------

    def load_pipeline(
        self,
        token: Asset,
        from_mode: FarmFromMode = FarmFromMode.EXTERNAL,
        permit: Optional[Any] = None,
        owner: Optional[str] = None,
    ) -> List[Step]:
        """
        Steps that move `token` from the account into the pipeline contract.

        A permit only applies to the external balance, so it is rejected for
        any other source mode.

        Raises:
            UnsupportedOperation: If a permit is given with a non-EXTERNAL mode
        """
        if token.is_native:
            logger.warning(f"load_pipeline: {token.symbol} is native and is sent as value; skipping")
            return []

        steps: List[Step] = []
        if permit is not None:
            if from_mode != FarmFromMode.EXTERNAL:
                raise UnsupportedOperation.mode("load_pipeline with permit", from_mode)
            steps.append(PermitERC20(self._contracts, token.address, owner=owner, permit=permit))

        steps.append(TransferToken(
            self._contracts,
            token.address,
            self._contracts.pipeline_address,
            from_mode,
            FarmToMode.EXTERNAL,
        ))
        return steps
