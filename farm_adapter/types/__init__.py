"""
Type definitions for Farm Adapter
"""

from .asset import (
    Asset,
    AssetRegistry,
    NATIVE_TOKEN_ADDRESS,
    DEFAULT_WHITELIST,
    build_registry,
)
from .events import Event, EventKind, SILO_EVENTS, FIELD_EVENTS, MARKET_EVENTS
from .crates import (
    DepositCrateRaw,
    WithdrawalCrateRaw,
    DepositCrate,
    WithdrawalCrate,
    DepositedBalance,
    WithdrawnBalance,
    TokenSiloBalance,
    DepositTotals,
    HordeBalances,
    PickedCrates,
)
from .market import Listing, Order, MarketStatus
from .farm import FarmFromMode, FarmToMode, SignedPermit
from .result import TxResult, TxStatus

__all__ = [
    # Assets
    "Asset",
    "AssetRegistry",
    "NATIVE_TOKEN_ADDRESS",
    "DEFAULT_WHITELIST",
    "build_registry",
    # Events
    "Event",
    "EventKind",
    "SILO_EVENTS",
    "FIELD_EVENTS",
    "MARKET_EVENTS",
    # Crates
    "DepositCrateRaw",
    "WithdrawalCrateRaw",
    "DepositCrate",
    "WithdrawalCrate",
    "DepositedBalance",
    "WithdrawnBalance",
    "TokenSiloBalance",
    "DepositTotals",
    "HordeBalances",
    "PickedCrates",
    # Market
    "Listing",
    "Order",
    "MarketStatus",
    # Farm
    "FarmFromMode",
    "FarmToMode",
    "SignedPermit",
    # Results
    "TxResult",
    "TxStatus",
]
