"""
Functional modules for FarmClient

Provides high-level operations:
- SiloModule: Balances rebuilt from events, crate math
- SwapModule: Token swaps routed over the swap graph
- DepositModule: Deposits routed over the deposit graph
"""

from .silo import SiloModule, sort_crates_desc
from .swap import SwapModule, SwapOperation
from .deposit import DepositModule, DepositOperation

__all__ = [
    "SiloModule",
    "sort_crates_desc",
    "SwapModule",
    "SwapOperation",
    "DepositModule",
    "DepositOperation",
]
