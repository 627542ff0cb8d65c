"""
On-chain event records consumed by the event processor
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EventKind(str, Enum):
    """Event kinds the processor knows how to fold"""
    # Field
    SOW = "Sow"
    DRAFT = "Draft"
    PLOT_TRANSFER = "PlotTransfer"
    # Silo
    ADD_DEPOSIT = "AddDeposit"
    REMOVE_DEPOSIT = "RemoveDeposit"
    REMOVE_DEPOSITS = "RemoveDeposits"
    ADD_WITHDRAWAL = "AddWithdrawal"
    REMOVE_WITHDRAWAL = "RemoveWithdrawal"
    REMOVE_WITHDRAWALS = "RemoveWithdrawals"
    # Market
    ROOKIE_LISTING_CREATED = "RookieListingCreated"
    ROOKIE_LISTING_CANCELLED = "RookieListingCancelled"
    ROOKIE_LISTING_FILLED = "RookieListingFilled"
    ROOKIE_ORDER_CREATED = "RookieOrderCreated"
    ROOKIE_ORDER_CANCELLED = "RookieOrderCancelled"
    ROOKIE_ORDER_FILLED = "RookieOrderFilled"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["EventKind"]:
        """Return the kind for a name, or None if the name is not supported"""
        if not name:
            return None
        try:
            return cls(name)
        except ValueError:
            return None


SILO_EVENTS: Tuple[EventKind, ...] = (
    EventKind.ADD_DEPOSIT,
    EventKind.ADD_WITHDRAWAL,
    EventKind.REMOVE_WITHDRAWAL,
    EventKind.REMOVE_WITHDRAWALS,
    EventKind.REMOVE_DEPOSIT,
    EventKind.REMOVE_DEPOSITS,
)

FIELD_EVENTS: Tuple[EventKind, ...] = (
    EventKind.SOW,
    EventKind.DRAFT,
    EventKind.PLOT_TRANSFER,
)

MARKET_EVENTS: Tuple[EventKind, ...] = (
    EventKind.ROOKIE_LISTING_CREATED,
    EventKind.ROOKIE_LISTING_CANCELLED,
    EventKind.ROOKIE_LISTING_FILLED,
    EventKind.ROOKIE_ORDER_CREATED,
    EventKind.ROOKIE_ORDER_CANCELLED,
    EventKind.ROOKIE_ORDER_FILLED,
)


@dataclass
class Event:
    """
    A decoded log entry

    Attributes:
        kind: Event name as emitted by the contract (e.g. "AddDeposit")
        args: Decoded event arguments, keyed by ABI parameter name
        block_number: Block containing the log
        transaction_index: Position of the transaction in the block
        log_index: Position of the log in the block
        transaction_hash: Hash of the emitting transaction
    """
    kind: str
    args: Dict[str, Any] = field(default_factory=dict)
    block_number: int = 0
    transaction_index: int = 0
    log_index: int = 0
    transaction_hash: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        """Chain order: block, then transaction, then log"""
        return (self.block_number, self.transaction_index, self.log_index)

    @property
    def identity(self) -> Tuple[Optional[str], int, int]:
        """Key used to drop duplicates returned by overlapping queries"""
        return (self.transaction_hash, self.block_number, self.log_index)

    def __str__(self) -> str:
        return f"{self.kind}@{self.block_number}:{self.transaction_index}:{self.log_index}"
