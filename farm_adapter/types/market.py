"""
Market records rebuilt from listing and order events
"""

from dataclasses import dataclass
from enum import Enum


class MarketStatus(Enum):
    """Listing / order status"""
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    CANCELLED_PARTIAL = "CANCELLED_PARTIAL"
    EXPIRED = "EXPIRED"
    FILLED = "FILLED"
    FILLED_PARTIAL = "FILLED_PARTIAL"


@dataclass
class Listing:
    """
    A rookie listing

    The listing covers rookies in [index + start, index + start + amount).
    Every fill moves the listing to a new index, so `id` changes with it.
    All numeric fields are raw integers.

    Attributes:
        id: String form of `index`
        account: Lowercase address of the seller
        index: Absolute index of the listed plot in the line
        start: Offset into the plot where selling starts
        price_per_rookie: Price per rookie in hooligans
        max_draftable_index: Position in line at which the listing expires
        mode: Where hooligans are sent when the listing is filled
        amount: Rookies that can still be bought
        total_amount: Rookies originally listed
        remaining_amount: Rookies left to sell
        filled_amount: Rookies sold so far
        status: Listing status
    """
    id: str
    account: str
    index: int
    start: int
    price_per_rookie: int
    max_draftable_index: int
    mode: int
    amount: int
    total_amount: int
    remaining_amount: int
    filled_amount: int = 0
    status: MarketStatus = MarketStatus.ACTIVE


@dataclass
class Order:
    """
    A rookie order

    Attributes:
        id: Order id (hex string)
        account: Lowercase address of the buyer
        max_place_in_line: Furthest place in line the buyer accepts
        price_per_rookie: Price per rookie in hooligans
        total_amount: Rookies ordered
        remaining_amount: Rookies still wanted
        filled_amount: Rookies bought so far
        status: Order status
    """
    id: str
    account: str
    max_place_in_line: int
    price_per_rookie: int
    total_amount: int
    remaining_amount: int
    filled_amount: int = 0
    status: MarketStatus = MarketStatus.ACTIVE
