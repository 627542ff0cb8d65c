"""
Crate type definitions

Raw crates are the ledger buckets the event processor maintains, keyed by
asset and season. Computed crates add the derived horde and prospects
figures for display and for picking.
All amounts are raw integers.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class DepositCrateRaw:
    """Deposit bucket for one asset and one season"""
    amount: int
    bdv: int


@dataclass(frozen=True)
class WithdrawalCrateRaw:
    """Withdrawal bucket for one asset and one season"""
    amount: int


@dataclass(frozen=True)
class DepositCrate:
    """
    Computed deposit crate

    Attributes:
        season: Season of deposit
        amount: Deposited amount (asset decimals)
        bdv: Value of the deposit (6 decimals)
        horde: base_horde + grown_horde (10 decimals)
        base_horde: Horde granted at deposit time (10 decimals)
        grown_horde: Horde grown since the deposit season (10 decimals)
        prospects: Prospects granted at deposit time (6 decimals)
    """
    season: int
    amount: int
    bdv: int
    horde: int
    base_horde: int
    grown_horde: int
    prospects: int


@dataclass(frozen=True)
class WithdrawalCrate:
    """Computed withdrawal crate"""
    season: int
    amount: int


@dataclass
class DepositedBalance:
    amount: int = 0
    bdv: int = 0
    crates: List[DepositCrate] = field(default_factory=list)


@dataclass
class WithdrawnBalance:
    amount: int = 0
    crates: List[WithdrawalCrate] = field(default_factory=list)


@dataclass
class TokenSiloBalance:
    """
    Silo balance of one asset for one account

    Attributes:
        deposited: Active deposits
        withdrawn: Withdrawals still in transit (season > current season)
        claimable: Withdrawals ready to claim (season <= current season)
    """
    deposited: DepositedBalance = field(default_factory=DepositedBalance)
    withdrawn: WithdrawnBalance = field(default_factory=WithdrawnBalance)
    claimable: WithdrawnBalance = field(default_factory=WithdrawnBalance)

    def sort_crates(self) -> None:
        """Sort every crate list by season, ascending"""
        self.deposited.crates.sort(key=lambda c: c.season)
        self.withdrawn.crates.sort(key=lambda c: c.season)
        self.claimable.crates.sort(key=lambda c: c.season)


@dataclass(frozen=True)
class DepositTotals:
    """Sum of a set of deposit crates"""
    amount: int = 0
    bdv: int = 0
    horde: int = 0
    prospects: int = 0


@dataclass(frozen=True)
class HordeBalances:
    """
    Horde of one account (raw, 10 decimals)

    Attributes:
        active: Current horde, earned horde included
        earned: Horde earned since the last plant
        grown: Horde grown since the last mow
    """
    active: int = 0
    earned: int = 0
    grown: int = 0


@dataclass(frozen=True)
class PickedCrates:
    """Seasons and amounts chosen to cover a withdrawal or transfer"""
    seasons: List[int] = field(default_factory=list)
    amounts: List[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.amounts)
