"""
Silo Module

Balances of whitelisted assets rebuilt from chain events, plus the crate
arithmetic used to display and spend them. Horde reads and the mow and plant
calls go straight to the protocol.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..config import TxConfig
from ..errors import ConfigurationError, InsufficientFunds, UnknownAsset
from ..events import EventManager, EventProcessor, parse_withdrawals
from ..infra.contracts import ProtocolContracts
from ..infra.evm_signer import EVMSigner, TransactionHandle
from ..infra.correlation import CorrelationContext, log_with_correlation
from ..types import (
    Asset,
    AssetRegistry,
    DepositCrate,
    DepositCrateRaw,
    DepositTotals,
    HordeBalances,
    PickedCrates,
    TokenSiloBalance,
)

logger = logging.getLogger(__name__)

# Horde grown per prospect per season is 1/10_000 horde. With prospects at
# 6 decimals and horde at 10, that is exactly one raw horde per raw prospect.
GROWN_HORDE_PER_PROSPECT_RAW = 1

CrateSort = Callable[[Sequence[DepositCrate]], List[DepositCrate]]


def sort_crates_desc(crates: Sequence[DepositCrate]) -> List[DepositCrate]:
    """Newest season first"""
    return sorted(crates, key=lambda c: c.season, reverse=True)


class SiloModule:
    """
    Silo balances and crates

    Usage:
        silo = SiloModule(contracts, registry, event_manager, signer=signer)
        balance = silo.get_balance(registry.get_by_symbol("HOOLIGAN"), account)
        picked = silo.pick_crates(balance.deposited.crates, asset, 500 * 10**6)
        horde = silo.get_all_horde(account)
        silo.plant().wait()
    """

    def __init__(
        self,
        contracts: ProtocolContracts,
        registry: AssetRegistry,
        event_manager: EventManager,
        signer: Optional[EVMSigner] = None,
        tx_config: Optional[TxConfig] = None,
    ):
        self._contracts = contracts
        self._registry = registry
        self._events = event_manager
        self._signer = signer
        self._tx_config = tx_config or TxConfig()

    # ------------------------------------------------------------------
    # Crate math
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_grown_horde(current_season: int, deposit_season: int, prospects: int) -> int:
        """
        Raw horde grown since `deposit_season`.

        Raises:
            ValueError: If current_season < deposit_season
        """
        delta = int(current_season) - int(deposit_season)
        if delta < 0:
            raise ValueError(
                f"Cannot calculate grown horde when current season {current_season} "
                f"< deposit season {deposit_season}"
            )
        return GROWN_HORDE_PER_PROSPECT_RAW * int(prospects) * delta

    def make_deposit_crate(
        self,
        asset: Asset,
        season: int,
        amount: int,
        bdv: int,
        current_season: int,
    ) -> DepositCrate:
        prospects = asset.prospects(bdv)
        base_horde = asset.base_horde(bdv)
        grown_horde = self.calculate_grown_horde(current_season, season, prospects)
        return DepositCrate(
            season=int(season),
            amount=int(amount),
            bdv=int(bdv),
            horde=base_horde + grown_horde,
            base_horde=base_horde,
            grown_horde=grown_horde,
            prospects=prospects,
        )

    def _apply_deposits(
        self,
        balance: TokenSiloBalance,
        asset: Asset,
        crates: Dict[int, DepositCrateRaw],
        current_season: int,
    ) -> None:
        for season, raw in crates.items():
            crate = self.make_deposit_crate(asset, season, raw.amount, raw.bdv, current_season)
            balance.deposited.amount += crate.amount
            balance.deposited.bdv += crate.bdv
            balance.deposited.crates.append(crate)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, asset: Asset, account: str, season: Optional[int] = None) -> TokenSiloBalance:
        """
        Balance of one whitelisted asset, rebuilt from its silo events.

        Args:
            asset: Whitelisted asset
            account: Account address
            season: Current season (read from the protocol when omitted)

        Raises:
            UnknownAsset: If the asset is not whitelisted
        """
        if not self._registry.is_whitelisted(asset):
            raise UnknownAsset.not_whitelisted(asset.symbol)

        with CorrelationContext("silo"):
            current = self._contracts.current_season() if season is None else int(season)
            events = self._events.get_silo_events(account, asset.address)
            processor = EventProcessor(self._registry, account, current, self._registry.whitelist)
            data = processor.ingest_all(events)

            balance = TokenSiloBalance()
            self._apply_deposits(balance, asset, data.deposits.get(asset, {}), current)
            balance.withdrawn, balance.claimable = parse_withdrawals(data.withdrawals.get(asset, {}), current)
            balance.sort_crates()

            log_with_correlation(
                logging.INFO,
                f"{asset.symbol} balance for {account[:10]}...: deposited={balance.deposited.amount} "
                f"({len(balance.deposited.crates)} crates), claimable={balance.claimable.amount}",
                "silo.get_balance",
                target_logger=logger,
                events=len(events),
                season=current,
            )
        return balance

    def get_balances(self, account: str, season: Optional[int] = None) -> Dict[Asset, TokenSiloBalance]:
        """Balances of every whitelisted asset, in whitelist order"""
        with CorrelationContext("silo"):
            current = self._contracts.current_season() if season is None else int(season)
            events = self._events.get_silo_events(account)
            processor = EventProcessor(self._registry, account, current, self._registry.whitelist)
            data = processor.ingest_all(events)

            balances: Dict[Asset, TokenSiloBalance] = {}
            for asset in self._registry.whitelist:
                balance = TokenSiloBalance()
                self._apply_deposits(balance, asset, data.deposits.get(asset, {}), current)
                balance.withdrawn, balance.claimable = parse_withdrawals(data.withdrawals.get(asset, {}), current)
                balance.sort_crates()
                balances[asset] = balance

            log_with_correlation(
                logging.INFO,
                f"Silo balances for {account[:10]}...: {len(balances)} assets from {len(events)} events",
                "silo.get_balances",
                target_logger=logger,
                season=current,
            )
        return balances

    # ------------------------------------------------------------------
    # Horde and prospects
    # ------------------------------------------------------------------

    def _account(self, account: Optional[str]) -> str:
        if account:
            return account
        if self._signer is not None:
            return self._signer.address
        raise ConfigurationError.missing("account")

    def _read_balance(self, method: str, account: Optional[str]) -> int:
        return int(self._contracts.call_protocol(method, [self._account(account)]))

    def get_horde(self, account: Optional[str] = None) -> int:
        """Current horde, earned horde included"""
        return self._read_balance("balanceOfHorde", account)

    def get_prospects(self, account: Optional[str] = None) -> int:
        return self._read_balance("balanceOfProspects", account)

    def get_earned_hooligans(self, account: Optional[str] = None) -> int:
        return self._read_balance("balanceOfEarnedHooligans", account)

    def get_earned_horde(self, account: Optional[str] = None) -> int:
        return self._read_balance("balanceOfEarnedHorde", account)

    def get_plantable_prospects(self, account: Optional[str] = None) -> int:
        """Prospects that plant() would credit"""
        return self._read_balance("balanceOfEarnedProspects", account)

    def get_grown_horde(self, account: Optional[str] = None) -> int:
        return self._read_balance("balanceOfGrownHorde", account)

    def get_all_horde(self, account: Optional[str] = None) -> HordeBalances:
        """Active, earned and grown horde of one account"""
        account = self._account(account)
        with CorrelationContext("silo"):
            balances = HordeBalances(
                active=self.get_horde(account),
                earned=self.get_earned_horde(account),
                grown=self.get_grown_horde(account),
            )
            log_with_correlation(
                logging.DEBUG,
                f"Horde for {account[:10]}...: {balances}",
                "silo.get_all_horde",
                target_logger=logger,
            )
        return balances

    def bdv(self, asset: Asset, amount: Optional[int] = None) -> int:
        """
        Hooligan-denominated value of `amount` of a whitelisted asset.

        Args:
            asset: Whitelisted asset
            amount: Raw amount (one whole token when omitted)
        """
        if not self._registry.is_whitelisted(asset):
            raise UnknownAsset.not_whitelisted(asset.symbol)
        amount = 10 ** asset.decimals if amount is None else int(amount)
        return int(self._contracts.call_protocol("bdv", [asset.address, amount]))

    def _submit(self, method: str, args: Sequence) -> TransactionHandle:
        if self._signer is None:
            raise ConfigurationError.missing("signer")

        with CorrelationContext("silo"):
            call_data = self._contracts.protocol.encode_function_data(method, args)
            tx_hash = self._signer.send_transaction(
                self._contracts.web3,
                self._contracts.protocol_address,
                call_data,
                gas_limit_multiplier=self._tx_config.gas_limit_multiplier,
            )
            log_with_correlation(
                logging.INFO,
                f"Submitted {method} {tx_hash}",
                f"silo.{method}",
                target_logger=logger,
                tx_hash=tx_hash,
            )
        return TransactionHandle(
            self._contracts.web3,
            tx_hash,
            poll_interval=self._tx_config.receipt_poll_interval,
        )

    def mow(self, account: Optional[str] = None) -> TransactionHandle:
        """
        Credit grown horde to an account.

        Anyone may mow any account; defaults to the signer's own.
        """
        return self._submit("update", [self._account(account)])

    def plant(self) -> TransactionHandle:
        """Claim earned rewards for the signer and mow its grown horde"""
        return self._submit("plant", [])

    # ------------------------------------------------------------------
    # Crates
    # ------------------------------------------------------------------

    @staticmethod
    def pick_crates(
        crates: Sequence[DepositCrate],
        asset: Asset,
        amount: int,
        sort: CrateSort = sort_crates_desc,
    ) -> PickedCrates:
        """
        Choose crates covering `amount`, newest first by default.

        The last crate picked may be used partially.

        Raises:
            InsufficientFunds: If the crates hold less than `amount`
        """
        seasons: List[int] = []
        amounts: List[int] = []
        remaining = int(amount)
        for crate in sort(crates):
            if remaining == 0:
                break
            take = min(crate.amount, remaining)
            seasons.append(crate.season)
            amounts.append(take)
            remaining -= take

        if remaining != 0:
            raise InsufficientFunds.crates(asset.symbol, int(amount), int(amount) - remaining)
        return PickedCrates(seasons=seasons, amounts=amounts)

    @staticmethod
    def sum_deposits(crates: Sequence[DepositCrate]) -> DepositTotals:
        return DepositTotals(
            amount=sum(c.amount for c in crates),
            bdv=sum(c.bdv for c in crates),
            horde=sum(c.horde for c in crates),
            prospects=sum(c.prospects for c in crates),
        )
