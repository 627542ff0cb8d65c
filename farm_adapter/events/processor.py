"""
Event Processor

Folds an ordered stream of protocol events into per-account ledgers:
- deposits:    asset -> season -> DepositCrateRaw(amount, bdv)
- withdrawals: asset -> season -> WithdrawalCrateRaw(amount)
- plots:       index in line -> rookies
- listings / orders: market records

Events must arrive in chain order (block, transaction index, log index).
Removals are validated before anything is written, so a failing event
leaves the ledgers untouched.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import (
    ConfigurationError,
    UnknownAsset,
    UnknownDepositBucket,
    UnknownWithdrawalBucket,
)
from ..types import (
    Asset,
    AssetRegistry,
    DepositCrateRaw,
    Event,
    EventKind,
    Listing,
    MarketStatus,
    Order,
    WithdrawalCrate,
    WithdrawnBalance,
    WithdrawalCrateRaw,
)

logger = logging.getLogger(__name__)

DepositLedger = Dict[Asset, Dict[int, DepositCrateRaw]]
WithdrawalLedger = Dict[Asset, Dict[int, WithdrawalCrateRaw]]


@dataclass
class EventProcessorData:
    """Snapshot of everything the processor has folded so far"""
    plots: Dict[int, int] = field(default_factory=dict)
    deposits: DepositLedger = field(default_factory=dict)
    withdrawals: WithdrawalLedger = field(default_factory=dict)
    listings: Dict[str, Listing] = field(default_factory=dict)
    orders: Dict[str, Order] = field(default_factory=dict)


@dataclass
class PlotSummary:
    """
    Plots split at the draftable index

    Attributes:
        rookies: Rookies not yet draftable
        draftable_rookies: Rookies that can be drafted now
        plots: Undraftable plots (index -> rookies)
        draftable_plots: Draftable plots (index -> rookies)
    """
    rookies: int = 0
    draftable_rookies: int = 0
    plots: Dict[int, int] = field(default_factory=dict)
    draftable_plots: Dict[int, int] = field(default_factory=dict)


def _lower(value: Any) -> str:
    return str(value).lower() if value is not None else ""


def _hex_id(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)


class EventProcessor:
    """
    Replays events for one account.

    One instance serves one balance query. It is not safe to ingest into
    the same instance from several threads.

    Usage:
        processor = EventProcessor(registry, account, season=current, whitelist=registry.whitelist)
        data = processor.ingest_all(events)
        hooligan_deposits = data.deposits[registry.get_by_symbol("HOOLIGAN")]
    """

    def __init__(
        self,
        registry: AssetRegistry,
        account: str,
        season: int,
        whitelist: Optional[Iterable[Asset]],
        initial_state: Optional[EventProcessorData] = None,
    ):
        if whitelist is None:
            raise ConfigurationError.missing("whitelist")

        self.registry = registry
        self.account = account.lower()
        self.season = int(season)
        self.whitelist: Tuple[Asset, ...] = tuple(whitelist)

        state = initial_state or EventProcessorData()
        self.plots: Dict[int, int] = state.plots
        self.deposits: DepositLedger = state.deposits or {a: {} for a in self.whitelist}
        self.withdrawals: WithdrawalLedger = state.withdrawals or {a: {} for a in self.whitelist}
        self.listings: Dict[str, Listing] = state.listings
        self.orders: Dict[str, Order] = state.orders

        self._handlers: Dict[EventKind, Callable[[Event], None]] = {
            EventKind.SOW: self._sow,
            EventKind.DRAFT: self._draft,
            EventKind.PLOT_TRANSFER: self._plot_transfer,
            EventKind.ADD_DEPOSIT: self._add_deposit,
            EventKind.REMOVE_DEPOSIT: self._remove_deposit,
            EventKind.REMOVE_DEPOSITS: self._remove_deposits,
            EventKind.ADD_WITHDRAWAL: self._add_withdrawal,
            EventKind.REMOVE_WITHDRAWAL: self._remove_withdrawal,
            EventKind.REMOVE_WITHDRAWALS: self._remove_withdrawals,
            EventKind.ROOKIE_LISTING_CREATED: self._listing_created,
            EventKind.ROOKIE_LISTING_CANCELLED: self._listing_cancelled,
            EventKind.ROOKIE_LISTING_FILLED: self._listing_filled,
            EventKind.ROOKIE_ORDER_CREATED: self._order_created,
            EventKind.ROOKIE_ORDER_CANCELLED: self._order_cancelled,
            EventKind.ROOKIE_ORDER_FILLED: self._order_filled,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def ingest(self, event: Event) -> None:
        """Apply one event. Kinds the processor does not know are ignored."""
        kind = EventKind.parse(event.kind)
        handler = self._handlers.get(kind) if kind is not None else None
        if handler is None:
            logger.debug(f"Ignoring unsupported event {event}")
            return
        handler(event)

    def ingest_all(self, events: Iterable[Event]) -> EventProcessorData:
        for event in events:
            self.ingest(event)
        return self.data()

    def data(self) -> EventProcessorData:
        return EventProcessorData(
            plots=self.plots,
            deposits=self.deposits,
            withdrawals=self.withdrawals,
            listings=self.listings,
            orders=self.orders,
        )

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def _is_whitelisted(self, asset: Asset) -> bool:
        return asset in self.whitelist

    def _get_asset(self, event: Event) -> Asset:
        token = event.args.get("token")
        asset = self.registry.find_by_address(token)
        if asset is None:
            logger.debug(f"Asset not found for {event}")
            raise UnknownAsset.not_found(str(token))
        return asset

    def _get_whitelisted_asset(self, event: Event) -> Asset:
        asset = self._get_asset(event)
        if not self._is_whitelisted(asset):
            raise UnknownAsset.not_whitelisted(asset.symbol)
        return asset

    # ------------------------------------------------------------------
    # Silo: deposits
    # ------------------------------------------------------------------

    def _add_deposit(self, event: Event) -> None:
        asset = self._get_whitelisted_asset(event)
        season = int(event.args["season"])
        amount = int(event.args["amount"])
        bdv = int(event.args["bdv"])

        crates = self.deposits.setdefault(asset, {})
        existing = crates.get(season)
        if existing is None:
            crates[season] = DepositCrateRaw(amount=amount, bdv=bdv)
        else:
            crates[season] = DepositCrateRaw(amount=existing.amount + amount, bdv=existing.bdv + bdv)

    @staticmethod
    def _apply_deposit_removal(
        crates: Dict[int, DepositCrateRaw],
        asset: Asset,
        season: int,
        amount: int,
    ) -> None:
        existing = crates.get(season)
        if existing is None:
            raise UnknownDepositBucket(asset.symbol, season)

        # bdv scales with amount; multiply before dividing
        bdv = amount * existing.bdv // existing.amount if existing.amount else 0

        remaining = DepositCrateRaw(amount=existing.amount - amount, bdv=existing.bdv - bdv)
        if remaining.amount == 0:
            del crates[season]
        else:
            crates[season] = remaining

    def _remove_deposit_batch(self, asset: Asset, removals: List[Tuple[int, int]]) -> None:
        staged = dict(self.deposits.get(asset, {}))
        for season, amount in removals:
            self._apply_deposit_removal(staged, asset, season, amount)
        self.deposits[asset] = staged

    def _remove_deposit(self, event: Event) -> None:
        asset = self._get_whitelisted_asset(event)
        self._remove_deposit_batch(asset, [(int(event.args["season"]), int(event.args["amount"]))])

    def _remove_deposits(self, event: Event) -> None:
        asset = self._get_whitelisted_asset(event)
        seasons = [int(s) for s in event.args["seasons"]]
        amounts = [int(a) for a in event.args["amounts"]]
        if len(seasons) != len(amounts):
            raise ValueError(
                f"{event}: RemoveDeposits has {len(seasons)} seasons but {len(amounts)} amounts"
            )
        self._remove_deposit_batch(asset, list(zip(seasons, amounts)))

    # ------------------------------------------------------------------
    # Silo: withdrawals
    # ------------------------------------------------------------------

    def _add_withdrawal(self, event: Event) -> None:
        asset = self._get_whitelisted_asset(event)
        season = int(event.args["season"])
        amount = int(event.args["amount"])

        crates = self.withdrawals.setdefault(asset, {})
        existing = crates.get(season)
        crates[season] = WithdrawalCrateRaw(amount=(existing.amount if existing else 0) + amount)

    def _remove_withdrawal_batch(self, event: Event, seasons: List[int], amount: int) -> None:
        # The contract emits zero-amount removals for calls that matched
        # nothing, including unknown tokens.
        if amount == 0:
            return

        asset = self._get_asset(event)
        if not self._is_whitelisted(asset):
            logger.debug(f"Ignoring {event.kind} for non-whitelisted {asset.symbol}")
            return
        crates = self.withdrawals.get(asset, {})
        for season in seasons:
            if season not in crates:
                raise UnknownWithdrawalBucket(asset.symbol, season)

        # A removal always claims the whole season
        for season in seasons:
            crates.pop(season, None)
        self.withdrawals[asset] = crates

    def _remove_withdrawal(self, event: Event) -> None:
        self._remove_withdrawal_batch(event, [int(event.args["season"])], int(event.args["amount"]))

    def _remove_withdrawals(self, event: Event) -> None:
        seasons = [int(s) for s in event.args["seasons"]]
        self._remove_withdrawal_batch(event, seasons, int(event.args["amount"]))

    # ------------------------------------------------------------------
    # Field
    # ------------------------------------------------------------------

    def _sow(self, event: Event) -> None:
        self.plots[int(event.args["index"])] = int(event.args["rookies"])

    def _draft(self, event: Event) -> None:
        hooligans_claimed = int(event.args["hooligans"])
        for index in sorted(int(p) for p in event.args["plots"]):
            size = self.plots.get(index)
            if size is None:
                logger.warning(f"Draft for unknown plot {index}; skipping")
                continue

            del self.plots[index]
            if hooligans_claimed < size:
                # Partially drafted: the rest of the plot moves up the line
                self.plots[index + hooligans_claimed] = size - hooligans_claimed
                hooligans_claimed = 0
            else:
                hooligans_claimed -= size

    def _plot_transfer(self, event: Event) -> None:
        index = int(event.args["id"])
        rookies = int(event.args["rookies"])

        if _lower(event.args.get("to")) == self.account:
            self.plots[index] = rookies
            return
        if _lower(event.args.get("from")) != self.account:
            return

        if index in self.plots:
            size = self.plots.pop(index)
            if rookies != size:
                self.plots[index + rookies] = size - rookies
            return

        # Sent from the middle of a plot: find the plot covering
        # [start, end) that contains index
        starts = sorted(self.plots)
        pos = bisect_right(starts, index) - 1
        if pos < 0:
            logger.warning(f"PlotTransfer from unknown plot at {index}; skipping")
            return
        start = starts[pos]
        end = start + self.plots[start]
        if index >= end:
            logger.warning(f"PlotTransfer from unknown plot at {index}; skipping")
            return

        self.plots[start] = index - start
        tail = index + rookies
        if tail < end:
            self.plots[tail] = end - tail

    def parse_plots(self, draftable_index: int) -> PlotSummary:
        """Split plots into draftable and undraftable at `draftable_index`"""
        summary = PlotSummary()
        for start in sorted(self.plots):
            size = self.plots[start]
            if start + size <= draftable_index:
                summary.draftable_rookies += size
                summary.draftable_plots[start] = size
            elif start < draftable_index:
                ready = draftable_index - start
                summary.draftable_rookies += ready
                summary.draftable_plots[start] = ready
                summary.rookies += size - ready
                summary.plots[draftable_index] = size - ready
            else:
                summary.rookies += size
                summary.plots[start] = size
        return summary

    # ------------------------------------------------------------------
    # Market
    # ------------------------------------------------------------------

    def _listing_created(self, event: Event) -> None:
        args = event.args
        listing_id = str(int(args["index"]))
        amount = int(args["amount"])
        self.listings[listing_id] = Listing(
            id=listing_id,
            account=_lower(args["account"]),
            index=int(args["index"]),
            start=int(args["start"]),
            price_per_rookie=int(args["pricePerRookie"]),
            max_draftable_index=int(args["maxDraftableIndex"]),
            mode=int(args["mode"]),
            amount=amount,
            total_amount=amount,
            remaining_amount=amount,
        )

    def _listing_cancelled(self, event: Event) -> None:
        self.listings.pop(str(int(event.args["index"])), None)

    def _listing_filled(self, event: Event) -> None:
        """
        A fill moves the listing to `index + start + amount`, the first
        rookie still for sale, and restarts it at offset zero.
        """
        listing_id = str(int(event.args["index"]))
        listing = self.listings.pop(listing_id, None)
        if listing is None:
            return

        amount = int(event.args["amount"])
        new_index = int(event.args["index"]) + int(event.args["start"]) + amount

        listing.id = str(new_index)
        listing.index = new_index
        listing.start = 0
        listing.filled_amount += amount
        listing.remaining_amount = listing.total_amount - listing.filled_amount
        listing.amount = listing.remaining_amount
        if listing.remaining_amount == 0:
            listing.status = MarketStatus.FILLED
        self.listings[listing.id] = listing

    def _order_created(self, event: Event) -> None:
        args = event.args
        order_id = _hex_id(args["id"])
        amount = int(args["amount"])
        self.orders[order_id] = Order(
            id=order_id,
            account=_lower(args["account"]),
            max_place_in_line=int(args["maxPlaceInLine"]),
            price_per_rookie=int(args["pricePerRookie"]),
            total_amount=amount,
            remaining_amount=amount,
        )

    def _order_cancelled(self, event: Event) -> None:
        self.orders.pop(_hex_id(event.args["id"]), None)

    def _order_filled(self, event: Event) -> None:
        order = self.orders.get(_hex_id(event.args["id"]))
        if order is None:
            return
        order.filled_amount += int(event.args["amount"])
        order.remaining_amount = order.total_amount - order.filled_amount
        if order.remaining_amount == 0:
            order.status = MarketStatus.FILLED

    # ------------------------------------------------------------------
    # Silo: utils
    # ------------------------------------------------------------------

    def parse_withdrawals(
        self,
        asset: Asset,
        season: Optional[int] = None,
    ) -> Tuple[WithdrawnBalance, WithdrawnBalance]:
        """
        Split an asset's withdrawals at `season` (default: the processor's).

        Returns:
            (withdrawn, claimable); claimable holds seasons <= season
        """
        return parse_withdrawals(self.withdrawals.get(asset, {}), self.season if season is None else season)


def parse_withdrawals(
    withdrawals: Mapping[int, WithdrawalCrateRaw],
    current_season: int,
) -> Tuple[WithdrawnBalance, WithdrawnBalance]:
    withdrawn = WithdrawnBalance()
    claimable = WithdrawnBalance()
    for season in sorted(withdrawals):
        amount = withdrawals[season].amount
        bucket = claimable if season <= current_season else withdrawn
        bucket.amount += amount
        bucket.crates.append(WithdrawalCrate(season=season, amount=amount))
    return withdrawn, claimable
