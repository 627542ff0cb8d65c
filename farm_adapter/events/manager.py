"""
Event Manager

Fetches the protocol events for an account from a log source. The
independent queries for one call fan out on a thread pool and are joined,
de-duplicated and sorted into chain order before being returned.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from web3 import Web3

from ..config import EventsConfig
from ..types import Event, EventKind, SILO_EVENTS

logger = logging.getLogger(__name__)

BlockId = Union[int, str]

# (kind, argument filters)
Query = Tuple[EventKind, Dict[str, Any]]


class LogSource(Protocol):
    """Anything that can return decoded events for one kind and filter"""

    def get_events(
        self,
        kind: EventKind,
        argument_filters: Dict[str, Any],
        from_block: BlockId,
        to_block: BlockId,
    ) -> List[Event]:
        ...


class Web3LogSource:
    """
    LogSource backed by a web3 contract object.

    Usage:
        source = Web3LogSource(contracts.protocol_contract())
    """

    def __init__(self, contract):
        self._contract = contract

    def get_events(
        self,
        kind: EventKind,
        argument_filters: Dict[str, Any],
        from_block: BlockId,
        to_block: BlockId,
    ) -> List[Event]:
        event_type = getattr(self._contract.events, kind.value)
        entries = event_type().get_logs(
            argument_filters=argument_filters,
            from_block=from_block,
            to_block=to_block,
        )
        return [self._to_event(entry) for entry in entries]

    @staticmethod
    def _to_event(entry: Any) -> Event:
        tx_hash = entry.get("transactionHash")
        return Event(
            kind=entry["event"],
            args=dict(entry["args"]),
            block_number=int(entry["blockNumber"]),
            transaction_index=int(entry["transactionIndex"]),
            log_index=int(entry["logIndex"]),
            transaction_hash=Web3.to_hex(tx_hash) if tx_hash is not None else None,
        )


def reduce_and_sort(batches: Iterable[Sequence[Event]]) -> List[Event]:
    """Flatten query results, drop duplicates and sort into chain order"""
    seen = set()
    events: List[Event] = []
    for batch in batches:
        for event in batch:
            if event.identity in seen:
                continue
            seen.add(event.identity)
            events.append(event)
    events.sort(key=lambda e: e.sort_key)
    return events


class EventManager:
    """
    Usage:
        manager = EventManager(Web3LogSource(contracts.protocol_contract()))
        events = manager.get_silo_events(account)
        data = EventProcessor(registry, account, season, registry.whitelist).ingest_all(events)
    """

    def __init__(self, log_source: LogSource, events_config: Optional[EventsConfig] = None):
        self._source = log_source
        self._config = events_config or EventsConfig()

    def _fetch(self, queries: List[Query], from_block: BlockId, to_block: BlockId) -> List[Event]:
        with ThreadPoolExecutor(max_workers=max(1, min(self._config.max_workers, len(queries)))) as pool:
            futures = [
                pool.submit(self._source.get_events, kind, filters, from_block, to_block)
                for kind, filters in queries
            ]
            # result() re-raises the first transport error
            batches = [f.result() for f in futures]

        events = reduce_and_sort(batches)
        logger.debug(f"Fetched {len(events)} events from {len(queries)} queries ({from_block} -> {to_block})")
        return events

    def get_silo_events(
        self,
        account: str,
        token: Optional[str] = None,
        from_block: Optional[int] = None,
        to_block: Optional[BlockId] = None,
    ) -> List[Event]:
        """Deposit and withdrawal events for `account`, optionally for one token"""
        filters: Dict[str, Any] = {"account": Web3.to_checksum_address(account)}
        if token:
            filters["token"] = Web3.to_checksum_address(token)
        queries = [(kind, dict(filters)) for kind in SILO_EVENTS]
        return self._fetch(
            queries,
            from_block or self._config.genesis_block,
            to_block or "latest",
        )

    def get_field_events(
        self,
        account: str,
        from_block: Optional[int] = None,
        to_block: Optional[BlockId] = None,
    ) -> List[Event]:
        """Sow, Draft and PlotTransfer (sent and received) for `account`"""
        if not account:
            raise ValueError("account missing")
        address = Web3.to_checksum_address(account)
        queries: List[Query] = [
            (EventKind.SOW, {"account": address}),
            (EventKind.DRAFT, {"account": address}),
            (EventKind.PLOT_TRANSFER, {"from": address}),
            (EventKind.PLOT_TRANSFER, {"to": address}),
        ]
        return self._fetch(
            queries,
            from_block or self._config.genesis_block,
            to_block or "latest",
        )

    def get_market_events(
        self,
        account: str,
        from_block: Optional[int] = None,
        to_block: Optional[BlockId] = None,
    ) -> List[Event]:
        """Listings and orders created, cancelled or filled for `account`"""
        if not account:
            raise ValueError("account missing")
        address = Web3.to_checksum_address(account)
        queries: List[Query] = [
            (EventKind.ROOKIE_LISTING_CREATED, {"account": address}),
            (EventKind.ROOKIE_LISTING_CANCELLED, {"account": address}),
            (EventKind.ROOKIE_LISTING_FILLED, {"to": address}),
            (EventKind.ROOKIE_ORDER_CREATED, {"account": address}),
            (EventKind.ROOKIE_ORDER_CANCELLED, {"account": address}),
            (EventKind.ROOKIE_ORDER_FILLED, {"to": address}),
        ]
        return self._fetch(
            queries,
            from_block or self._config.market_start_block,
            to_block or "latest",
        )
