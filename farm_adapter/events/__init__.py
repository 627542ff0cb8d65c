"""
Event replay for Farm Adapter

Provides:
- EventManager / Web3LogSource: concurrent log queries per account
- EventProcessor: folds events into deposit, withdrawal, plot and market ledgers
"""

from .processor import EventProcessor, EventProcessorData, PlotSummary, parse_withdrawals
from .manager import EventManager, LogSource, Web3LogSource, reduce_and_sort

__all__ = [
    "EventProcessor",
    "EventProcessorData",
    "PlotSummary",
    "parse_withdrawals",
    "EventManager",
    "LogSource",
    "Web3LogSource",
    "reduce_and_sort",
]
