"""
Workflow engine for Farm Adapter

Provides:
- Workflow / FarmWorkflow: step pipelines with estimate, reverse estimate and execute
- Actions: protocol calls usable as steps
- LibraryPresets: ready-made step lists for common conversions
"""

from .base import (
    RunMode,
    Clipboard,
    StepResult,
    RunContext,
    Step,
    FunctionStep,
    Workflow,
)
from .farm import FarmWorkflow
from .actions import (
    FarmAction,
    WrapEth,
    UnwrapEth,
    TransferToken,
    PermitERC20,
    Exchange,
    ExchangeUnderlying,
    AddLiquidity,
    Deposit,
    DevDebug,
)
from .presets import LibraryPresets

__all__ = [
    # Engine
    "RunMode",
    "Clipboard",
    "StepResult",
    "RunContext",
    "Step",
    "FunctionStep",
    "Workflow",
    "FarmWorkflow",
    # Actions
    "FarmAction",
    "WrapEth",
    "UnwrapEth",
    "TransferToken",
    "PermitERC20",
    "Exchange",
    "ExchangeUnderlying",
    "AddLiquidity",
    "Deposit",
    "DevDebug",
    # Presets
    "LibraryPresets",
]
