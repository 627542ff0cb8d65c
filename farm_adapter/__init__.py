"""
Farm Adapter - client library for the farm protocol on Ethereum

Provides:
- Workflow engine: compose protocol calls, estimate forward and in
  reverse, execute as one farm(bytes[]) transaction
- Routing: shortest conversion routes over swap and deposit graphs
- Event replay: silo, field and market ledgers rebuilt from chain events
"""

from .client import FarmClient
from .config import Config, config, get_config, reload_config, setup_logging, enable_file_logging
from .types import (
    Asset,
    AssetRegistry,
    NATIVE_TOKEN_ADDRESS,
    build_registry,
    Event,
    EventKind,
    DepositCrate,
    WithdrawalCrate,
    TokenSiloBalance,
    FarmFromMode,
    FarmToMode,
    SignedPermit,
    TxResult,
    TxStatus,
)
from .errors import (
    ErrorCode,
    FarmAdapterError,
    UnknownAsset,
    UnknownDepositBucket,
    UnknownWithdrawalBucket,
    UnsupportedOperation,
    PermitRequired,
    MalformedPermit,
    InsufficientFunds,
    ConfigurationError,
)
from .workflow import Workflow, FarmWorkflow, Clipboard, StepResult, RunContext, RunMode, LibraryPresets
from .routing import AssetGraph, Router, Route, RouteStep
from .events import EventProcessor, EventManager, Web3LogSource
from .modules import SiloModule, SwapModule, DepositModule
from .infra import EVMSigner, ProtocolContracts, create_web3

__all__ = [
    # Client
    "FarmClient",
    # Config
    "Config",
    "config",
    "get_config",
    "reload_config",
    "setup_logging",
    "enable_file_logging",
    # Types
    "Asset",
    "AssetRegistry",
    "NATIVE_TOKEN_ADDRESS",
    "build_registry",
    "Event",
    "EventKind",
    "DepositCrate",
    "WithdrawalCrate",
    "TokenSiloBalance",
    "FarmFromMode",
    "FarmToMode",
    "SignedPermit",
    "TxResult",
    "TxStatus",
    # Errors
    "ErrorCode",
    "FarmAdapterError",
    "UnknownAsset",
    "UnknownDepositBucket",
    "UnknownWithdrawalBucket",
    "UnsupportedOperation",
    "PermitRequired",
    "MalformedPermit",
    "InsufficientFunds",
    "ConfigurationError",
    # Workflow
    "Workflow",
    "FarmWorkflow",
    "Clipboard",
    "StepResult",
    "RunContext",
    "RunMode",
    "LibraryPresets",
    # Routing
    "AssetGraph",
    "Router",
    "Route",
    "RouteStep",
    # Events
    "EventProcessor",
    "EventManager",
    "Web3LogSource",
    # Modules
    "SiloModule",
    "SwapModule",
    "DepositModule",
    # Infra
    "EVMSigner",
    "ProtocolContracts",
    "create_web3",
]

__version__ = "0.1.0"
