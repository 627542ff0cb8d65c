"""
Error definitions for Farm Adapter
"""

from .exceptions import (
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

__all__ = [
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
]
