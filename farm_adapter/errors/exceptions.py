"""
Exception definitions for Farm Adapter
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for farm operations

    2xxx - Balance errors
    4xxx - Ledger / asset errors
    6xxx - Permit errors
    7xxx - Operation errors
    9xxx - Configuration errors
    """
    # Balance errors
    INSUFFICIENT_FUNDS = "2004"

    # Ledger / asset errors
    UNKNOWN_ASSET = "4001"
    UNKNOWN_DEPOSIT_BUCKET = "4002"
    UNKNOWN_WITHDRAWAL_BUCKET = "4003"

    # Permit errors
    PERMIT_REQUIRED = "6001"
    PERMIT_MALFORMED = "6002"

    # Operation errors
    OPERATION_NOT_SUPPORTED = "7001"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class FarmAdapterError(Exception):
    """
    Base exception for all farm adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class UnknownAsset(FarmAdapterError):
    """
    Asset is not in the registry or not whitelisted - not recoverable

    Raised when:
    - An event references a token address the registry does not know
    - An event or request references an asset outside the whitelist
    """

    def __init__(self, message: str, asset: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.UNKNOWN_ASSET,
            recoverable=False,
            details={"asset": asset} if asset else None,
        )
        self.asset = asset

    @classmethod
    def not_found(cls, address: str) -> "UnknownAsset":
        return cls(f"Asset not found for address {address}", asset=address)

    @classmethod
    def not_whitelisted(cls, symbol: str) -> "UnknownAsset":
        return cls(f"{symbol} is not on the whitelist", asset=symbol)


class UnknownDepositBucket(FarmAdapterError):
    """
    A deposit removal matched no prior deposit

    Usually means the event feed is out of order or the block range
    started too late.
    """

    def __init__(self, symbol: str, season: int):
        super().__init__(
            f"Received a RemoveDeposit event for an unknown deposit: {symbol} season {season}",
            ErrorCode.UNKNOWN_DEPOSIT_BUCKET,
            recoverable=False,
            details={"asset": symbol, "season": season},
        )
        self.asset = symbol
        self.season = season


class UnknownWithdrawalBucket(FarmAdapterError):
    """A withdrawal removal matched no prior withdrawal"""

    def __init__(self, symbol: str, season: int):
        super().__init__(
            f"Received a RemoveWithdrawal event for an unknown withdrawal: {symbol} season {season}",
            ErrorCode.UNKNOWN_WITHDRAWAL_BUCKET,
            recoverable=False,
            details={"asset": symbol, "season": season},
        )
        self.asset = symbol
        self.season = season


class UnsupportedOperation(FarmAdapterError):
    """
    Operation not supported - not recoverable

    Raised when:
    - A step cannot estimate in reverse
    - A mode combination is not implemented
    - A workflow is modified after it has been run
    - No route exists for a requested operation
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.OPERATION_NOT_SUPPORTED,
            recoverable=False,
            details={"operation": operation} if operation else None,
        )
        self.operation = operation

    @classmethod
    def reverse_estimate(cls, step_name: str) -> "UnsupportedOperation":
        return cls(
            f"Step '{step_name}' does not support reverse estimation",
            operation="estimate_reversed",
        )

    @classmethod
    def mode(cls, step_name: str, mode) -> "UnsupportedOperation":
        return cls(
            f"Step '{step_name}' does not support mode {mode}",
            operation=step_name,
        )

    @classmethod
    def no_route(cls, from_symbol: str, to_symbol: str) -> "UnsupportedOperation":
        return cls(
            f"No route found from {from_symbol} to {to_symbol}",
            operation="route",
        )


class PermitRequired(FarmAdapterError):
    """A step needs a signed permit it did not receive"""

    def __init__(self, step_name: str):
        super().__init__(
            f"Step '{step_name}' requires a signed permit",
            ErrorCode.PERMIT_REQUIRED,
            recoverable=False,
            details={"step": step_name},
        )
        self.step_name = step_name


class MalformedPermit(FarmAdapterError):
    """A provided permit does not have the expected structure"""

    def __init__(self, message: str, missing: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.PERMIT_MALFORMED,
            recoverable=False,
            details={"missing": missing} if missing else None,
        )
        self.missing = missing

    @classmethod
    def missing_field(cls, field_path: str) -> "MalformedPermit":
        return cls(f"Permit is missing '{field_path}'", missing=field_path)


class InsufficientFunds(FarmAdapterError):
    """
    Not enough balance to cover an amount

    Raised when:
    - Deposit crates do not add up to the amount being picked
    """

    def __init__(
        self,
        message: str,
        required: Optional[int] = None,
        available: Optional[int] = None,
        asset: Optional[str] = None,
    ):
        super().__init__(
            message,
            ErrorCode.INSUFFICIENT_FUNDS,
            recoverable=False,
            details={
                "required": required,
                "available": available,
                "asset": asset,
            },
        )
        self.required = required
        self.available = available
        self.asset = asset

    @classmethod
    def crates(cls, asset: str, required: int, available: int) -> "InsufficientFunds":
        return cls(
            f"Not enough {asset} in crates: need {required}, have {available}",
            required=required,
            available=available,
            asset=asset,
        )


class ConfigurationError(FarmAdapterError):
    """
    Configuration error - not recoverable

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
        param: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"param": param} if param else None,
        )
        self.param = param

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(
            f"Missing required configuration: {param}",
            code=ErrorCode.CONFIG_MISSING,
            param=param,
        )

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(
            f"Invalid configuration for {param}: {reason}",
            code=ErrorCode.CONFIG_INVALID,
            param=param,
        )
