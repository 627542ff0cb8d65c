"""
Infrastructure layer for Farm Adapter

Provides:
- ContractInterface / ProtocolContracts: ABI encoding and read calls
- EVMSigner / TransactionHandle: signing, submission and receipt polling
- CorrelationContext: correlation IDs for structured logging
"""

from .contracts import (
    ContractInterface,
    ProtocolContracts,
    PROTOCOL_ABI,
    PROTOCOL_INTERFACE,
    CURVE_POOL_INTERFACE,
    CURVE_CRYPTO_POOL_INTERFACE,
    CURVE_REGISTRY_INTERFACE,
    CURVE_CRYPTO_REGISTRY_INTERFACE,
    curve_calc_token_amount_abi,
)
from .evm_signer import EVMSigner, TransactionHandle, create_web3
from .correlation import (
    CorrelationContext,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
    log_with_correlation,
)

__all__ = [
    "ContractInterface",
    "ProtocolContracts",
    "PROTOCOL_ABI",
    "PROTOCOL_INTERFACE",
    "CURVE_POOL_INTERFACE",
    "CURVE_CRYPTO_POOL_INTERFACE",
    "CURVE_REGISTRY_INTERFACE",
    "CURVE_CRYPTO_REGISTRY_INTERFACE",
    "curve_calc_token_amount_abi",
    "EVMSigner",
    "TransactionHandle",
    "create_web3",
    "CorrelationContext",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
    "log_with_correlation",
]
