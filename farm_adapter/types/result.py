"""
Result type definitions for transactions
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


@dataclass
class TxResult:
    """
    Transaction execution result

    Attributes:
        status: Transaction status
        tx_hash: Transaction hash (hex)
        error: Error message if failed
        block_number: Block the transaction was mined in
        gas_used: Gas consumed
        effective_gas_price: Price paid per gas, in wei
        receipt: Raw receipt
    """
    status: TxStatus
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None
    receipt: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status == TxStatus.FAILED

    @property
    def fee_wei(self) -> Optional[int]:
        if self.gas_used is None or self.effective_gas_price is None:
            return None
        return self.gas_used * self.effective_gas_price

    @classmethod
    def from_receipt(cls, receipt: Dict[str, Any]) -> "TxResult":
        """Build a result from a web3 receipt"""
        tx_hash = receipt.get("transactionHash")
        if hasattr(tx_hash, "hex"):
            tx_hash = tx_hash.hex()
        return cls(
            status=TxStatus.SUCCESS if receipt.get("status") == 1 else TxStatus.FAILED,
            tx_hash=tx_hash,
            error=None if receipt.get("status") == 1 else "Transaction reverted",
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
            effective_gas_price=receipt.get("effectiveGasPrice", 0),
            receipt=dict(receipt),
        )

    def __str__(self) -> str:
        if self.is_success:
            hash_display = f"{self.tx_hash[:16]}..." if self.tx_hash else "no hash"
            return f"TxResult(SUCCESS, {hash_display})"
        return f"TxResult({self.status.value}, error={self.error})"
