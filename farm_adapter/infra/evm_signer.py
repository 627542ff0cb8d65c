"""
EVM Transaction Signer using web3.py

Provides local signing for the aggregated farm transaction and a handle
to wait for its receipt. Only supports local private key signing.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Dict, Any

from web3 import Web3, HTTPProvider
from web3.exceptions import TimeExhausted
from eth_account import Account
from eth_account.signers.local import LocalAccount

from ..errors import ConfigurationError
from ..types import TxResult

logger = logging.getLogger(__name__)


class TransactionHandle:
    """
    Handle for a submitted transaction.

    wait() blocks until the transaction has a receipt. web3's receipt wait
    is retried every `timeout` seconds, so there is no overall timeout;
    wrap the call if one is needed.
    """

    def __init__(self, web3: "Web3", tx_hash: str, poll_interval: float = 2.0, timeout: float = 120.0):
        self._web3 = web3
        self.tx_hash = tx_hash
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._result: Optional[TxResult] = None

    def wait(self) -> TxResult:
        if self._result is not None:
            return self._result

        while True:
            try:
                receipt = self._web3.eth.wait_for_transaction_receipt(
                    self.tx_hash, timeout=self.timeout, poll_latency=self.poll_interval
                )
                break
            except TimeExhausted:
                logger.info(f"Transaction {self.tx_hash[:16]}... still pending after {self.timeout}s")

        self._result = TxResult.from_receipt(receipt)
        if self._result.tx_hash is None:
            self._result.tx_hash = self.tx_hash
        logger.info(f"Transaction {self.tx_hash[:16]}... mined: {self._result.status.value}")
        return self._result

    def __repr__(self) -> str:
        return f"TransactionHandle({self.tx_hash})"


class EVMSigner:
    """
    Local EVM signer using web3.py

    Usage:
        # From private key
        signer = EVMSigner.from_private_key("0x...")

        # From environment variable
        signer = EVMSigner.from_env()

        # Submit a call
        tx_hash = signer.send_transaction(web3, to, data, value=0)
    """

    def __init__(self, account: "LocalAccount", chain_id: Optional[int] = None):
        """
        Initialize with eth_account LocalAccount

        Args:
            account: LocalAccount from eth_account
            chain_id: Chain to sign for (read from the node when None)
        """
        self._account = account
        self.chain_id = chain_id

    @property
    def address(self) -> str:
        """Get wallet address (checksummed)"""
        return self._account.address

    def sign_transaction(self, tx_dict: Dict[str, Any]) -> bytes:
        """Sign a transaction dict and return the raw transaction"""
        signed = self._account.sign_transaction(tx_dict)
        return signed.raw_transaction

    def build_transaction(
        self,
        web3: "Web3",
        to: str,
        data: bytes,
        value: int = 0,
        gas_limit_multiplier: float = 1.2,
    ) -> Dict[str, Any]:
        """
        Build a transaction dict with nonce, gas and gas price filled in.

        Gas estimation failures (reverts) are propagated.
        """
        tx = {
            "from": self.address,
            "to": Web3.to_checksum_address(to),
            "data": data,
            "value": value,
        }
        gas = web3.eth.estimate_gas(tx)
        tx["gas"] = int(gas * gas_limit_multiplier)
        tx["nonce"] = web3.eth.get_transaction_count(self.address, "pending")
        tx["chainId"] = self.chain_id if self.chain_id is not None else web3.eth.chain_id
        tx["gasPrice"] = web3.eth.gas_price
        return tx

    def send_transaction(
        self,
        web3: "Web3",
        to: str,
        data: bytes,
        value: int = 0,
        gas_limit_multiplier: float = 1.2,
    ) -> str:
        """
        Sign and broadcast a transaction.

        Returns:
            Transaction hash (hex)
        """
        tx = self.build_transaction(web3, to, data, value, gas_limit_multiplier)
        raw = self.sign_transaction(tx)
        tx_hash = web3.eth.send_raw_transaction(raw)
        tx_hash_hex = tx_hash.hex() if hasattr(tx_hash, "hex") else str(tx_hash)
        if not tx_hash_hex.startswith("0x"):
            tx_hash_hex = "0x" + tx_hash_hex
        logger.info(f"Transaction sent: {tx_hash_hex} (nonce={tx['nonce']}, gas={tx['gas']})")
        return tx_hash_hex

    @classmethod
    def from_private_key(cls, private_key: str, chain_id: Optional[int] = None) -> "EVMSigner":
        """
        Create signer from private key

        Args:
            private_key: Hex-encoded private key (with or without 0x prefix)
            chain_id: Optional chain id pinned into every transaction
        """
        if not private_key.startswith("0x"):
            private_key = "0x" + private_key

        account = Account.from_key(private_key)
        return cls(account, chain_id)

    @classmethod
    def from_env(cls, env_var: str = "EVM_PRIVATE_KEY", chain_id: Optional[int] = None) -> "EVMSigner":
        """
        Create signer from environment variable

        Raises:
            ConfigurationError: If environment variable is not set
        """
        private_key = os.getenv(env_var, "")
        if not private_key:
            raise ConfigurationError.missing(env_var)

        return cls.from_private_key(private_key, chain_id)

    def __repr__(self) -> str:
        return f"EVMSigner(address={self.address})"


def create_web3(
    rpc_url: str,
    timeout: float = 30,
) -> "Web3":
    """
    Create Web3 instance for an RPC endpoint

    Args:
        rpc_url: RPC endpoint URL
        timeout: Request timeout in seconds

    Returns:
        Configured Web3 instance
    """
    if not rpc_url:
        raise ConfigurationError.missing("ETH_RPC_URL")

    provider = HTTPProvider(
        rpc_url,
        request_kwargs={"timeout": timeout},
    )
    return Web3(provider)
