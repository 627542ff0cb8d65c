"""
Test Infrastructure Module

Tests for contract encoding, read calls, correlation IDs, configuration
and the EVM signer. Web3 is mocked; nothing leaves the process.
"""

import logging
import sys
from pathlib import Path
from unittest.mock import MagicMock, PropertyMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from web3 import Web3
from web3.exceptions import TimeExhausted

from conftest import PROTOCOL, addr, make_protocol_config

# Well-known test key (hardhat account #0) - never holds real funds
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class TestContractInterface:

    def test_selector_matches_keccak(self):
        from farm_adapter.infra import PROTOCOL_INTERFACE

        print("Testing selectors...")

        assert PROTOCOL_INTERFACE.signature("farm") == "farm(bytes[])"
        assert PROTOCOL_INTERFACE.signature("pipe") == "pipe((address,bytes))"
        assert PROTOCOL_INTERFACE.selector("farm") == bytes(Web3.keccak(text="farm(bytes[])")[:4])

        print("  selectors: PASSED")

    def test_encode_checksums_addresses(self):
        from farm_adapter.infra import PROTOCOL_INTERFACE

        data = PROTOCOL_INTERFACE.encode_function_data("deposit", [addr("ab"), 5, 0])
        token, amount, mode = PROTOCOL_INTERFACE.decode_function_data("deposit", data)
        assert token.lower() == addr("ab")
        assert (amount, mode) == (5, 0)

    def test_encode_rejects_wrong_arity(self):
        from farm_adapter.infra import PROTOCOL_INTERFACE

        with pytest.raises(ValueError):
            PROTOCOL_INTERFACE.encode_function_data("deposit", [addr("ab"), 5])

    def test_unknown_function(self):
        from farm_adapter.infra import PROTOCOL_INTERFACE

        assert not PROTOCOL_INTERFACE.has_function("sow")
        with pytest.raises(ValueError):
            PROTOCOL_INTERFACE.encode_function_data("sow", [])

    def test_decode_rejects_other_selector(self):
        from farm_adapter.infra import PROTOCOL_INTERFACE

        data = PROTOCOL_INTERFACE.encode_function_data("unwrapEth", [1, 0])
        with pytest.raises(ValueError):
            PROTOCOL_INTERFACE.decode_function_data("wrapEth", data)

    def test_calc_token_amount_abi_size(self):
        from farm_adapter.infra import ContractInterface, curve_calc_token_amount_abi

        iface = ContractInterface(curve_calc_token_amount_abi(3))
        assert iface.signature("calc_token_amount") == "calc_token_amount(uint256[3],bool)"


class TestProtocolContracts:

    def test_call_uses_contract_functions(self):
        from farm_adapter.infra import PROTOCOL_ABI, ProtocolContracts

        print("Testing ProtocolContracts.call...")

        web3 = MagicMock()
        season = web3.eth.contract.return_value.functions.season
        season.return_value.call.return_value = 12345
        contracts = ProtocolContracts(web3, make_protocol_config())

        assert contracts.current_season() == 12345
        web3.eth.contract.assert_called_once_with(
            address=Web3.to_checksum_address(PROTOCOL), abi=PROTOCOL_ABI,
        )
        season.assert_called_once_with()
        season.return_value.call.assert_called_once_with(block_identifier="latest")

        print("  ProtocolContracts.call: PASSED")

    def test_call_checksums_address_args(self):
        from farm_adapter.infra import ProtocolContracts

        web3 = MagicMock()
        horde = web3.eth.contract.return_value.functions.balanceOfHorde
        horde.return_value.call.return_value = 7
        contracts = ProtocolContracts(web3, make_protocol_config())

        assert contracts.call_protocol("balanceOfHorde", [addr("ab")], block=100) == 7
        horde.assert_called_once_with(Web3.to_checksum_address(addr("ab")))
        horde.return_value.call.assert_called_once_with(block_identifier=100)

    def test_call_rejects_wrong_arity(self):
        from farm_adapter.infra import ProtocolContracts

        contracts = ProtocolContracts(MagicMock(), make_protocol_config())
        with pytest.raises(ValueError):
            contracts.call_protocol("bdv", [addr("ab")])

    def test_call_propagates_node_errors(self):
        from farm_adapter.infra import ProtocolContracts

        web3 = MagicMock()
        season = web3.eth.contract.return_value.functions.season
        season.return_value.call.side_effect = ConnectionError("rpc down")
        contracts = ProtocolContracts(web3, make_protocol_config())
        with pytest.raises(ConnectionError):
            contracts.current_season()

    def test_missing_web3_and_addresses(self):
        from farm_adapter.errors import ConfigurationError
        from farm_adapter.infra import ProtocolContracts

        contracts = ProtocolContracts(None, make_protocol_config(pipeline=""))
        with pytest.raises(ConfigurationError):
            contracts.web3
        with pytest.raises(ConfigurationError):
            contracts.pipeline_address
        assert contracts.protocol_address == PROTOCOL


class TestCorrelation:

    def test_context_sets_and_resets_id(self):
        from farm_adapter.infra import CorrelationContext, get_correlation_id

        print("Testing CorrelationContext...")

        assert get_correlation_id() is None
        with CorrelationContext("swap") as cid:
            assert cid.startswith("swap_")
            assert get_correlation_id() == cid
            # Nested contexts keep the outer id
            with CorrelationContext("silo") as inner:
                assert inner == cid
        assert get_correlation_id() is None

        print("  CorrelationContext: PASSED")

    def test_log_with_correlation(self, caplog):
        from farm_adapter.infra import CorrelationContext, log_with_correlation

        target = logging.getLogger("farm_adapter.test")
        with caplog.at_level(logging.INFO, logger="farm_adapter.test"):
            with CorrelationContext("deposit") as cid:
                log_with_correlation(logging.INFO, "done", "deposit.execute", target_logger=target, steps=3)

        record = caplog.records[-1]
        assert record.getMessage() == f"[{cid}] [deposit.execute] done"
        assert record.correlation_id == cid
        assert record.steps == 3


class TestConfig:

    def test_tx_config_env_override(self, monkeypatch):
        from farm_adapter.config import TxConfig

        print("Testing TxConfig...")

        monkeypatch.setenv("TX_DEFAULT_SLIPPAGE", "0.5")
        monkeypatch.setenv("TX_GAS_LIMIT_MULTIPLIER", "not-a-number")
        cfg = TxConfig()
        assert cfg.default_slippage == 0.5
        assert cfg.gas_limit_multiplier == 1.2

        print("  TxConfig: PASSED")

    def test_protocol_config_require(self):
        from farm_adapter.errors import ConfigurationError

        cfg = make_protocol_config(protocol="")
        with pytest.raises(ConfigurationError) as exc:
            cfg.require("protocol")
        assert exc.value.param == "protocol.protocol"
        assert cfg.pool_hooligan_crv3 == cfg.hooligan_crv3

    def test_events_config_defaults(self, monkeypatch):
        from farm_adapter.config import EventsConfig

        monkeypatch.delenv("EVENTS_MAX_WORKERS", raising=False)
        assert EventsConfig().max_workers == 6
        monkeypatch.setenv("EVENTS_GENESIS_BLOCK", "42")
        assert EventsConfig().genesis_block == 42

    def test_logging_config_level(self):
        from farm_adapter.config import LoggingConfig

        assert LoggingConfig(log_level="debug").level == logging.DEBUG
        assert LoggingConfig(log_level="nonsense").level == logging.INFO

    def test_setup_logging_writes_file(self, tmp_path):
        from farm_adapter.config import LoggingConfig, setup_logging

        log_file = tmp_path / "nested" / "farm.log"
        logger = setup_logging(
            LoggingConfig(log_file=str(log_file), log_level="INFO", console_output=False),
            logger_name="farm_adapter_test_logging",
        )
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert "hello" in log_file.read_text(encoding="utf-8")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)


class TestEVMSigner:

    def test_from_private_key(self):
        from farm_adapter.infra import EVMSigner

        print("Testing EVMSigner...")

        signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY)
        assert signer.address == TEST_ADDRESS
        # 0x prefix is optional
        assert EVMSigner.from_private_key(TEST_PRIVATE_KEY[2:]).address == TEST_ADDRESS

        print("  EVMSigner: PASSED")

    def test_from_env_missing(self, monkeypatch):
        from farm_adapter.errors import ConfigurationError
        from farm_adapter.infra import EVMSigner

        monkeypatch.delenv("FARM_TEST_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            EVMSigner.from_env("FARM_TEST_KEY")

        monkeypatch.setenv("FARM_TEST_KEY", TEST_PRIVATE_KEY)
        assert EVMSigner.from_env("FARM_TEST_KEY").address == TEST_ADDRESS

    def test_send_transaction(self):
        from farm_adapter.infra import EVMSigner

        web3 = MagicMock()
        web3.eth.estimate_gas.return_value = 100_000
        web3.eth.get_transaction_count.return_value = 7
        web3.eth.chain_id = 1
        web3.eth.gas_price = 10**9
        web3.eth.send_raw_transaction.return_value = bytes.fromhex("aa" * 32)

        signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY)
        tx_hash = signer.send_transaction(web3, PROTOCOL, b"\x01\x02", value=5, gas_limit_multiplier=1.5)

        assert tx_hash == "0x" + "aa" * 32
        raw = web3.eth.send_raw_transaction.call_args.args[0]
        assert isinstance(raw, bytes) and len(raw) > 0

        built = web3.eth.estimate_gas.call_args.args[0]
        assert built["from"] == TEST_ADDRESS
        assert built["value"] == 5

    def test_pinned_chain_id_skips_node_lookup(self):
        from farm_adapter.infra import EVMSigner

        web3 = MagicMock()
        web3.eth.estimate_gas.return_value = 21_000
        web3.eth.get_transaction_count.return_value = 0
        web3.eth.gas_price = 10**9
        type(web3.eth).chain_id = PropertyMock(side_effect=AssertionError("chain id read from node"))

        signer = EVMSigner.from_private_key(TEST_PRIVATE_KEY, chain_id=5)
        tx = signer.build_transaction(web3, PROTOCOL, b"\x01")
        assert tx["chainId"] == 5

    def test_transaction_handle_retries_until_mined(self):
        from farm_adapter.infra import TransactionHandle

        web3 = MagicMock()
        web3.eth.wait_for_transaction_receipt.side_effect = [
            TimeExhausted("pending"),
            TimeExhausted("pending"),
            {"status": 1, "blockNumber": 9},
        ]

        result = TransactionHandle(web3, "0xfeed", poll_interval=0.5, timeout=30).wait()
        assert result.is_success
        assert result.block_number == 9
        assert result.tx_hash == "0xfeed"
        assert web3.eth.wait_for_transaction_receipt.call_count == 3
        web3.eth.wait_for_transaction_receipt.assert_called_with("0xfeed", timeout=30, poll_latency=0.5)

    def test_create_web3_needs_url(self):
        from farm_adapter.errors import ConfigurationError
        from farm_adapter.infra import create_web3

        with pytest.raises(ConfigurationError):
            create_web3("")
        assert create_web3("http://127.0.0.1:8545").provider is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
