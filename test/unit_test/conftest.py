"""
Shared fixtures for unit tests.

Nothing here touches the network: contract reads go through a MagicMock
installed on ProtocolContracts.call.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from farm_adapter.config import ProtocolConfig
from farm_adapter.infra.contracts import ProtocolContracts
from farm_adapter.types import build_registry


def addr(byte: str) -> str:
    """Deterministic lowercase test address, e.g. addr("11") -> 0x1111..."""
    return "0x" + byte * 20


ACCOUNT = addr("a1")
OTHER = addr("b2")

PROTOCOL = addr("01")
PIPELINE = addr("02")
HOOLIGAN = addr("03")
HOOLIGAN_CRV3 = addr("04")
UNRIPE_HOOLIGAN = addr("05")
UNRIPE_HOOLIGAN_CRV3 = addr("06")


def make_protocol_config(**overrides) -> ProtocolConfig:
    values = dict(
        protocol=PROTOCOL,
        pipeline=PIPELINE,
        hooligan=HOOLIGAN,
        hooligan_crv3=HOOLIGAN_CRV3,
        unripe_hooligan=UNRIPE_HOOLIGAN,
        unripe_hooligan_crv3=UNRIPE_HOOLIGAN_CRV3,
        weth=addr("10"),
        usdc=addr("11"),
        usdt=addr("12"),
        dai=addr("13"),
        crv3=addr("14"),
        pool_3pool=addr("20"),
        pool_tricrypto2=addr("21"),
        registry_pool=addr("30"),
        registry_meta_factory=addr("31"),
        registry_crypto=addr("32"),
    )
    values.update(overrides)
    return ProtocolConfig(**values)


def make_contracts(call_side_effect=None) -> ProtocolContracts:
    """ProtocolContracts without web3; reads are answered by `call_side_effect`"""
    contracts = ProtocolContracts(None, make_protocol_config())
    contracts.call = MagicMock(side_effect=call_side_effect)
    return contracts


def abi_outputs(interface, method):
    return next(f for f in interface.abi if f.get("name") == method)["outputs"]


def curve_reads(rate_num: int = 2, rate_den: int = 1):
    """
    Fake Curve reads: indices (0, 1), and every quote converts at
    rate_num / rate_den (forward) or its inverse (reverse).
    """
    def call(address, interface, method, args=(), block="latest"):
        if method == "get_coin_indices":
            return (0, 1, False) if len(abi_outputs(interface, method)) == 3 else (0, 1)
        if method in ("get_dy", "get_dy_underlying"):
            return args[2] * rate_num // rate_den
        if method in ("get_dx", "get_dx_underlying"):
            return args[2] * rate_den // rate_num
        if method == "calc_token_amount":
            return sum(args[0]) * rate_num // rate_den
        if method == "season":
            return 100
        raise AssertionError(f"unexpected read {method}")
    return call


@pytest.fixture
def protocol_config():
    return make_protocol_config()


@pytest.fixture
def registry(protocol_config):
    return build_registry(protocol_config)


@pytest.fixture
def contracts():
    return make_contracts(curve_reads())
