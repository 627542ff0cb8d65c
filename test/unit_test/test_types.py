"""
Test Types Module

Tests for farm_adapter.types package.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from conftest import HOOLIGAN, make_protocol_config


def test_asset_amounts():
    """Test Asset raw / UI conversion"""
    from farm_adapter.types import Asset

    print("Testing Asset amounts...")

    usdc = Asset("0x" + "11" * 20, "USDC", 6)
    assert usdc.ui_amount(1_500_000) == Decimal("1.5")
    assert usdc.raw_amount("1.5") == 1_500_000
    assert usdc.raw_amount(Decimal("0.000001")) == 1
    assert str(usdc) == "USDC"

    print("  Asset amounts: PASSED")


def test_asset_horde_and_prospects():
    """Test base horde and prospects per BDV"""
    from farm_adapter.types import Asset

    print("Testing Asset horde/prospects...")

    lp = Asset("0x" + "22" * 20, "HOOLIGAN3CRV", 18, horde_per_bdv=1, prospects_per_bdv=4)
    # 2 BDV (6 decimals)
    assert lp.base_horde(2_000_000) == 2 * 10**10
    assert lp.prospects(2_000_000) == 8_000_000

    print("  Asset horde/prospects: PASSED")


def test_registry_lookup():
    """Test AssetRegistry lookups"""
    from farm_adapter.errors import UnknownAsset
    from farm_adapter.types import build_registry

    print("Testing AssetRegistry...")

    registry = build_registry(make_protocol_config())

    hooligan = registry.get_by_symbol("HOOLIGAN")
    assert hooligan.address == HOOLIGAN
    assert registry.find_by_address(HOOLIGAN.upper().replace("0X", "0x")) is hooligan
    assert registry.find_by_symbol("hooligan") is hooligan
    assert registry.find_by_symbol("") is None
    assert registry.find_by_address(None) is None
    # The native placeholder address resolves to ETH
    assert registry.find_by_address("0x" + "ee" * 20).symbol == "ETH"

    with pytest.raises(UnknownAsset):
        registry.get_by_address("0x" + "ab" * 20)
    with pytest.raises(UnknownAsset):
        registry.get_by_symbol("BEAN")

    print("  AssetRegistry: PASSED")


def test_registry_whitelist():
    """Test whitelist order and membership"""
    from farm_adapter.types import build_registry

    print("Testing whitelist...")

    registry = build_registry(make_protocol_config())
    assert [a.symbol for a in registry.whitelist] == [
        "HOOLIGAN", "HOOLIGAN3CRV", "urHOOLIGAN", "urHOOLIGAN3CRV",
    ]
    assert registry.is_whitelisted(registry.get_by_symbol("HOOLIGAN3CRV"))
    assert not registry.is_whitelisted(registry.get_by_symbol("WETH"))
    assert registry.get_by_symbol("ETH").is_native

    print("  whitelist: PASSED")


def test_registry_drops_unconfigured_tokens():
    """Tokens without an address are left out, with their whitelist entries"""
    from farm_adapter.types import build_registry

    registry = build_registry(make_protocol_config(unripe_hooligan="", unripe_hooligan_crv3=""))
    assert registry.find_by_symbol("urHOOLIGAN") is None
    assert [a.symbol for a in registry.whitelist] == ["HOOLIGAN", "HOOLIGAN3CRV"]


def test_event_kind_parse():
    """Test EventKind.parse"""
    from farm_adapter.types import EventKind, SILO_EVENTS

    print("Testing EventKind...")

    assert EventKind.parse("AddDeposit") == EventKind.ADD_DEPOSIT
    assert EventKind.parse("Sunrise") is None
    assert EventKind.parse(None) is None
    assert len(SILO_EVENTS) == 6

    print("  EventKind: PASSED")


def test_event_ordering_keys():
    """Test Event sort key and identity"""
    from farm_adapter.types import Event

    event = Event("Sow", {"index": 1}, block_number=5, transaction_index=2, log_index=9, transaction_hash="0xaa")
    assert event.sort_key == (5, 2, 9)
    assert event.identity == ("0xaa", 5, 9)
    assert str(event) == "Sow@5:2:9"


def test_token_silo_balance_sort():
    """Test TokenSiloBalance.sort_crates"""
    from farm_adapter.types import TokenSiloBalance, WithdrawalCrate

    balance = TokenSiloBalance()
    balance.withdrawn.crates.extend([WithdrawalCrate(9, 1), WithdrawalCrate(3, 1)])
    balance.sort_crates()
    assert [c.season for c in balance.withdrawn.crates] == [3, 9]


def test_farm_modes():
    """Test balance mode values match the contract enum"""
    from farm_adapter.types import FarmFromMode, FarmToMode

    print("Testing farm modes...")

    assert [int(m) for m in FarmFromMode] == [0, 1, 2, 3]
    assert FarmFromMode.INTERNAL_TOLERANT == 3
    assert FarmToMode.INTERNAL == 1

    print("  farm modes: PASSED")


def test_tx_result_from_receipt():
    """Test TxResult.from_receipt"""
    from farm_adapter.types import TxResult, TxStatus

    print("Testing TxResult...")

    ok = TxResult.from_receipt({"status": 1, "transactionHash": "0xabc", "gasUsed": 10, "effectiveGasPrice": 3})
    assert ok.status == TxStatus.SUCCESS
    assert ok.is_success
    assert ok.fee_wei == 30

    reverted = TxResult.from_receipt({"status": 0})
    assert reverted.is_failed
    assert reverted.error == "Transaction reverted"
    assert "failed" in str(reverted)

    print("  TxResult: PASSED")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
