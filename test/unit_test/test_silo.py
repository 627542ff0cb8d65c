"""
Unit tests for SiloModule

Crate arithmetic plus balance reconstruction against a mocked event
manager.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from farm_adapter.config import TxConfig
from farm_adapter.errors import ConfigurationError, InsufficientFunds, UnknownAsset
from farm_adapter.infra.contracts import PROTOCOL_INTERFACE
from farm_adapter.modules import SiloModule, sort_crates_desc
from farm_adapter.types import DepositCrate, Event, HordeBalances

from conftest import ACCOUNT, HOOLIGAN, OTHER, PROTOCOL, make_contracts


def crate(season, amount, bdv=None):
    bdv = amount if bdv is None else bdv
    return DepositCrate(
        season=season, amount=amount, bdv=bdv,
        horde=0, base_horde=0, grown_horde=0, prospects=0,
    )


def silo_events():
    def ev(kind, block, **args):
        return Event(kind=kind, args=dict(account=ACCOUNT, token=HOOLIGAN, **args), block_number=block)

    return [
        ev("AddDeposit", 1, season=90, amount=1_000_000, bdv=1_000_000),
        ev("AddDeposit", 2, season=95, amount=2_000_000, bdv=2_000_000),
        ev("RemoveDeposit", 3, season=95, amount=500_000),
        ev("AddWithdrawal", 4, season=99, amount=300_000),
        ev("AddWithdrawal", 5, season=104, amount=200_000),
    ]


@pytest.fixture
def event_manager():
    manager = MagicMock()
    manager.get_silo_events.return_value = silo_events()
    return manager


@pytest.fixture
def silo(registry, event_manager):
    contracts = make_contracts(lambda address, iface, method, args=(), block="latest": 100)
    return SiloModule(contracts, registry, event_manager)


class TestCrateMath:

    def test_grown_horde(self):
        print("Testing grown horde...")

        # 2 prospects (6 decimals) over 10 seasons -> 0.002 horde (10 decimals)
        assert SiloModule.calculate_grown_horde(110, 100, 2_000_000) == 20_000_000
        assert SiloModule.calculate_grown_horde(100, 100, 2_000_000) == 0

        print("  grown horde: PASSED")

    def test_grown_horde_rejects_future_deposit(self):
        with pytest.raises(ValueError):
            SiloModule.calculate_grown_horde(99, 100, 1)

    def test_make_deposit_crate(self, silo, registry):
        hooligan = registry.get_by_symbol("HOOLIGAN")
        c = silo.make_deposit_crate(hooligan, season=90, amount=1_000_000, bdv=1_000_000, current_season=100)

        # 1 HOOLIGAN of bdv: 1 horde and 2 prospects
        assert c.base_horde == 10_000_000_000
        assert c.prospects == 2_000_000
        assert c.grown_horde == 2_000_000 * 10
        assert c.horde == c.base_horde + c.grown_horde

    def test_pick_crates_newest_first(self, registry):
        print("Testing pick_crates...")

        hooligan = registry.get_by_symbol("HOOLIGAN")
        crates = [crate(1, 100), crate(3, 50), crate(2, 70)]

        picked = SiloModule.pick_crates(crates, hooligan, 80)
        assert picked.seasons == [3, 2]
        assert picked.amounts == [50, 30]
        assert picked.total == 80

        print("  pick_crates: PASSED")

    def test_pick_crates_exact_fit(self, registry):
        hooligan = registry.get_by_symbol("HOOLIGAN")
        picked = SiloModule.pick_crates([crate(1, 100), crate(2, 50)], hooligan, 150)
        assert picked.amounts == [50, 100]

    def test_pick_crates_custom_sort(self, registry):
        hooligan = registry.get_by_symbol("HOOLIGAN")
        crates = [crate(3, 50), crate(1, 100)]
        picked = SiloModule.pick_crates(crates, hooligan, 120, sort=lambda cs: sorted(cs, key=lambda c: c.season))
        assert picked.seasons == [1, 3]
        assert picked.amounts == [100, 20]

    def test_pick_crates_insufficient(self, registry):
        hooligan = registry.get_by_symbol("HOOLIGAN")
        with pytest.raises(InsufficientFunds) as exc:
            SiloModule.pick_crates([crate(1, 10)], hooligan, 11)
        assert exc.value.required == 11
        assert exc.value.available == 10

    def test_sum_deposits(self):
        crates = [
            DepositCrate(1, 10, 8, horde=5, base_horde=4, grown_horde=1, prospects=2),
            DepositCrate(2, 20, 16, horde=9, base_horde=8, grown_horde=1, prospects=4),
        ]
        totals = SiloModule.sum_deposits(crates)
        assert (totals.amount, totals.bdv, totals.horde, totals.prospects) == (30, 24, 14, 6)

    def test_sort_crates_desc(self):
        assert [c.season for c in sort_crates_desc([crate(1, 1), crate(5, 1), crate(3, 1)])] == [5, 3, 1]


class TestBalances:

    def test_get_balance(self, silo, registry, event_manager):
        print("Testing get_balance...")

        hooligan = registry.get_by_symbol("HOOLIGAN")
        balance = silo.get_balance(hooligan, ACCOUNT)

        event_manager.get_silo_events.assert_called_once_with(ACCOUNT, hooligan.address)

        assert balance.deposited.amount == 2_500_000
        assert balance.deposited.bdv == 2_500_000
        assert [c.season for c in balance.deposited.crates] == [90, 95]
        assert balance.deposited.crates[1].amount == 1_500_000

        assert balance.claimable.amount == 300_000
        assert balance.withdrawn.amount == 200_000
        assert [c.season for c in balance.withdrawn.crates] == [104]

        print("  get_balance: PASSED")

    def test_get_balance_with_explicit_season(self, silo, registry):
        hooligan = registry.get_by_symbol("HOOLIGAN")
        balance = silo.get_balance(hooligan, ACCOUNT, season=104)
        assert balance.claimable.amount == 500_000
        assert balance.withdrawn.amount == 0
        silo._contracts.call.assert_not_called()

    def test_get_balance_rejects_non_whitelisted(self, silo, registry):
        with pytest.raises(UnknownAsset):
            silo.get_balance(registry.get_by_symbol("USDC"), ACCOUNT)

    def test_get_balances_in_whitelist_order(self, silo, registry):
        balances = silo.get_balances(ACCOUNT)
        assert list(balances) == list(registry.whitelist)
        assert balances[registry.get_by_symbol("HOOLIGAN")].deposited.amount == 2_500_000
        assert balances[registry.get_by_symbol("HOOLIGAN3CRV")].deposited.crates == []


HORDE_READS = {
    "balanceOfHorde": 5_000,
    "balanceOfProspects": 40,
    "balanceOfEarnedHooligans": 3,
    "balanceOfEarnedHorde": 30,
    "balanceOfEarnedProspects": 3,
    "balanceOfGrownHorde": 12,
}


def protocol_reads(address, interface, method, args=(), block="latest"):
    if method == "bdv":
        return args[1] // 2
    return HORDE_READS[method]


class TestHordeAndMaintenance:

    @pytest.fixture
    def signer(self):
        signer = MagicMock()
        signer.address = ACCOUNT
        signer.send_transaction.return_value = "0x" + "cd" * 32
        return signer

    @pytest.fixture
    def farm_silo(self, registry, event_manager, signer):
        contracts = make_contracts(protocol_reads)
        contracts._web3 = MagicMock()
        return SiloModule(
            contracts, registry, event_manager,
            signer=signer, tx_config=TxConfig(gas_limit_multiplier=1.5, receipt_poll_interval=0),
        )

    def test_balance_reads(self, farm_silo):
        print("Testing horde reads...")

        assert farm_silo.get_horde(OTHER) == 5_000
        assert farm_silo.get_prospects(OTHER) == 40
        assert farm_silo.get_earned_hooligans(OTHER) == 3
        assert farm_silo.get_earned_horde(OTHER) == 30
        assert farm_silo.get_plantable_prospects(OTHER) == 3
        assert farm_silo.get_grown_horde(OTHER) == 12

        methods = [c.args[2] for c in farm_silo._contracts.call.call_args_list]
        assert methods == list(HORDE_READS)
        for c in farm_silo._contracts.call.call_args_list:
            assert c.args[0] == PROTOCOL
            assert list(c.args[3]) == [OTHER]

        print("  horde reads: PASSED")

    def test_reads_default_to_signer(self, farm_silo):
        assert farm_silo.get_all_horde() == HordeBalances(active=5_000, earned=30, grown=12)
        accounts = {c.args[3][0] for c in farm_silo._contracts.call.call_args_list}
        assert accounts == {ACCOUNT}

    def test_reads_need_an_account(self, registry, event_manager):
        silo = SiloModule(make_contracts(protocol_reads), registry, event_manager)
        with pytest.raises(ConfigurationError):
            silo.get_horde()

    def test_bdv(self, farm_silo, registry):
        hooligan = registry.get_by_symbol("HOOLIGAN")
        # One whole token when no amount is given
        assert farm_silo.bdv(hooligan) == 10**hooligan.decimals // 2
        assert farm_silo.bdv(hooligan, 1_000) == 500

        address, _, method, args, _ = farm_silo._contracts.call.call_args.args
        assert method == "bdv"
        assert list(args) == [hooligan.address, 1_000]

    def test_bdv_rejects_non_whitelisted(self, farm_silo, registry):
        with pytest.raises(UnknownAsset):
            farm_silo.bdv(registry.get_by_symbol("USDC"))

    def test_mow_submits_update(self, farm_silo, signer):
        handle = farm_silo.mow(OTHER)
        assert handle.tx_hash == "0x" + "cd" * 32

        args, kwargs = signer.send_transaction.call_args
        assert args[1] == PROTOCOL
        (account,) = PROTOCOL_INTERFACE.decode_function_data("update", args[2])
        assert account.lower() == OTHER
        assert kwargs["gas_limit_multiplier"] == 1.5

        farm_silo.mow()
        (account,) = PROTOCOL_INTERFACE.decode_function_data("update", signer.send_transaction.call_args.args[2])
        assert account.lower() == ACCOUNT

    def test_plant(self, farm_silo, signer):
        farm_silo.plant()
        call_data = signer.send_transaction.call_args.args[2]
        assert call_data == PROTOCOL_INTERFACE.selector("plant")

    def test_submissions_need_signer(self, registry, event_manager):
        silo = SiloModule(make_contracts(protocol_reads), registry, event_manager)
        with pytest.raises(ConfigurationError):
            silo.plant()
        with pytest.raises(ConfigurationError):
            silo.mow(OTHER)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
