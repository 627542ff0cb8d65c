"""
FarmClient - Unified entry point for farm operations

Wires configuration, web3, signer, contracts and the asset registry into
the functional modules (silo, swap, deposit). Every module receives its
dependencies from here; nothing reads global state.
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from .config import Config, get_config
from .events import EventManager, Web3LogSource
from .infra import EVMSigner, ProtocolContracts, create_web3
from .types import AssetRegistry, build_registry
from .workflow import FarmWorkflow, LibraryPresets

if TYPE_CHECKING:
    from web3 import Web3
    from .modules.silo import SiloModule
    from .modules.swap import SwapModule
    from .modules.deposit import DepositModule


class FarmClient:
    """
    Unified farm adapter client

    Provides access to farm operations through functional modules:
    - silo: Balances rebuilt from events, crate picking
    - swap: Routed swaps executed as one farm call
    - deposit: Routed deposits into whitelisted assets

    Usage:
        # From environment (.env)
        client = FarmClient.from_env()

        # Or with explicit parts
        client = FarmClient(config=cfg, web3=w3, signer=EVMSigner.from_private_key(key))

        hooligan = client.registry.get_by_symbol("HOOLIGAN")
        balance = client.silo.get_balance(hooligan, client.account)

        op = client.swap.build_swap(client.registry.get_by_symbol("ETH"), hooligan, client.account)
        out = op.estimate(10**18)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        web3: Optional["Web3"] = None,
        signer: Optional[EVMSigner] = None,
        registry: Optional[AssetRegistry] = None,
    ):
        """
        Initialize FarmClient

        Args:
            config: Configuration (defaults to the global config)
            web3: Web3 instance (created from config.rpc when omitted)
            signer: Optional signer; required only for execute()
            registry: Asset registry (built from config.protocol when omitted)
        """
        self._config = config or get_config()
        self._web3 = web3
        self._signer = signer
        self._registry = registry

        # Lazy-loaded components
        self._contracts: Optional[ProtocolContracts] = None
        self._presets: Optional[LibraryPresets] = None
        self._events: Optional[EventManager] = None
        self._silo: Optional["SiloModule"] = None
        self._swap: Optional["SwapModule"] = None
        self._deposit: Optional["DepositModule"] = None

    @classmethod
    def from_env(cls, config: Optional[Config] = None) -> "FarmClient":
        """Create a client with web3 and signer from the environment"""
        cfg = config or get_config()
        web3 = create_web3(cfg.rpc.eth_rpc_url, cfg.rpc.timeout_seconds)
        signer = EVMSigner.from_env(cfg.signer.private_key_env, chain_id=cfg.rpc.chain_id)
        return cls(config=cfg, web3=web3, signer=signer)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def web3(self) -> "Web3":
        if self._web3 is None:
            self._web3 = create_web3(self._config.rpc.eth_rpc_url, self._config.rpc.timeout_seconds)
        return self._web3

    @property
    def signer(self) -> Optional[EVMSigner]:
        return self._signer

    @property
    def account(self) -> Optional[str]:
        """Signer address, if a signer is configured"""
        return self._signer.address if self._signer is not None else None

    @property
    def registry(self) -> AssetRegistry:
        if self._registry is None:
            self._registry = build_registry(self._config.protocol)
        return self._registry

    @property
    def contracts(self) -> ProtocolContracts:
        if self._contracts is None:
            web3 = self._web3
            if web3 is None and self._config.rpc.eth_rpc_url:
                web3 = self.web3
            self._contracts = ProtocolContracts(web3, self._config.protocol)
        return self._contracts

    @property
    def presets(self) -> LibraryPresets:
        if self._presets is None:
            self._presets = LibraryPresets(self.contracts, self.registry)
        return self._presets

    @property
    def events(self) -> EventManager:
        if self._events is None:
            source = Web3LogSource(self.contracts.protocol_contract())
            self._events = EventManager(source, self._config.events)
        return self._events

    @property
    def silo(self) -> "SiloModule":
        """
        Silo module

        Provides:
        - get_balance(asset, account): Balance of one whitelisted asset
        - get_balances(account): Balances of every whitelisted asset
        - pick_crates(crates, asset, amount): Crates covering an amount
        - get_all_horde(account), bdv(asset, amount): Protocol reads
        - mow(account), plant(): Signed silo maintenance calls
        """
        if self._silo is None:
            from .modules.silo import SiloModule
            self._silo = SiloModule(
                self.contracts, self.registry, self.events,
                signer=self._signer, tx_config=self._config.tx,
            )
        return self._silo

    @property
    def swap(self) -> "SwapModule":
        """
        Swap module

        Provides:
        - build_swap(token_in, token_out, account): SwapOperation
        """
        if self._swap is None:
            from .modules.swap import SwapModule
            self._swap = SwapModule(
                self.contracts, self.registry, self.presets,
                signer=self._signer, tx_config=self._config.tx,
            )
        return self._swap

    @property
    def deposit(self) -> "DepositModule":
        """
        Deposit module

        Provides:
        - build_deposit(target, account): DepositOperation
        """
        if self._deposit is None:
            from .modules.deposit import DepositModule
            self._deposit = DepositModule(
                self.contracts, self.registry, self.presets,
                signer=self._signer, tx_config=self._config.tx,
            )
        return self._deposit

    def farm_workflow(self, name: str = "Farm") -> FarmWorkflow:
        """New empty FarmWorkflow bound to this client's contracts and signer"""
        return FarmWorkflow(self.contracts, signer=self._signer, tx_config=self._config.tx, name=name)

    def close(self):
        """Drop cached components; they are rebuilt on next access"""
        self._contracts = None
        self._presets = None
        self._events = None
        self._silo = None
        self._swap = None
        self._deposit = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        protocol = self._config.protocol.protocol or "unset"
        account = self.account[:10] + "..." if self.account else "none"
        return f"FarmClient(protocol={protocol}, account={account})"
