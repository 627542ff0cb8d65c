"""
Contract ABIs and call plumbing

Small inline ABIs wrapped in web3 contract objects. Step builders only ever
need two shapes: encode_function_data() to build call data, and
ProtocolContracts.call() to read a decoded value.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from eth_utils.abi import abi_to_signature, function_abi_to_4byte_selector, get_abi_input_types
from web3 import Web3

from ..config import ProtocolConfig
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


def _indexed(name: str, type_: str) -> Dict[str, Any]:
    return {"indexed": True, "name": name, "type": type_}


def _plain(name: str, type_: str) -> Dict[str, Any]:
    return {"indexed": False, "name": name, "type": type_}


# Protocol diamond ABI (farm entry point, token facet, curve facet, silo, field, market)
PROTOCOL_ABI = [
    {
        "inputs": [{"name": "data", "type": "bytes[]"}],
        "name": "farm",
        "outputs": [{"name": "results", "type": "bytes[]"}],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [{
            "name": "p",
            "type": "tuple",
            "components": [
                {"name": "target", "type": "address"},
                {"name": "data", "type": "bytes"},
            ],
        }],
        "name": "pipe",
        "outputs": [{"name": "result", "type": "bytes"}],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "mode", "type": "uint8"},
        ],
        "name": "deposit",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "recipient", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "fromMode", "type": "uint8"},
            {"name": "toMode", "type": "uint8"},
        ],
        "name": "transferToken",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
            {"name": "deadline", "type": "uint256"},
            {"name": "v", "type": "uint8"},
            {"name": "r", "type": "bytes32"},
            {"name": "s", "type": "bytes32"},
        ],
        "name": "permitERC20",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "mode", "type": "uint8"},
        ],
        "name": "wrapEth",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "mode", "type": "uint8"},
        ],
        "name": "unwrapEth",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "pool", "type": "address"},
            {"name": "registry", "type": "address"},
            {"name": "fromToken", "type": "address"},
            {"name": "toToken", "type": "address"},
            {"name": "amountIn", "type": "uint256"},
            {"name": "minAmountOut", "type": "uint256"},
            {"name": "fromMode", "type": "uint8"},
            {"name": "toMode", "type": "uint8"},
        ],
        "name": "exchange",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "pool", "type": "address"},
            {"name": "fromToken", "type": "address"},
            {"name": "toToken", "type": "address"},
            {"name": "amountIn", "type": "uint256"},
            {"name": "minAmountOut", "type": "uint256"},
            {"name": "fromMode", "type": "uint8"},
            {"name": "toMode", "type": "uint8"},
        ],
        "name": "exchangeUnderlying",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "pool", "type": "address"},
            {"name": "registry", "type": "address"},
            {"name": "amounts", "type": "uint256[]"},
            {"name": "minAmountOut", "type": "uint256"},
            {"name": "fromMode", "type": "uint8"},
            {"name": "toMode", "type": "uint8"},
        ],
        "name": "addLiquidity",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "season",
        "outputs": [{"name": "", "type": "uint32"}],
        "stateMutability": "view",
        "type": "function"
    },
    # Silo reads
    *[
        {
            "inputs": [{"name": "account", "type": "address"}],
            "name": name,
            "outputs": [{"name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        }
        for name in (
            "balanceOfHorde",
            "balanceOfProspects",
            "balanceOfEarnedHooligans",
            "balanceOfEarnedHorde",
            "balanceOfEarnedProspects",
            "balanceOfGrownHorde",
        )
    ],
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "bdv",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    # Silo mutations
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "update",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function"
    },
    {
        "inputs": [],
        "name": "plant",
        "outputs": [{"name": "hooligans", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function"
    },
    # Silo events
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _indexed("token", "address"),
            _plain("season", "uint32"), _plain("amount", "uint256"), _plain("bdv", "uint256"),
        ],
        "name": "AddDeposit",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _indexed("token", "address"),
            _plain("season", "uint32"), _plain("amount", "uint256"),
        ],
        "name": "RemoveDeposit",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _indexed("token", "address"),
            _plain("seasons", "uint32[]"), _plain("amounts", "uint256[]"), _plain("amount", "uint256"),
        ],
        "name": "RemoveDeposits",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _indexed("token", "address"),
            _plain("season", "uint32"), _plain("amount", "uint256"),
        ],
        "name": "AddWithdrawal",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _indexed("token", "address"),
            _plain("season", "uint32"), _plain("amount", "uint256"),
        ],
        "name": "RemoveWithdrawal",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _indexed("token", "address"),
            _plain("seasons", "uint32[]"), _plain("amount", "uint256"),
        ],
        "name": "RemoveWithdrawals",
        "type": "event"
    },
    # Field events
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _plain("index", "uint256"),
            _plain("hooligans", "uint256"), _plain("rookies", "uint256"),
        ],
        "name": "Sow",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _plain("plots", "uint256[]"), _plain("hooligans", "uint256"),
        ],
        "name": "Draft",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("from", "address"), _indexed("to", "address"),
            _indexed("id", "uint256"), _plain("rookies", "uint256"),
        ],
        "name": "PlotTransfer",
        "type": "event"
    },
    # Market events
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _plain("index", "uint256"), _plain("start", "uint256"),
            _plain("amount", "uint256"), _plain("pricePerRookie", "uint24"),
            _plain("maxDraftableIndex", "uint256"), _plain("mode", "uint8"),
        ],
        "name": "RookieListingCreated",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [_indexed("account", "address"), _plain("index", "uint256")],
        "name": "RookieListingCancelled",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("from", "address"), _indexed("to", "address"),
            _plain("index", "uint256"), _plain("start", "uint256"), _plain("amount", "uint256"),
        ],
        "name": "RookieListingFilled",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("account", "address"), _plain("id", "bytes32"), _plain("amount", "uint256"),
            _plain("pricePerRookie", "uint24"), _plain("maxPlaceInLine", "uint256"),
        ],
        "name": "RookieOrderCreated",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [_indexed("account", "address"), _plain("id", "bytes32")],
        "name": "RookieOrderCancelled",
        "type": "event"
    },
    {
        "anonymous": False,
        "inputs": [
            _indexed("from", "address"), _indexed("to", "address"), _plain("id", "bytes32"),
            _plain("index", "uint256"), _plain("start", "uint256"), _plain("amount", "uint256"),
        ],
        "name": "RookieOrderFilled",
        "type": "event"
    },
]

# Curve stable pool / metapool (int128 coin indices)
CURVE_POOL_ABI = [
    {
        "inputs": [
            {"name": "i", "type": "int128"},
            {"name": "j", "type": "int128"},
            {"name": "dx", "type": "uint256"},
        ],
        "name": "get_dy",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "i", "type": "int128"},
            {"name": "j", "type": "int128"},
            {"name": "dx", "type": "uint256"},
        ],
        "name": "get_dy_underlying",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "i", "type": "int128"},
            {"name": "j", "type": "int128"},
            {"name": "dy", "type": "uint256"},
        ],
        "name": "get_dx",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"name": "i", "type": "int128"},
            {"name": "j", "type": "int128"},
            {"name": "dy", "type": "uint256"},
        ],
        "name": "get_dx_underlying",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
]

# Curve crypto pool (uint256 coin indices)
CURVE_CRYPTO_POOL_ABI = [
    {
        "inputs": [
            {"name": "i", "type": "uint256"},
            {"name": "j", "type": "uint256"},
            {"name": "dx", "type": "uint256"},
        ],
        "name": "get_dy",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    },
]

# Curve stable registry / meta factory
CURVE_REGISTRY_ABI = [
    {
        "inputs": [
            {"name": "pool", "type": "address"},
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
        ],
        "name": "get_coin_indices",
        "outputs": [
            {"name": "", "type": "int128"},
            {"name": "", "type": "int128"},
            {"name": "", "type": "bool"},
        ],
        "stateMutability": "view",
        "type": "function"
    },
]

# Curve crypto registry
CURVE_CRYPTO_REGISTRY_ABI = [
    {
        "inputs": [
            {"name": "pool", "type": "address"},
            {"name": "from", "type": "address"},
            {"name": "to", "type": "address"},
        ],
        "name": "get_coin_indices",
        "outputs": [
            {"name": "", "type": "uint256"},
            {"name": "", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function"
    },
]


def curve_calc_token_amount_abi(n_coins: int) -> List[Dict[str, Any]]:
    """calc_token_amount takes a fixed-size array, so the ABI depends on the pool size"""
    return [
        {
            "inputs": [
                {"name": "amounts", "type": f"uint256[{n_coins}]"},
                {"name": "is_deposit", "type": "bool"},
            ],
            "name": "calc_token_amount",
            "outputs": [{"name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
    ]


def _checksum_args(param: Dict[str, Any], value: Any) -> Any:
    """web3 only accepts checksummed addresses, including inside arrays and tuples"""
    type_ = param["type"]
    if type_.endswith("]"):
        inner = dict(param, type=type_[:type_.rindex("[")])
        return [_checksum_args(inner, v) for v in value]
    if type_ == "tuple":
        return tuple(_checksum_args(c, v) for c, v in zip(param["components"], value))
    if type_ == "address":
        return Web3.to_checksum_address(value)
    return value


# Offline instance: builds contract factories for encoding only, never sends requests
_CODEC_WEB3 = Web3()


class ContractInterface:
    """
    Function encoder / decoder for one ABI, backed by a web3 contract factory.

    Usage:
        iface = ContractInterface(PROTOCOL_ABI)
        data = iface.encode_function_data("deposit", [token, amount, 0])
    """

    def __init__(self, abi: Sequence[Dict[str, Any]]):
        self.abi = list(abi)
        self._functions: Dict[str, Dict[str, Any]] = {
            item["name"]: item for item in self.abi if item.get("type") == "function"
        }
        self._factory = _CODEC_WEB3.eth.contract(abi=self.abi)

    def has_function(self, name: str) -> bool:
        return name in self._functions

    def _function(self, name: str) -> Dict[str, Any]:
        fn = self._functions.get(name)
        if fn is None:
            raise ValueError(f"Function '{name}' not in ABI")
        return fn

    def signature(self, name: str) -> str:
        return abi_to_signature(self._function(name))

    def selector(self, name: str) -> bytes:
        return function_abi_to_4byte_selector(self._function(name))

    def normalize_args(self, name: str, args: Sequence[Any]) -> List[Any]:
        """Check arity and checksum address arguments"""
        inputs = self._function(name)["inputs"]
        if len(inputs) != len(args):
            raise ValueError(f"{name} expects {len(inputs)} args, got {len(args)}")
        return [_checksum_args(p, v) for p, v in zip(inputs, args)]

    def encode_function_data(self, name: str, args: Sequence[Any]) -> bytes:
        """Selector followed by ABI-encoded arguments"""
        encoded = self._factory.encode_abi(name, args=self.normalize_args(name, args))
        return Web3.to_bytes(hexstr=encoded)

    def decode_function_data(self, name: str, data: bytes) -> tuple:
        """Inverse of encode_function_data"""
        fn = self._function(name)
        data = bytes(data)
        if data[:4] != self.selector(name):
            raise ValueError(f"Call data does not start with the {name} selector")
        return tuple(_CODEC_WEB3.codec.decode(get_abi_input_types(fn), data[4:]))


PROTOCOL_INTERFACE = ContractInterface(PROTOCOL_ABI)
CURVE_POOL_INTERFACE = ContractInterface(CURVE_POOL_ABI)
CURVE_CRYPTO_POOL_INTERFACE = ContractInterface(CURVE_CRYPTO_POOL_ABI)
CURVE_REGISTRY_INTERFACE = ContractInterface(CURVE_REGISTRY_ABI)
CURVE_CRYPTO_REGISTRY_INTERFACE = ContractInterface(CURVE_CRYPTO_REGISTRY_ABI)


class ProtocolContracts:
    """
    Contract-call facade handed to every step builder.

    Holds addresses from ProtocolConfig and reads contracts through web3
    contract objects. It never signs or sends anything.
    """

    def __init__(self, web3: Optional["Web3"], addresses: ProtocolConfig):
        self._web3 = web3
        self.addresses = addresses
        self.protocol = PROTOCOL_INTERFACE

    @property
    def web3(self) -> "Web3":
        if self._web3 is None:
            raise ConfigurationError.missing("web3")
        return self._web3

    @property
    def protocol_address(self) -> str:
        return self.addresses.require("protocol")

    @property
    def pipeline_address(self) -> str:
        return self.addresses.require("pipeline")

    def contract(self, address: str, interface: ContractInterface):
        """web3 contract object for `address`"""
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=interface.abi)

    def call(
        self,
        address: str,
        interface: ContractInterface,
        method: str,
        args: Sequence[Any] = (),
        block: Any = "latest",
    ) -> Any:
        """
        Read a contract method and return the decoded value.

        Transport errors from the node are propagated unchanged.
        """
        values = interface.normalize_args(method, args)
        logger.debug(f"eth_call {method} on {address[:10]}...")
        fn = getattr(self.contract(address, interface).functions, method)
        return fn(*values).call(block_identifier=block)

    def call_protocol(self, method: str, args: Sequence[Any] = (), block: Any = "latest") -> Any:
        return self.call(self.protocol_address, self.protocol, method, args, block)

    def current_season(self) -> int:
        return int(self.call_protocol("season"))

    def protocol_contract(self):
        """web3 contract object for the protocol (farm simulation and event log queries)"""
        return self.contract(self.protocol_address, self.protocol)

    def __repr__(self) -> str:
        return f"ProtocolContracts(protocol={self.addresses.protocol or 'unset'})"
