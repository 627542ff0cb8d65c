"""
Asset definitions and the asset registry

The registry is the only place that maps addresses and symbols to Asset
objects. Everything else receives it as a constructor argument.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ..errors import UnknownAsset


# Placeholder address for native ETH
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Decimals of the protocol's internal units
BDV_DECIMALS = 6
HORDE_DECIMALS = 10
PROSPECTS_DECIMALS = 6


@dataclass(frozen=True)
class Asset:
    """
    Asset information

    Attributes:
        address: Contract address (NATIVE_TOKEN_ADDRESS for ETH)
        symbol: Asset symbol (e.g., "HOOLIGAN", "WETH")
        decimals: Number of decimal places
        name: Full asset name (optional)
        horde_per_bdv: Horde granted per unit of BDV on deposit (0 if not depositable)
        prospects_per_bdv: Prospects granted per unit of BDV on deposit
        is_native: True for the chain's native currency
    """
    address: str
    symbol: str
    decimals: int
    name: str = ""
    horde_per_bdv: int = 0
    prospects_per_bdv: int = 0
    is_native: bool = False

    def __str__(self) -> str:
        return self.symbol

    def __repr__(self) -> str:
        return f"Asset({self.symbol}, {self.address[:10]}...)"

    def ui_amount(self, raw_amount: int) -> Decimal:
        """
        Convert raw amount to UI amount with full precision

        Args:
            raw_amount: Raw amount (smallest units)

        Returns:
            UI amount as Decimal
        """
        return Decimal(raw_amount) / Decimal(10 ** self.decimals)

    def raw_amount(self, ui_amount: Union[Decimal, float, int, str]) -> int:
        """
        Convert UI amount to raw amount

        Args:
            ui_amount: UI amount (can be Decimal, float, int, or str)

        Returns:
            Raw amount (smallest units)
        """
        if not isinstance(ui_amount, Decimal):
            ui_amount = Decimal(str(ui_amount))
        return int(ui_amount * Decimal(10 ** self.decimals))

    def base_horde(self, bdv: int) -> int:
        """Raw horde (10 decimals) granted for a raw BDV (6 decimals)"""
        return bdv * self.horde_per_bdv * 10 ** (HORDE_DECIMALS - BDV_DECIMALS)

    def prospects(self, bdv: int) -> int:
        """Raw prospects (6 decimals) granted for a raw BDV (6 decimals)"""
        return bdv * self.prospects_per_bdv * 10 ** (PROSPECTS_DECIMALS - BDV_DECIMALS)


class AssetRegistry:
    """
    Lookup table of known assets plus the deposit whitelist.

    Addresses are matched case-insensitively. Symbols are matched exactly
    first and case-insensitively as a fallback.
    """

    def __init__(self, assets: Iterable[Asset], whitelist: Iterable[str] = ()):
        self._by_address: Dict[str, Asset] = {}
        self._by_symbol: Dict[str, Asset] = {}
        for asset in assets:
            self.add(asset)

        self._whitelist: List[Asset] = []
        for symbol in whitelist:
            self._whitelist.append(self.get_by_symbol(symbol))

    def add(self, asset: Asset) -> None:
        self._by_address[asset.address.lower()] = asset
        self._by_symbol[asset.symbol] = asset

    def find_by_address(self, address: Optional[str]) -> Optional[Asset]:
        if not address:
            return None
        return self._by_address.get(address.lower())

    def find_by_symbol(self, symbol: Optional[str]) -> Optional[Asset]:
        if not symbol:
            return None
        asset = self._by_symbol.get(symbol)
        if asset is not None:
            return asset
        upper = symbol.upper()
        for key, value in self._by_symbol.items():
            if key.upper() == upper:
                return value
        return None

    def get_by_address(self, address: str) -> Asset:
        """Like find_by_address but raises UnknownAsset on a miss"""
        asset = self.find_by_address(address)
        if asset is None:
            raise UnknownAsset.not_found(address)
        return asset

    def get_by_symbol(self, symbol: str) -> Asset:
        """Like find_by_symbol but raises UnknownAsset on a miss"""
        asset = self.find_by_symbol(symbol)
        if asset is None:
            raise UnknownAsset(f"Asset not found for symbol {symbol}", asset=symbol)
        return asset

    @property
    def whitelist(self) -> Tuple[Asset, ...]:
        """Depositable assets, in registration order"""
        return tuple(self._whitelist)

    def is_whitelisted(self, asset: Asset) -> bool:
        return asset in self._whitelist

    def __iter__(self):
        return iter(self._by_symbol.values())

    def __len__(self) -> int:
        return len(self._by_symbol)

    def __repr__(self) -> str:
        return f"AssetRegistry(assets={len(self)}, whitelist={[a.symbol for a in self._whitelist]})"


# Whitelist order matters: balances are returned in this order
DEFAULT_WHITELIST = ("HOOLIGAN", "HOOLIGAN3CRV", "urHOOLIGAN", "urHOOLIGAN3CRV")


def build_registry(protocol) -> AssetRegistry:
    """
    Build the standard registry from a ProtocolConfig.

    Protocol tokens without a configured address are left out, and so are
    their whitelist entries.

    Args:
        protocol: ProtocolConfig with token addresses

    Returns:
        AssetRegistry
    """
    candidates = [
        Asset(NATIVE_TOKEN_ADDRESS, "ETH", 18, "Ether", is_native=True),
        Asset(protocol.weth, "WETH", 18, "Wrapped Ether"),
        Asset(protocol.usdc, "USDC", 6, "USD Coin"),
        Asset(protocol.usdt, "USDT", 6, "Tether"),
        Asset(protocol.dai, "DAI", 18, "Dai"),
        Asset(protocol.crv3, "3CRV", 18, "3CRV"),
        Asset(protocol.hooligan, "HOOLIGAN", 6, "Hooligan", horde_per_bdv=1, prospects_per_bdv=2),
        Asset(protocol.hooligan_crv3, "HOOLIGAN3CRV", 18, "HOOLIGAN:3CRV LP", horde_per_bdv=1, prospects_per_bdv=4),
        Asset(protocol.unripe_hooligan, "urHOOLIGAN", 6, "Unripe Hooligan", horde_per_bdv=1, prospects_per_bdv=2),
        Asset(protocol.unripe_hooligan_crv3, "urHOOLIGAN3CRV", 6, "Unripe HOOLIGAN:3CRV LP", horde_per_bdv=1, prospects_per_bdv=4),
    ]
    assets = [a for a in candidates if a.address]
    known = {a.symbol for a in assets}
    whitelist = [s for s in DEFAULT_WHITELIST if s in known]
    return AssetRegistry(assets, whitelist)
