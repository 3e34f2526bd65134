"""Operator-configured withdrawal destinations."""

from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple


class WithdrawalAddressBook:
    """Read-only (exchange, asset) -> deposit address mapping.

    Built once at startup and injected into the executor; safe to read from
    concurrent executions.
    """

    def __init__(self, addresses: Optional[Mapping[Tuple[str, str], str]] = None):
        entries = {
            (exchange, asset.upper()): address
            for (exchange, asset), address in (addresses or {}).items()
            if address
        }
        self._addresses = MappingProxyType(entries)

    @classmethod
    def from_config(cls, withdraw_addresses: Mapping[str, Mapping[str, str]]) -> "WithdrawalAddressBook":
        """Build from the nested ``{exchange: {asset: address}}`` config layout."""
        return cls({
            (exchange, asset): address
            for exchange, assets in withdraw_addresses.items()
            for asset, address in (assets or {}).items()
        })

    def lookup(self, exchange: str, asset: str) -> Optional[str]:
        """Destination address on ``exchange`` for ``asset``, if configured."""
        return self._addresses.get((exchange, asset.upper()))

    def exchanges(self) -> Dict[str, list]:
        """Configured assets per exchange."""
        result: Dict[str, list] = {}
        for exchange, asset in self._addresses:
            result.setdefault(exchange, []).append(asset)
        return result

    def __len__(self) -> int:
        return len(self._addresses)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        exchange, asset = key
        return self.lookup(exchange, asset) is not None
