"""Build exchange adapters from configuration."""

from typing import Dict, Iterable, Optional

import ccxt.pro as ccxt
from loguru import logger

from ..config import Config, ExchangeAccount
from .base import BaseExchange
from .ccxt_exchange import CcxtExchange
from .rate_limiter import RateLimiter

# ccxt renamed some exchanges between releases
EXCHANGE_ALIASES = {
    "mexc": ("mexc", "mxc"),
    "okx": ("okx", "okex"),
}


def resolve_exchange_id(name: str, available: Iterable[str]) -> Optional[str]:
    """Map a configured exchange name to the id this ccxt release knows."""
    available = set(available)
    for candidate in EXCHANGE_ALIASES.get(name, (name,)):
        if candidate in available:
            return candidate
    return None


def build_client_options(account: ExchangeAccount) -> Dict:
    """ccxt constructor options for an account."""
    options = {
        "enableRateLimit": True,
        "timeout": account.timeout_ms,
        "options": {"defaultType": "spot"},
    }
    if account.key:
        options["apiKey"] = account.key
    if account.secret:
        options["secret"] = account.secret
    if account.password:
        options["password"] = account.password
    return options


def create_exchanges(config: Config) -> Dict[str, BaseExchange]:
    """Initialize adapters for every enabled exchange, in configured order.

    Exchanges that cannot be constructed are logged and skipped.
    """
    exchanges: Dict[str, BaseExchange] = {}

    for name, account in config.enabled_exchanges.items():
        exchange_id = resolve_exchange_id(name, ccxt.exchanges)
        if exchange_id is None:
            logger.warning(f"CCXT: exchange {name} not in ccxt.exchanges list")
            exchange_id = name

        try:
            client_cls = getattr(ccxt, exchange_id)
            client = client_cls(build_client_options(account))
            if account.sandbox:
                client.set_sandbox_mode(True)
        except Exception as e:
            logger.error(f"Failed to initialize {name}: {e}")
            continue

        exchanges[name] = CcxtExchange(
            name,
            client,
            RateLimiter(requests_per_second=account.requests_per_second),
        )
        mode = "trading" if account.has_credentials else "read-only"
        logger.info(f"{name} exchange initialized ({exchange_id}, {mode})")

    return exchanges
