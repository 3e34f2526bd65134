"""Exchange integrations for cross-exchange arbitrage."""

from .base import BaseExchange, Quote, OrderResult, WithdrawalResult
from .ccxt_exchange import CcxtExchange
from .factory import create_exchanges, resolve_exchange_id
from .rate_limiter import RateLimiter

__all__ = [
    'BaseExchange',
    'Quote',
    'OrderResult',
    'WithdrawalResult',
    'CcxtExchange',
    'create_exchanges',
    'resolve_exchange_id',
    'RateLimiter'
]
