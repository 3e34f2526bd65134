"""Core arbitrage logic for cross-exchange trading."""

from .types import PairSnapshot, Opportunity, ExecutionResult, calculate_spread, split_pair
from .address_book import WithdrawalAddressBook
from .aggregator import PriceAggregator
from .detector import OpportunityDetector, ScannerState
from .executor import ArbitrageExecutor, ExecutionStep

__all__ = [
    'PairSnapshot',
    'Opportunity',
    'ExecutionResult',
    'calculate_spread',
    'split_pair',
    'WithdrawalAddressBook',
    'PriceAggregator',
    'OpportunityDetector',
    'ScannerState',
    'ArbitrageExecutor',
    'ExecutionStep'
]
