"""Cross-exchange crypto arbitrage scanner."""

__version__ = "0.1.0"
