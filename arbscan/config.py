"""Configuration management for the cross-exchange arbitrage scanner."""

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _default_exchanges() -> Dict[str, "ExchangeAccount"]:
    return {
        "binance": ExchangeAccount(),
        "bybit": ExchangeAccount(),
        "mexc": ExchangeAccount(),
        "coinex": ExchangeAccount(),
        "okx": ExchangeAccount(),
    }


class ExchangeAccount(BaseModel):
    """Exchange account configuration."""
    model_config = ConfigDict(frozen=True)

    key: Optional[str] = None
    secret: Optional[str] = None
    password: Optional[str] = None
    sandbox: bool = False
    enabled: bool = True
    timeout_ms: int = Field(default=10000, gt=0)
    requests_per_second: float = Field(default=10.0, gt=0)

    @field_validator("key", "secret", "password", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        # Unresolved ${VAR} placeholders mean the variable was never set
        if isinstance(value, str) and (not value.strip() or value.startswith("${")):
            return None
        return value

    @property
    def has_credentials(self) -> bool:
        """Check if API key and secret are both configured."""
        return bool(self.key and self.secret)


class DetectorConfig(BaseModel):
    """Opportunity detection configuration."""
    model_config = ConfigDict(frozen=True)

    pairs: List[str] = [
        "BTC/USDT",
        "ETH/USDT",
        "XRP/USDT",
        "BCH/USDT",
        "LTC/USDT",
    ]
    scan_interval_ms: int = Field(default=3000, gt=0)
    min_spread: float = Field(default=0.002, gt=0, lt=1)  # 0.2%

    @field_validator("pairs")
    @classmethod
    def _validate_pairs(cls, pairs: List[str]) -> List[str]:
        seen = []
        for pair in pairs:
            if pair.count("/") != 1 or pair.startswith("/") or pair.endswith("/"):
                raise ValueError(f"Pair must look like BASE/QUOTE: {pair!r}")
            if pair not in seen:
                seen.append(pair)
        if not seen:
            raise ValueError("At least one pair must be configured")
        return seen


class ExecutionConfig(BaseModel):
    """Execution configuration."""
    model_config = ConfigDict(frozen=True)

    trade_notional: float = Field(default=10.0, gt=0)  # quote currency per trade


class LoggingConfig(BaseModel):
    """Logging configuration."""
    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    file: Optional[str] = None
    rotation: str = "10 MB"


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: List[str] = []


class Config(BaseModel):
    """Main configuration model."""
    model_config = ConfigDict(frozen=True)

    exchanges: Dict[str, ExchangeAccount] = Field(default_factory=_default_exchanges)
    detector: DetectorConfig = Field(default_factory=DetectorConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    # exchange id -> asset -> destination address on that exchange
    withdraw_addresses: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator("withdraw_addresses", mode="before")
    @classmethod
    def _drop_unset_addresses(cls, value):
        if not isinstance(value, dict):
            return value
        return {
            exchange: {
                asset: address
                for asset, address in (assets or {}).items()
                if address and not str(address).startswith("${")
            }
            for exchange, assets in value.items()
        }

    @property
    def enabled_exchanges(self) -> Dict[str, ExchangeAccount]:
        """Get enabled exchange accounts in configured order."""
        return {name: acct for name, acct in self.exchanges.items() if acct.enabled}

    @classmethod
    def load_from_file(cls, config_path: str = "config.yaml") -> "Config":
        """Load configuration from YAML file with environment variable substitution."""
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        config_str = config_path.read_text()

        # Substitute environment variables
        for key, value in os.environ.items():
            config_str = config_str.replace(f"${{{key}}}", value)

        config_data = yaml.safe_load(config_str) or {}
        return cls(**config_data)


def get_config(config_path: str = "config.yaml") -> Config:
    """Get configuration instance."""
    return Config.load_from_file(config_path)
