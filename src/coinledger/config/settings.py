"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".coinledger"


class InstrumentSetting(BaseModel):
    """One entry of the tracked instrument universe."""

    coin_id: str
    symbol: str
    name: str


DEFAULT_TRACKED_INSTRUMENTS: list[InstrumentSetting] = [
    InstrumentSetting(coin_id="bitcoin", symbol="BTC", name="Bitcoin"),
    InstrumentSetting(coin_id="ethereum", symbol="ETH", name="Ethereum"),
    InstrumentSetting(coin_id="binancecoin", symbol="BNB", name="BNB"),
    InstrumentSetting(coin_id="solana", symbol="SOL", name="Solana"),
    InstrumentSetting(coin_id="ripple", symbol="XRP", name="XRP"),
    InstrumentSetting(coin_id="cardano", symbol="ADA", name="Cardano"),
    InstrumentSetting(coin_id="dogecoin", symbol="DOGE", name="Dogecoin"),
    InstrumentSetting(coin_id="matic-network", symbol="MATIC", name="Polygon"),
    InstrumentSetting(coin_id="polkadot", symbol="DOT", name="Polkadot"),
    InstrumentSetting(coin_id="avalanche-2", symbol="AVAX", name="Avalanche"),
    InstrumentSetting(coin_id="chainlink", symbol="LINK", name="Chainlink"),
    InstrumentSetting(coin_id="uniswap", symbol="UNI", name="Uniswap"),
    InstrumentSetting(coin_id="cosmos", symbol="ATOM", name="Cosmos Hub"),
    InstrumentSetting(coin_id="litecoin", symbol="LTC", name="Litecoin"),
    InstrumentSetting(coin_id="bitcoin-cash", symbol="BCH", name="Bitcoin Cash"),
]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COINLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Crypto Portfolio Ledger"
    app_version: str = "0.1.0"

    # Data directory (SQLite database lives here unless database_url is set)
    data_dir: Optional[Path] = None
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8001

    # Ledger behavior
    strict_sells: bool = False

    # Market data provider
    market_data_provider: str = "coingecko"
    market_data_base_url: str = "https://api.coingecko.com/api/v3"
    market_data_api_key: Optional[str] = None
    market_data_timeout_seconds: float = 10.0

    # On-demand quote cache
    quote_cache_ttl_seconds: int = 60
    quote_cache_max_entries: int = 1024

    # Background price synchronization
    price_sync_enabled: bool = True
    price_sync_interval_seconds: float = 10.0
    price_max_age_seconds: int = 120

    tracked_instruments: list[InstrumentSetting] = DEFAULT_TRACKED_INSTRUMENTS

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "coinledger.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Replace the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
