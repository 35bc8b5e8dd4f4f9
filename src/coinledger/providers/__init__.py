"""Market data providers."""

from coinledger.providers.market_data_provider import MarketDataProvider
from coinledger.providers.coingecko_provider import CoinGeckoProvider
from coinledger.providers.stub_provider import StubMarketDataProvider
from coinledger.providers.symbols import SYMBOL_TO_ID, normalize_symbol, symbol_to_coin_id

__all__ = [
    "MarketDataProvider",
    "CoinGeckoProvider",
    "StubMarketDataProvider",
    "SYMBOL_TO_ID",
    "normalize_symbol",
    "symbol_to_coin_id",
]
