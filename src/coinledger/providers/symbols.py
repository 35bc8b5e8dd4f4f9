"""Ticker symbol to provider coin id mapping."""

SYMBOL_TO_ID: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "SOL": "solana",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "MATIC": "matic-network",
    "DOT": "polkadot",
    "AVAX": "avalanche-2",
    "LINK": "chainlink",
    "UNI": "uniswap",
    "ATOM": "cosmos",
    "LTC": "litecoin",
    "BCH": "bitcoin-cash",
}


def normalize_symbol(symbol: str) -> str:
    """Canonical ticker form: stripped, upper case."""
    return (symbol or "").strip().upper()


def symbol_to_coin_id(symbol: str) -> str:
    """Map a ticker to the provider id; unknown tickers fall back to lower case."""
    key = normalize_symbol(symbol)
    return SYMBOL_TO_ID.get(key, key.lower())
