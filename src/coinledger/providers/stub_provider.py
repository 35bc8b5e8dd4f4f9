"""Stub market data provider for offline/testing use."""

import random
from datetime import timedelta
from decimal import Decimal

from coinledger.core.exceptions import UpstreamProviderError
from coinledger.core.timezone import now_utc
from coinledger.domain.views import (
    SimplePrice,
    CoinPrice,
    CoinDetail,
    SearchResult,
    TrendingCoin,
    PricePoint,
)
from coinledger.providers.symbols import SYMBOL_TO_ID


# Deterministic fake (price, 24h change %) per coin id
_STUB_PRICES: dict[str, tuple[Decimal, Decimal]] = {
    "bitcoin": (Decimal("67000"), Decimal("1.25")),
    "ethereum": (Decimal("3450.50"), Decimal("-0.80")),
    "binancecoin": (Decimal("585.20"), Decimal("0.40")),
    "solana": (Decimal("152.75"), Decimal("3.10")),
    "ripple": (Decimal("0.52"), Decimal("-1.20")),
    "cardano": (Decimal("0.45"), Decimal("0.15")),
    "dogecoin": (Decimal("0.16"), Decimal("2.05")),
    "polkadot": (Decimal("7.10"), Decimal("-0.35")),
    "chainlink": (Decimal("14.60"), Decimal("0.90")),
    "litecoin": (Decimal("82.40"), Decimal("-0.10")),
}

_ID_TO_SYMBOL = {coin_id: symbol for symbol, coin_id in SYMBOL_TO_ID.items()}


class StubMarketDataProvider:
    """
    Stub provider with deterministic fake data for offline operation.

    Uses predefined prices for common coins; unknown ids are not priced, the
    same way the real API omits ids it does not recognize.
    """

    name = "stub"

    def __init__(self, seed: int = 42):
        """Initialize with optional random seed for reproducible charts."""
        self._seed = seed

    def get_simple_prices(self, coin_ids: list[str]) -> dict[str, SimplePrice]:
        """Return stub prices for known ids."""
        result: dict[str, SimplePrice] = {}
        for coin_id in coin_ids:
            if coin_id not in _STUB_PRICES:
                continue
            price, change_pct = _STUB_PRICES[coin_id]
            result[coin_id] = SimplePrice(
                coin_id=coin_id,
                price=price,
                market_cap=price * Decimal("1000000"),
                volume_24h=price * Decimal("10000"),
                change_percentage_24h=change_pct,
            )
        return result

    def get_markets(self, coin_ids: list[str]) -> list[CoinPrice]:
        return [self._coin_price(c) for c in coin_ids if c in _STUB_PRICES]

    def get_top_coins(self, limit: int) -> list[CoinPrice]:
        ranked = sorted(_STUB_PRICES, key=lambda c: _STUB_PRICES[c][0], reverse=True)
        return [self._coin_price(c) for c in ranked[:limit]]

    def get_coin_detail(self, coin_id: str) -> CoinDetail:
        if coin_id not in _STUB_PRICES:
            raise UpstreamProviderError(self.name, "coin_detail", detail="HTTP 404")
        base = self._coin_price(coin_id)
        return CoinDetail(**vars(base), description=f"Stub description for {base.name}")

    def search(self, query: str) -> list[SearchResult]:
        needle = query.strip().lower()
        hits = [
            SearchResult(coin_id=c, name=self._name(c), symbol=_ID_TO_SYMBOL.get(c, c.upper()))
            for c in _STUB_PRICES
            if needle and (needle in c or needle == _ID_TO_SYMBOL.get(c, "").lower())
        ]
        return hits[:10]

    def get_trending(self) -> list[TrendingCoin]:
        return [
            TrendingCoin(coin_id=c, name=self._name(c), symbol=_ID_TO_SYMBOL.get(c, c.upper()))
            for c in ("solana", "dogecoin", "chainlink")
        ]

    def get_market_chart(self, coin_id: str, days: int) -> list[PricePoint]:
        """Daily random walk around the stub price, reproducible per coin."""
        if coin_id not in _STUB_PRICES:
            raise UpstreamProviderError(self.name, "market_chart", detail="HTTP 404")
        rng = random.Random(f"{self._seed}:{coin_id}")
        price = _STUB_PRICES[coin_id][0]
        end = now_utc()
        points = []
        for offset in range(days, -1, -1):
            drift = Decimal(str(round((rng.random() - 0.5) * 0.04, 6)))
            points.append(
                PricePoint(
                    timestamp=end - timedelta(days=offset),
                    price=(price * (1 + drift)).quantize(Decimal("0.01")),
                )
            )
        return points

    @staticmethod
    def _name(coin_id: str) -> str:
        return coin_id.replace("-", " ").title()

    def _coin_price(self, coin_id: str) -> CoinPrice:
        price, change_pct = _STUB_PRICES[coin_id]
        return CoinPrice(
            coin_id=coin_id,
            symbol=_ID_TO_SYMBOL.get(coin_id, coin_id.upper()),
            name=self._name(coin_id),
            current_price=price,
            price_change_percentage_24h=change_pct,
            market_cap=price * Decimal("1000000"),
        )
