"""CoinGecko REST API market data provider."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional, TypeVar

import httpx

from coinledger.core.exceptions import UpstreamProviderError
from coinledger.core.timezone import from_epoch_millis
from coinledger.domain.views import (
    SimplePrice,
    CoinPrice,
    CoinDetail,
    SearchResult,
    TrendingCoin,
    PricePoint,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
SEARCH_RESULT_LIMIT = 10

T = TypeVar("T")


def _dec(value: Any) -> Optional[Decimal]:
    """Convert a JSON number to Decimal, keeping None."""
    if value is None:
        return None
    return Decimal(str(value))


def _usd(mapping: Optional[dict]) -> Optional[Decimal]:
    if not mapping:
        return None
    return _dec(mapping.get("usd"))


class CoinGeckoProvider:
    """
    Market data provider backed by the CoinGecko v3 API.

    Uses a synchronous ``httpx.Client`` with a per-request timeout. All library
    errors are normalized into ``UpstreamProviderError``.
    """

    name = "coingecko"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize provider.

        Args:
            base_url: API root (e.g. "https://api.coingecko.com/api/v3")
            timeout: Request timeout in seconds
            api_key: Optional demo/pro API key sent as a header
            client: Pre-built client (tests inject one with a mock transport)
        """
        if client is None:
            headers = {"Accept": "application/json"}
            if api_key:
                headers["x-cg-demo-api-key"] = api_key
            client = httpx.Client(
                base_url=base_url.rstrip("/"),
                timeout=timeout,
                headers=headers,
            )
        self._client = client

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def _get_json(self, operation: str, path: str, params: Optional[dict] = None) -> Any:
        logger.debug("GET %s %s", path, params)
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamProviderError(
                self.name,
                operation,
                cause=exc,
                detail=f"HTTP {exc.response.status_code}",
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamProviderError(self.name, operation, cause=exc) from exc
        except ValueError as exc:
            raise UpstreamProviderError(
                self.name, operation, cause=exc, detail="malformed JSON"
            ) from exc

    def _parse(self, operation: str, payload: Any, parser: Callable[[Any], T]) -> T:
        """Run a payload parser, turning schema mismatches into provider errors."""
        try:
            return parser(payload)
        except (KeyError, TypeError, AttributeError, IndexError, InvalidOperation) as exc:
            raise UpstreamProviderError(
                self.name, operation, cause=exc, detail="unexpected payload shape"
            ) from exc

    def get_simple_prices(self, coin_ids: list[str]) -> dict[str, SimplePrice]:
        """Batch lookup via /simple/price."""
        if not coin_ids:
            return {}
        payload = self._get_json(
            "simple_price",
            "/simple/price",
            params={
                "ids": ",".join(coin_ids),
                "vs_currencies": "usd",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
                "include_24hr_change": "true",
            },
        )

        def parse(data: Any) -> dict[str, SimplePrice]:
            result: dict[str, SimplePrice] = {}
            for coin_id, entry in data.items():
                price = _dec(entry.get("usd"))
                if price is None:
                    continue
                result[coin_id] = SimplePrice(
                    coin_id=coin_id,
                    price=price,
                    market_cap=_dec(entry.get("usd_market_cap")),
                    volume_24h=_dec(entry.get("usd_24h_vol")),
                    change_percentage_24h=_dec(entry.get("usd_24h_change")),
                )
            return result

        return self._parse("simple_price", payload, parse)

    def get_markets(self, coin_ids: list[str]) -> list[CoinPrice]:
        """Market snapshots via /coins/markets."""
        if not coin_ids:
            return []
        payload = self._get_json(
            "markets",
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "ids": ",".join(coin_ids),
                "order": "market_cap_desc",
                "per_page": 250,
                "page": 1,
                "sparkline": "false",
            },
        )
        return self._parse("markets", payload, lambda data: [self._coin_price(c) for c in data])

    def get_top_coins(self, limit: int) -> list[CoinPrice]:
        """Top coins by market cap via /coins/markets."""
        payload = self._get_json(
            "top_coins",
            "/coins/markets",
            params={
                "vs_currency": "usd",
                "order": "market_cap_desc",
                "per_page": limit,
                "page": 1,
                "sparkline": "false",
            },
        )
        return self._parse("top_coins", payload, lambda data: [self._coin_price(c) for c in data])

    def get_coin_detail(self, coin_id: str) -> CoinDetail:
        """Single coin via /coins/{id}."""
        payload = self._get_json(
            "coin_detail",
            f"/coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "community_data": "false",
                "developer_data": "false",
            },
        )

        def parse(coin: Any) -> CoinDetail:
            market = coin["market_data"]
            return CoinDetail(
                coin_id=coin["id"],
                symbol=coin["symbol"].upper(),
                name=coin["name"],
                current_price=_usd(market["current_price"]),
                price_change_24h=_dec(market.get("price_change_24h")),
                price_change_percentage_24h=_dec(market.get("price_change_percentage_24h")),
                market_cap=_usd(market.get("market_cap")),
                total_volume=_usd(market.get("total_volume")),
                high_24h=_usd(market.get("high_24h")),
                low_24h=_usd(market.get("low_24h")),
                image=(coin.get("image") or {}).get("large"),
                description=(coin.get("description") or {}).get("en"),
                market_cap_rank=coin.get("market_cap_rank"),
                circulating_supply=_dec(market.get("circulating_supply")),
                total_supply=_dec(market.get("total_supply")),
                max_supply=_dec(market.get("max_supply")),
            )

        detail = self._parse("coin_detail", payload, parse)
        if detail.current_price is None:
            raise UpstreamProviderError(self.name, "coin_detail", detail="missing usd price")
        return detail

    def search(self, query: str) -> list[SearchResult]:
        """Free-text search via /search."""
        payload = self._get_json("search", "/search", params={"query": query})
        return self._parse(
            "search",
            payload,
            lambda data: [
                SearchResult(
                    coin_id=c["id"],
                    name=c["name"],
                    symbol=c["symbol"].upper(),
                    image=c.get("large"),
                    market_cap_rank=c.get("market_cap_rank"),
                )
                for c in data["coins"][:SEARCH_RESULT_LIMIT]
            ],
        )

    def get_trending(self) -> list[TrendingCoin]:
        """Trending coins via /search/trending."""
        payload = self._get_json("trending", "/search/trending")
        return self._parse(
            "trending",
            payload,
            lambda data: [
                TrendingCoin(
                    coin_id=entry["item"]["id"],
                    name=entry["item"]["name"],
                    symbol=entry["item"]["symbol"].upper(),
                    image=entry["item"].get("large"),
                    market_cap_rank=entry["item"].get("market_cap_rank"),
                    price_btc=_dec(entry["item"].get("price_btc")),
                )
                for entry in data["coins"]
            ],
        )

    def get_market_chart(self, coin_id: str, days: int) -> list[PricePoint]:
        """Historical series via /coins/{id}/market_chart."""
        payload = self._get_json(
            "market_chart",
            f"/coins/{coin_id}/market_chart",
            params={"vs_currency": "usd", "days": days},
        )
        return self._parse(
            "market_chart",
            payload,
            lambda data: [
                PricePoint(timestamp=from_epoch_millis(ts), price=_dec(price))
                for ts, price in data["prices"]
            ],
        )

    @staticmethod
    def _coin_price(coin: dict) -> CoinPrice:
        price = _dec(coin["current_price"])
        if price is None:
            raise TypeError(f"missing current_price for {coin.get('id')}")
        return CoinPrice(
            coin_id=coin["id"],
            symbol=coin["symbol"].upper(),
            name=coin["name"],
            current_price=price,
            price_change_24h=_dec(coin.get("price_change_24h")),
            price_change_percentage_24h=_dec(coin.get("price_change_percentage_24h")),
            market_cap=_dec(coin.get("market_cap")),
            total_volume=_dec(coin.get("total_volume")),
            high_24h=_dec(coin.get("high_24h")),
            low_24h=_dec(coin.get("low_24h")),
            image=coin.get("image"),
        )
