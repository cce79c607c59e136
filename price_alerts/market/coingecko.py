import logging
import math
from collections.abc import Iterable

import httpx

from price_alerts.errors import PriceProviderUnavailable, QuoteDecodeError

logger = logging.getLogger(__name__)


def _parse_price(raw: object) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    price = float(raw)
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class CoinGeckoClient:
    """Batched spot prices from CoinGecko's ``/simple/price`` endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://api.coingecko.com/api/v3",
        vs_currency: str = "usd",
        api_key: str = "",
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._vs_currency = vs_currency.lower()
        self._api_key = api_key

    async def get_simple_prices(self, asset_ids: Iterable[str]) -> dict[str, float]:
        """Fetch current prices for all ``asset_ids`` in a single request.

        Ids the provider has no usable quote for are simply absent from the
        result. Raises PriceProviderUnavailable if the request itself fails.
        """
        ids = sorted(set(asset_ids))
        if not ids:
            return {}

        headers = {"x-cg-demo-api-key": self._api_key} if self._api_key else {}
        try:
            resp = await self._client.get(
                f"{self._base_url}/simple/price",
                params={"ids": ",".join(ids), "vs_currencies": self._vs_currency},
                headers=headers,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise PriceProviderUnavailable(f"Failed to fetch prices: {exc}") from exc
        except ValueError as exc:
            raise QuoteDecodeError(f"Price response is not JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise QuoteDecodeError(
                f"Price response is a {type(data).__name__}, expected an object"
            )

        prices: dict[str, float] = {}
        for coin_id in ids:
            quote = data.get(coin_id)
            if not isinstance(quote, dict):
                continue
            price = _parse_price(quote.get(self._vs_currency))
            if price is None:
                logger.warning("Unusable %s quote for %s: %r", self._vs_currency, coin_id, quote)
                continue
            prices[coin_id] = price

        logger.info("Fetched %d/%d prices from CoinGecko", len(prices), len(ids))
        return prices
