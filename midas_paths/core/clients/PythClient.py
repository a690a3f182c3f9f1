from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx
from loguru import logger

from midas_paths.core.config import get_pyth_base_url
from midas_paths.core.constants.base import DEFAULT_HTTP_TIMEOUT


class PythClient:
    """USD prices from Pyth Hermes. Lookups are best effort and return ``None``
    instead of raising."""

    def __init__(self, *, base_url: str | None = None) -> None:
        self._base_url = base_url
        self.client = httpx.AsyncClient(timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT))

    @property
    def base_url(self) -> str:
        return str(self._base_url or get_pyth_base_url()).rstrip("/")

    async def get_price_feed_id(self, symbol: str) -> str | None:
        resp = await self.client.get(
            f"{self.base_url}/v2/price_feeds",
            params={"query": symbol.lower(), "asset_type": "crypto"},
        )
        resp.raise_for_status()
        feeds = resp.json()
        if not isinstance(feeds, list) or not feeds:
            return None
        return feeds[0].get("id")

    async def get_latest_price(self, feed_id: str) -> Decimal | None:
        resp = await self.client.get(
            f"{self.base_url}/v2/updates/price/latest",
            params=[("ids[]", feed_id), ("parsed", "true")],
        )
        resp.raise_for_status()
        parsed: list[dict[str, Any]] = resp.json().get("parsed") or []
        if not parsed:
            return None
        price = parsed[0]["price"]
        return Decimal(int(price["price"])).scaleb(int(price["expo"]))

    async def get_usd_price(self, symbol: str) -> Decimal | None:
        try:
            feed_id = await self.get_price_feed_id(symbol)
            if feed_id is None:
                logger.warning(f"No Pyth price feed for {symbol}")
                return None
            return await self.get_latest_price(feed_id)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning(f"Pyth price lookup failed for {symbol}: {exc}")
            return None

    async def close(self) -> None:
        await self.client.aclose()


PYTH_CLIENT = PythClient()
