from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import httpx
from jsonschema import validate, ValidationError

from services.feed.config import Settings
from services.feed.util import load_payload_schema, logger

RawPair = Tuple[Any, Any]

# Asset and window are fixed: SOL/USD, trailing 24h, hourly
SYMBOL = "SOL"
COINGECKO_ID = "solana"
WINDOW_POINTS = 24


class UpstreamError(Exception):
    """Upstream could not deliver usable price history."""


class UpstreamNotConfigured(UpstreamError):
    pass


class UpstreamClient:
    name = "upstream"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._schema: Optional[Dict[str, Any]] = None

    @property
    def schema(self) -> Dict[str, Any]:
        if self._schema is None:
            self._schema = load_payload_schema(self.name)
        return self._schema

    def _path(self) -> str:
        raise NotImplementedError

    def _params(self) -> Dict[str, Any]:
        return {}

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _extract(self, payload: Dict[str, Any]) -> List[RawPair]:
        raise NotImplementedError

    async def _get_json(self) -> Any:
        url = f"{self.base_url}{self._path()}"
        logger.info({"msg": "upstream_request", "provider": self.name, "url": url})
        try:
            # fresh client per call; nothing is shared between acquisitions
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.get(url, params=self._params(), headers=self._headers())
        except httpx.TimeoutException as e:
            raise UpstreamError(f"{self.name} request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"{self.name} request failed: {e}") from e

        if not resp.is_success:
            raise UpstreamError(f"{self.name} API error: {resp.status_code}")
        try:
            return resp.json()
        except (ValueError, RecursionError) as e:
            # RecursionError: pathologically nested body
            raise UpstreamError(f"{self.name} returned malformed JSON") from e

    async def fetch_pairs(self) -> List[RawPair]:
        """
        One request, no retries. Returns raw (timestamp, price) pairs; entries
        are not checked individually here.
        """
        payload = await self._get_json()
        try:
            validate(instance=payload, schema=self.schema)
        except ValidationError as e:
            raise UpstreamError(f"Invalid {self.name} response format: {e.message}") from e
        pairs = self._extract(payload)
        if not pairs:
            raise UpstreamError(f"{self.name} returned no price data")
        return pairs


class CoinMarketCapClient(UpstreamClient):
    name = "coinmarketcap"

    def _path(self) -> str:
        return "/v2/cryptocurrency/ohlcv/historical"

    def _params(self) -> Dict[str, Any]:
        return {"symbol": SYMBOL, "count": WINDOW_POINTS, "interval": "1h", "convert": "USD"}

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["X-CMC_PRO_API_KEY"] = self.api_key
        headers["Accept-Encoding"] = "deflate, gzip"
        return headers

    async def fetch_pairs(self) -> List[RawPair]:
        if not self.api_key:
            raise UpstreamNotConfigured("CoinMarketCap API key not configured")
        return await super().fetch_pairs()

    def _extract(self, payload: Dict[str, Any]) -> List[RawPair]:
        asset = payload["data"][SYMBOL]
        if isinstance(asset, list):
            asset = asset[0]
        out: List[RawPair] = []
        for q in asset["quotes"]:
            quote = q.get("quote")
            usd = quote.get("USD") if isinstance(quote, dict) else None
            if not isinstance(usd, dict):
                usd = {}
            ts = q.get("timestamp") or q.get("time_close") or usd.get("timestamp")
            out.append((ts, usd.get("close")))
        return out


class CoinGeckoClient(UpstreamClient):
    name = "coingecko"

    def _path(self) -> str:
        return f"/coins/{COINGECKO_ID}/market_chart"

    def _params(self) -> Dict[str, Any]:
        return {"vs_currency": "usd", "days": 1}

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key
        return headers

    def _extract(self, payload: Dict[str, Any]) -> List[RawPair]:
        out: List[RawPair] = []
        for it in payload["prices"]:
            if isinstance(it, list) and len(it) >= 2:
                out.append((it[0], it[1]))
            else:
                out.append((None, None))
        return out


def build_upstream(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> UpstreamClient:
    provider = settings.price_provider.strip().lower()
    if provider == CoinMarketCapClient.name:
        return CoinMarketCapClient(
            base_url=settings.coinmarketcap_base_url,
            api_key=settings.coinmarketcap_api_key,
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        )
    if provider == CoinGeckoClient.name:
        return CoinGeckoClient(
            base_url=settings.coingecko_base_url,
            api_key=settings.coingecko_api_key,
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        )
    raise ValueError(f"unknown price provider: {settings.price_provider!r}")
