"""
Price feed acquisition for the sentinel monitor.

One acquisition = at most one upstream request (bounded by the configured
timeout, never retried). Whatever happens upstream, the caller gets a
non-empty ascending series and an origin tag:

- live      parsed from the provider
- fallback  synthetic hourly series around a base price (upstream failed)
- sample    two fixed points (sample mode, or fallback itself unavailable)

Only strict mode lets a failure escape, and only when not even the fallback
series can be built.
"""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from services.feed.config import Settings
from services.feed.models import FeedMode, FeedOrigin, FetchOutcome, PricePoint
from services.feed.upstream import UpstreamClient, UpstreamError, build_upstream
from services.feed.util import logger, normalize_price_pairs

SAMPLE_PRICES = (100.0, 105.0)
FALLBACK_JITTER = 0.05  # +/- fraction of the base price
HOUR = timedelta(hours=1)
WINDOW = timedelta(hours=24)

# Raised while turning an odd payload into pairs; treated like an outage
PARSE_ERRORS = (KeyError, IndexError, TypeError, AttributeError, ValueError, RecursionError)


class HardFeedFailure(Exception):
    """Not even a fallback series could be produced (strict mode only)."""


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def sample_series(now: datetime) -> List[PricePoint]:
    return [
        PricePoint(price=SAMPLE_PRICES[0], created_at=now - WINDOW),
        PricePoint(price=SAMPLE_PRICES[1], created_at=now),
    ]


def fallback_series(
    now: datetime, base_price: float, points: int, rng: random.Random
) -> List[PricePoint]:
    if base_price <= 0:
        raise ValueError(f"fallback base price must be positive, got {base_price}")
    if points < 1:
        raise ValueError(f"fallback needs at least one point, got {points}")
    out: List[PricePoint] = []
    for i in range(points):
        noise = rng.uniform(-FALLBACK_JITTER, FALLBACK_JITTER)
        out.append(
            PricePoint(
                price=round(base_price * (1 + noise), 4),
                created_at=now - HOUR * (points - 1 - i),
            )
        )
    return out


class PriceFeedAcquirer:
    def __init__(
        self,
        settings: Settings,
        upstream: Optional[UpstreamClient] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings
        self.mode = FeedMode(settings.feed_mode)
        self.timeout = settings.upstream_timeout_seconds
        self._upstream = upstream
        self._clock = clock or _utcnow
        self._rng = rng or random.Random()

    @property
    def upstream(self) -> UpstreamClient:
        # built on first live call so sample mode needs no provider config
        if self._upstream is None:
            self._upstream = build_upstream(self.settings)
        return self._upstream

    def _now(self) -> datetime:
        try:
            return self._clock()
        except Exception as e:
            logger.error({"msg": "feed_clock_failed", "error": repr(e), "mode": self.mode.value})
            if self.mode is FeedMode.STRICT:
                raise HardFeedFailure(f"clock unavailable: {e}") from e
            return _utcnow()

    async def acquire(self) -> FetchOutcome:
        now = self._now()
        if self.mode is FeedMode.SAMPLE:
            logger.info({"msg": "feed_sample_mode"})
            return self._outcome(sample_series(now), FeedOrigin.SAMPLE, now, "Using sample data")

        try:
            upstream = self.upstream
        except ValueError as e:
            logger.error({"msg": "feed_config_invalid", "error": str(e)})
            return self._degrade(now, f"invalid feed configuration: {e}")

        try:
            series = await self._fetch_live(upstream)
        except asyncio.TimeoutError:
            reason = f"upstream did not respond within {self.timeout}s"
            logger.warning({"msg": "feed_upstream_timeout", "timeout": self.timeout})
            return self._degrade(now, reason)
        except UpstreamError as e:
            logger.warning({"msg": "feed_upstream_failed", "error": str(e)})
            return self._degrade(now, str(e))
        except PARSE_ERRORS as e:
            logger.error({"msg": "feed_parse_failed", "error": repr(e)})
            return self._degrade(now, f"could not parse upstream payload: {e}")

        prices = [p.price for p in series]
        logger.info(
            {
                "msg": "feed_live_ok",
                "points": len(series),
                "min_price": round(min(prices), 2),
                "max_price": round(max(prices), 2),
            }
        )
        return self._outcome(series, FeedOrigin.LIVE, now)

    async def _fetch_live(self, upstream: UpstreamClient) -> List[PricePoint]:
        pairs = await asyncio.wait_for(upstream.fetch_pairs(), timeout=self.timeout)
        series = normalize_price_pairs(pairs)
        if not series:
            raise UpstreamError("no valid price points in upstream payload")
        return series

    def _degrade(self, now: datetime, reason: str) -> FetchOutcome:
        try:
            series = fallback_series(
                now, self.settings.fallback_base_price, self.settings.fallback_points, self._rng
            )
        except ValueError as e:
            logger.error({"msg": "feed_fallback_unavailable", "error": str(e), "mode": self.mode.value})
            if self.mode is FeedMode.STRICT:
                raise HardFeedFailure(f"{reason}; fallback unavailable: {e}") from e
            return self._outcome(
                sample_series(now), FeedOrigin.SAMPLE, now, f"{reason}; using sample data"
            )
        logger.info({"msg": "feed_fallback", "points": len(series), "reason": reason})
        return self._outcome(series, FeedOrigin.FALLBACK, now, f"Using fallback data: {reason}")

    @staticmethod
    def _outcome(
        series: List[PricePoint], origin: FeedOrigin, now: datetime, message: Optional[str] = None
    ) -> FetchOutcome:
        return FetchOutcome(series=tuple(series), origin=origin, message=message, fetched_at=now)
