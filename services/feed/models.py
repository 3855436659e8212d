from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class FeedMode(str, Enum):
    SAMPLE = "sample"
    LIVE = "live"
    STRICT = "strict"


class FeedOrigin(str, Enum):
    LIVE = "live"
    SAMPLE = "sample"
    FALLBACK = "fallback"


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float = Field(gt=0)
    created_at: datetime  # UTC
    triggered: bool = False


class FetchOutcome(BaseModel):
    """
    Result of one acquisition. `origin` says whether the series is real market
    data (live) or a placeholder (sample/fallback); consumers that move money
    should refuse anything that is not live.
    """

    model_config = ConfigDict(frozen=True)

    series: Tuple[PricePoint, ...] = Field(min_length=1)
    origin: FeedOrigin
    message: Optional[str] = None
    fetched_at: datetime

    @property
    def count(self) -> int:
        return len(self.series)

    @property
    def is_live(self) -> bool:
        return self.origin is FeedOrigin.LIVE

    @property
    def is_fallback(self) -> bool:
        return self.origin is FeedOrigin.FALLBACK

    @property
    def is_sample(self) -> bool:
        return self.origin is FeedOrigin.SAMPLE

    @property
    def latest(self) -> PricePoint:
        return self.series[-1]
