from __future__ import annotations

import asyncio
import sys
from typing import Any, Dict, Optional

from services.feed.acquirer import HardFeedFailure, PriceFeedAcquirer
from services.feed.config import Settings
from services.feed.models import FeedMode, FetchOutcome
from services.feed.upstream import build_upstream
from services.feed.util import iso_z, json_dumps, logger


def outcome_to_dict(outcome: FetchOutcome) -> Dict[str, Any]:
    return {
        "origin": outcome.origin.value,
        "count": outcome.count,
        "message": outcome.message,
        "fetched_at": iso_z(outcome.fetched_at),
        "points": [
            {"price": p.price, "created_at": iso_z(p.created_at), "triggered": p.triggered}
            for p in outcome.series
        ],
    }


async def main_async(settings: Optional[Settings] = None) -> int:
    """
    Run one acquisition and print it. Exit codes: 0 ok, 1 hard failure,
    2 bad provider configuration (not checked in sample mode).
    """
    settings = settings or Settings()
    logger.info(
        {
            "msg": "feed_start",
            "mode": settings.feed_mode.value,
            "provider": settings.price_provider,
            "timeout": settings.upstream_timeout_seconds,
        }
    )
    upstream = None
    if settings.feed_mode is not FeedMode.SAMPLE:
        try:
            upstream = build_upstream(settings)
        except ValueError as e:
            logger.error({"msg": "unknown_provider", "error": str(e)})
            return 2

    acquirer = PriceFeedAcquirer(settings, upstream=upstream)
    try:
        outcome = await acquirer.acquire()
    except HardFeedFailure as e:
        logger.error({"msg": "feed_hard_failure", "error": str(e)})
        return 1
    print(json_dumps(outcome_to_dict(outcome)), flush=True)
    return 0


def main() -> None:
    try:
        rc = asyncio.run(main_async())
    except KeyboardInterrupt:
        rc = 130
    sys.exit(rc)


if __name__ == "__main__":
    main()
