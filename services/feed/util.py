from __future__ import annotations

import json
import math
import os
import pathlib
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

import orjson

from services.feed.models import PricePoint

SERVICE_NAME = "sentinel-feed"


# One JSON object per line on stdout; log shippers pick it up as-is
def _log(level: str, payload: Dict[str, Any]) -> None:
    rec = {"level": level, "ts": datetime.now(tz=timezone.utc).isoformat(), "svc": SERVICE_NAME}
    rec.update(payload)
    print(orjson.dumps(rec, default=str).decode("utf-8"), flush=True)

class logger:
    @staticmethod
    def info(p: Dict[str, Any]) -> None: _log("INFO", p)
    @staticmethod
    def warning(p: Dict[str, Any]) -> None: _log("WARN", p)
    @staticmethod
    def error(p: Dict[str, Any]) -> None: _log("ERROR", p)
    @staticmethod
    def debug(p: Dict[str, Any]) -> None:
        if os.environ.get("DEBUG", "0") == "1":
            _log("DEBUG", p)

def json_dumps(obj: Any) -> str:
    return orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8")


def iso_z(ts: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a trailing Z."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts.isoformat(timespec="milliseconds") + "Z"


# Upstream payload schemas live next to this module; FEED_SCHEMA_DIR overrides
def load_payload_schema(provider: str) -> Dict[str, Any]:
    explicit = os.environ.get("FEED_SCHEMA_DIR")

    here = pathlib.Path(__file__).resolve()
    filename = f"{provider}.schema.json"
    candidates: List[str] = []

    if explicit:
        candidates.append(os.path.join(explicit, filename))
    candidates.append(str(here.parent / "schemas" / filename))

    for path in candidates:
        if os.path.exists(path):
            logger.debug({"msg": "schema_path_selected", "path": path})
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)

    raise FileNotFoundError(f"{filename} not found. Tried:\n" + "\n".join(candidates))


def _is_number(v: Any) -> bool:
    # bool is an int subclass; upstream true/false is never a price
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def parse_timestamp_ms(value: Any) -> Optional[int]:
    """
    Accepts epoch milliseconds or an ISO-8601 string ("2024-01-01T00:00:00.000Z").
    Returns None for anything else.
    """
    if _is_number(value):
        return int(value)
    if isinstance(value, str) and value:
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return int(ts.timestamp() * 1000)
    return None


def build_price_point(event_ts_ms: int, price: float) -> PricePoint:
    return PricePoint(
        price=float(price),
        created_at=datetime.fromtimestamp(event_ts_ms / 1000, tz=timezone.utc),
        triggered=False,
    )


# Normalize raw [timestamp, price] pairs into an ascending series
def normalize_price_pairs(pairs: Iterable[Any]) -> List[PricePoint]:
    """
    Input example (CoinGecko market_chart):
    [[1700000000000, 101.2], [1700003600000, 102.8]]
    Timestamps may also be ISO strings (CoinMarketCap quotes).
    Malformed entries are skipped; the rest are kept.
    """
    out: List[PricePoint] = []
    dropped = 0
    for it in pairs:
        if not isinstance(it, Sequence) or isinstance(it, (str, bytes)) or len(it) < 2:
            dropped += 1
            continue
        ts_ms = parse_timestamp_ms(it[0])
        price = it[1]
        if ts_ms is None or not _is_number(price) or price <= 0:
            dropped += 1
            continue
        try:
            out.append(build_price_point(ts_ms, price))
        except (OverflowError, OSError, ValueError):
            dropped += 1
    if dropped:
        logger.warning({"msg": "price_points_dropped", "dropped": dropped, "kept": len(out)})
    out.sort(key=lambda p: p.created_at)
    return out
