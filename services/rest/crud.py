"""
Data access for the REST layer: price history comes from the feed acquirer,
the oracle address from configuration. Neither keeps state between requests.
"""

import re
from typing import Dict

from services.feed.acquirer import PriceFeedAcquirer
from services.feed.config import Settings
from services.feed.util import iso_z

# 32-byte ed25519 keys encode to 32..44 base58 characters
_BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class OracleKeyError(Exception):
    pass


async def get_price_history(acquirer: PriceFeedAcquirer) -> Dict:
    outcome = await acquirer.acquire()
    body = {
        "success": True,
        "activities": [
            {"price": p.price, "created_at": iso_z(p.created_at), "triggered": p.triggered}
            for p in outcome.series
        ],
        "count": outcome.count,
        "origin": outcome.origin.value,
        "message": outcome.message,
        "timestamp": iso_z(outcome.fetched_at),
    }
    if outcome.is_fallback:
        body["fallback"] = True
    if outcome.is_sample:
        body["isSampleData"] = True
    return body

async def get_latest_price(acquirer: PriceFeedAcquirer) -> Dict:
    outcome = await acquirer.acquire()
    latest = outcome.latest
    return {"t": iso_z(latest.created_at), "c": latest.price, "origin": outcome.origin.value}

def get_oracle_public_key(settings: Settings) -> str:
    address = (settings.payment_recipient_wallet or settings.oracle_public_key).strip()
    if not address:
        raise OracleKeyError("Oracle wallet not configured (set PAYMENT_RECIPIENT_WALLET)")
    if not _BASE58_ADDRESS.match(address):
        raise OracleKeyError(f"Invalid oracle wallet address: {address}")
    return address
