from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse

from services.feed.acquirer import HardFeedFailure, PriceFeedAcquirer
from services.feed.config import Settings
from services.feed.util import logger
from .models import (
    ErrorResponse,
    HealthResponse,
    LatestPrice,
    LivePriceResponse,
    OracleDebugResponse,
    OracleResponse,
)
from .crud import OracleKeyError, get_latest_price, get_oracle_public_key, get_price_history

DEBUG_INSTRUCTIONS = [
    "Open browser console (F12)",
    'Run: localStorage.getItem("sentinel_agent_sentinels")',
    "This will show all stored sentinels",
    'Check the "network" field of each sentinel',
]

app = FastAPI(title="sentinel price feed")


def get_settings() -> Settings:
    return Settings()

def get_acquirer(settings: Settings = Depends(get_settings)) -> PriceFeedAcquirer:
    return PriceFeedAcquirer(settings)

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@app.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok"}

@app.get(
    "/live-price-data",
    response_model=LivePriceResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
async def live_price_data(acquirer: PriceFeedAcquirer = Depends(get_acquirer)):
    try:
        return await get_price_history(acquirer)
    except HardFeedFailure as e:
        logger.error({"msg": "live_price_data_failed", "error": str(e)})
        return _error(500, str(e))

@app.get("/price/latest", response_model=LatestPrice, responses={500: {"model": ErrorResponse}})
async def price_latest(acquirer: PriceFeedAcquirer = Depends(get_acquirer)):
    try:
        return await get_latest_price(acquirer)
    except HardFeedFailure as e:
        logger.error({"msg": "price_latest_failed", "error": str(e)})
        return _error(500, str(e))

@app.get(
    "/test-wallet",
    response_model=OracleResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
def test_wallet(
    debug: Optional[str] = Query(None, description="'true' adds client-side debug steps"),
    settings: Settings = Depends(get_settings),
):
    try:
        address = get_oracle_public_key(settings)
    except OracleKeyError as e:
        logger.error({"msg": "oracle_lookup_failed", "error": str(e)})
        return _error(500, str(e))

    if debug == "true":
        return {
            "oracleAddress": address,
            "message": "Debug mode - check browser console for localStorage data",
            "instructions": DEBUG_INSTRUCTIONS,
        }
    return {
        "oracleAddress": address,
        "message": "This is the wallet address that will receive payments from sentinels",
        "tip": "Add ?debug=true to see localStorage debug info",
    }

@app.get("/debug/oracle", response_model=OracleDebugResponse, responses={500: {"model": ErrorResponse}})
def debug_oracle(settings: Settings = Depends(get_settings)):
    try:
        address = get_oracle_public_key(settings)
    except OracleKeyError as e:
        logger.error({"msg": "oracle_lookup_failed", "error": str(e)})
        return _error(500, str(e))
    return {
        "oracleAddress": address,
        "network": settings.solana_network,
        "feedMode": settings.feed_mode.value,
        "priceProvider": settings.price_provider,
    }


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
