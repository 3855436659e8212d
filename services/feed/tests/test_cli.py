import pytest

from services.feed.app import main_async
from services.feed.config import Settings


@pytest.mark.asyncio
async def test_cli_prints_sample_outcome(capsys):
    rc = await main_async(Settings(_env_file=None, feed_mode="sample"))
    out = capsys.readouterr().out
    assert rc == 0
    assert '"origin": "sample"' in out
    assert '"count": 2' in out

@pytest.mark.asyncio
async def test_cli_unknown_provider():
    rc = await main_async(Settings(_env_file=None, price_provider="kraken"))
    assert rc == 2

@pytest.mark.asyncio
async def test_cli_hard_failure_exit_code():
    # no CMC key: soft failure without touching the network, then no fallback either
    settings = Settings(_env_file=None, feed_mode="strict", price_provider="coinmarketcap", coinmarketcap_api_key="", fallback_base_price=0)
    rc = await main_async(settings)
    assert rc == 1

@pytest.mark.asyncio
async def test_cli_sample_mode_ignores_provider(capsys):
    rc = await main_async(Settings(_env_file=None, feed_mode="sample", price_provider="kraken"))
    assert rc == 0
    assert '"origin": "sample"' in capsys.readouterr().out
