import pytest
from jsonschema import validate

from services.feed.util import load_payload_schema

def test_coinmarketcap_schema_valid_sample():
    schema = load_payload_schema("coinmarketcap")
    payload = {
        "data": {"SOL": [{"symbol": "SOL", "quotes": [{"timestamp": "2024-05-01T11:00:00.000Z", "quote": {"USD": {"close": 150.0}}}]}]},
        "status": {"error_code": 0, "error_message": None},
    }
    validate(instance=payload, schema=schema)

def test_coinmarketcap_schema_rejects_missing_quotes():
    schema = load_payload_schema("coinmarketcap")
    with pytest.raises(Exception):
        validate(instance={"data": {"SOL": [{"symbol": "SOL"}]}}, schema=schema)

def test_coingecko_schema_rejects_non_array_prices():
    schema = load_payload_schema("coingecko")
    validate(instance={"prices": [[1700000000000, 100.0]]}, schema=schema)
    with pytest.raises(Exception):
        validate(instance={"prices": "n/a"}, schema=schema)

def test_missing_schema_raises():
    with pytest.raises(FileNotFoundError):
        load_payload_schema("nope")
