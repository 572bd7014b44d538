"""Test configuration and fixtures for the loader."""
import gzip
import json

import pytest
from clickhouse_driver.errors import ServerException

from meteostat_loader.config import LoaderConfig
from meteostat_loader.store import ClickHouseStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires running ClickHouse)"
    )


class FakeClickHouseClient:
    """In-memory stand-in for clickhouse_driver.Client.

    Records every INSERT block and answers station timezone lookups.
    `fail_on_insert` makes the n-th INSERT block (1-based) raise.
    """

    def __init__(self, timezones=None, fail_on_insert=None):
        self.timezones = dict(timezones or {})
        self.fail_on_insert = fail_on_insert
        self.queries = []
        self.inserts = []
        self.disconnected = False

    def execute(self, query, params=None):
        self.queries.append((query, params))
        if query.startswith("INSERT"):
            if self.fail_on_insert == len(self.inserts) + 1:
                raise ServerException("Simulated insert failure", code=999)
            self.inserts.append((query, list(params)))
            return len(params)
        if query.startswith("SELECT timezone"):
            timezone = self.timezones.get(params["station_id"])
            return [(timezone,)] if timezone else []
        return []

    def disconnect(self):
        self.disconnected = True

    def inserted_rows(self, table):
        return [
            row
            for query, rows in self.inserts
            if query == f"INSERT INTO {table} VALUES"
            for row in rows
        ]


@pytest.fixture
def loader_config(tmp_path):
    """Loader configuration pointing at a temporary data directory."""
    return LoaderConfig(data_dir=tmp_path / "data", batch_size=250, log_interval=100_000)


@pytest.fixture
def fake_client():
    """Fake ClickHouse client that knows station 10637 (Berlin)."""
    return FakeClickHouseClient(timezones={"10637": "Europe/Berlin"})


@pytest.fixture
def store(loader_config, fake_client):
    """Store backed by the fake client."""
    return ClickHouseStore(loader_config, client=fake_client)


@pytest.fixture
def write_csv_gz():
    """Write text lines to a gzip-compressed CSV archive."""
    def _write(path, lines):
        path.parent.mkdir(parents=True, exist_ok=True)
        with gzip.open(path, "wt", encoding="utf-8", newline="") as f:
            f.write("\n".join(lines))
        return path
    return _write


@pytest.fixture
def write_json_gz():
    """Write an object as a gzip-compressed JSON archive."""
    def _write(path, payload):
        path.parent.mkdir(parents=True, exist_ok=True)
        with gzip.open(path, "wt", encoding="utf-8") as f:
            json.dump(payload, f)
        return path
    return _write


@pytest.fixture
def sample_stations():
    """Two station elements as published in full.json.gz"""
    return [
        {
            "id": "10637",
            "name": {"en": "Frankfurt Airport", "de": "Frankfurt Flughafen"},
            "country": "DE",
            "region": "HE",
            "identifiers": {"national": "01420", "wmo": "10637", "icao": "EDDF"},
            "location": {"latitude": 50.05, "longitude": 8.6, "elevation": 111},
            "timezone": "Europe/Berlin",
        },
        {
            "id": "72502",
            "name": {"de": "Newark"},
            "country": "US",
            "location": {"latitude": 40.6833, "longitude": -74.1667, "elevation": 2},
            "timezone": "America/New_York",
        },
    ]
