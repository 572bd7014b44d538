"""
ClickHouse store for station metadata and hourly observations

Wraps a clickhouse_driver Client as an explicit connection handle.
Inserts go through Transaction / PreparedInsert: rows executed on a
prepared insert are held by the statement and sent as one native INSERT
block when the transaction commits. A transaction that is rolled back
or abandoned sends nothing.
"""
import logging
import socket
from typing import List, Optional

from clickhouse_driver import Client
from clickhouse_driver.errors import Error as ClickHouseError

from .config import LoaderConfig
from .exceptions import StationNotFoundError, StoreError
from .models import StationRecord

logger = logging.getLogger(__name__)

# Driver and network failures surfaced as StoreError
_DRIVER_ERRORS = (ClickHouseError, socket.error, EOFError)


CREATE_STATIONS = """
    CREATE TABLE IF NOT EXISTS stations (
        id           String,
        display_name String,
        country      String,
        latitude     Float32,
        longitude    Float32,
        timezone     String
    ) ENGINE = MergeTree ORDER BY id PRIMARY KEY (id)
"""

CREATE_STATION_DATA = """
    CREATE TABLE IF NOT EXISTS station_data (
        station     String,
        measured_at DateTime64,
        temp        Nullable(Float32),
        dwpt        Nullable(Float32),
        rhum        Nullable(Int16),
        prcp        Nullable(Float32),
        snow        Nullable(Int16),
        wdir        Nullable(Int16),
        wspd        Nullable(Float32),
        wpgt        Nullable(Float32),
        pres        Nullable(Float32),
        tsun        Nullable(Int16),
        coco        Nullable(Int16)
    ) ENGINE = MergeTree ORDER BY measured_at PARTITION BY station
"""

INSERT_STATION = "INSERT INTO stations VALUES"
INSERT_STATION_DATA = "INSERT INTO station_data VALUES"
SELECT_STATION_TIMEZONE = "SELECT timezone FROM stations WHERE id = %(station_id)s LIMIT 1"


class PreparedInsert:
    """Insert statement bound to one transaction.

    Executed rows form the native INSERT block that clickhouse_driver
    sends on commit, so at most one batch of rows is held here.
    """

    def __init__(self, transaction: "Transaction", query: str):
        self.transaction = transaction
        self.query = query
        self.rows: List[tuple] = []
        self.closed = False

    def execute(self, row: tuple):
        """Add one row to the statement."""
        if self.closed:
            raise StoreError(f"Statement is closed: {self.query}")
        self.transaction._check_active()
        self.rows.append(row)

    def close(self):
        """Close the statement. Unsent rows are dropped."""
        if self.closed:
            raise StoreError(f"Statement already closed: {self.query}")
        self.rows = []
        self.closed = True


class Transaction:
    """Unit of insert work committed as one block per statement."""

    def __init__(self, client: Client):
        self.client = client
        self.statements: List[PreparedInsert] = []
        self.active = True

    def _check_active(self):
        if not self.active:
            raise StoreError("Transaction is already finished")

    def prepare(self, query: str) -> PreparedInsert:
        """Prepare an INSERT statement inside this transaction."""
        self._check_active()
        statement = PreparedInsert(self, query)
        self.statements.append(statement)
        return statement

    def commit(self) -> int:
        """
        Send every statement's rows to ClickHouse

        Returns:
            Number of rows committed

        Raises:
            StoreError: If the transaction is finished or ClickHouse fails
        """
        self._check_active()
        self.active = False

        committed = 0
        for statement in self.statements:
            if statement.closed or not statement.rows:
                continue
            try:
                self.client.execute(statement.query, statement.rows)
            except _DRIVER_ERRORS as e:
                raise StoreError(f"Commit of {len(statement.rows)} rows failed: {e}") from e
            committed += len(statement.rows)
            statement.rows = []

        return committed

    def rollback(self):
        """Discard all rows not yet sent."""
        self._check_active()
        self.active = False
        for statement in self.statements:
            statement.rows = []


class ClickHouseStore:
    """ClickHouse connection handle for the loader."""

    def __init__(self, config: LoaderConfig, client: Optional[Client] = None):
        """
        Initialize store

        Args:
            config: Loader configuration
            client: Pre-built driver client (tests)
        """
        self.config = config
        self.client = client or Client(
            host=config.clickhouse_host,
            port=config.clickhouse_port,
            database=config.clickhouse_db,
            user=config.clickhouse_username or "default",
            password=config.clickhouse_password,
        )
        logger.debug(
            f"ClickHouse store configured: {config.clickhouse_addr}/{config.clickhouse_db}"
        )

    def _execute(self, query: str, params=None):
        try:
            return self.client.execute(query, params)
        except _DRIVER_ERRORS as e:
            raise StoreError(f"Query failed: {e}") from e

    def create_schema(self):
        """Create the stations and station_data tables if missing."""
        self._execute(CREATE_STATIONS)
        self._execute(CREATE_STATION_DATA)
        logger.info("Schema ready: stations, station_data")

    def insert_station(self, record: StationRecord):
        """Insert one station row."""
        self._execute(INSERT_STATION, [record.as_row()])

    def get_station_timezone(self, station_id: str) -> str:
        """
        Look up a station's IANA timezone

        Raises:
            StationNotFoundError: If the station is not in `stations`
        """
        rows = self._execute(SELECT_STATION_TIMEZONE, {"station_id": station_id})
        if not rows:
            raise StationNotFoundError(station_id)
        return rows[0][0]

    def begin(self) -> Transaction:
        """Begin an insert transaction."""
        return Transaction(self.client)

    def close(self):
        """Disconnect from ClickHouse."""
        self.client.disconnect()
