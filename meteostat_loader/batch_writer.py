"""
Batch writer for hourly observations

Groups observation rows into fixed-size transactional windows. Each
window is one store transaction with one prepared INSERT; the two are
always opened and closed together. A committed window is never touched
again, so a failure in window N+1 leaves windows 1..N in place.

States:
    OPEN    transaction active, statement prepared, 0 <= size < batch_size
    SEALED  size reached batch_size, commit in progress
    CLOSED  final window committed (or abandoned), nothing open
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exceptions import StoreError
from .models import ObservationRecord
from .store import INSERT_STATION_DATA, ClickHouseStore, PreparedInsert, Transaction

logger = logging.getLogger(__name__)


class BatchState(Enum):
    """Batch writer state."""
    OPEN = "open"
    SEALED = "sealed"
    CLOSED = "closed"


@dataclass
class _OpenBatch:
    """Window that is currently accepting rows."""
    transaction: Transaction
    statement: PreparedInsert
    size: int = 0


class BatchWriter:
    """Write observations in transactional windows of `batch_size` rows."""

    def __init__(self, store: ClickHouseStore, batch_size: int):
        """
        Initialize writer and open the first window

        Args:
            store: Store handle owned by the caller
            batch_size: Rows per committed window

        Raises:
            StoreError: If the first window cannot be opened
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        self.store = store
        self.batch_size = batch_size
        self.committed_batches = 0
        self.committed_rows = 0

        self._state = BatchState.CLOSED
        self._batch: Optional[_OpenBatch] = None
        self._open()

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def pending_rows(self) -> int:
        """Rows in the open window, not yet committed."""
        return self._batch.size if self._batch else 0

    def __enter__(self) -> "BatchWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._state is not BatchState.CLOSED:
            self.abort()
        return False

    def _open(self):
        transaction = self.store.begin()
        statement = transaction.prepare(INSERT_STATION_DATA)
        self._batch = _OpenBatch(transaction=transaction, statement=statement)
        self._state = BatchState.OPEN

    def _commit(self):
        batch = self._batch
        rows = batch.transaction.commit()
        batch.statement.close()
        self._batch = None

        self.committed_batches += 1
        self.committed_rows += rows
        logger.debug(f"Committed batch {self.committed_batches} ({rows} rows)")

    def _require_open(self):
        if self._state is not BatchState.OPEN:
            raise StoreError(f"Batch writer is {self._state.value}, expected open")

    def append(self, record: ObservationRecord):
        """
        Add one observation to the open window

        Commits and reopens when the window reaches batch_size.

        Raises:
            StoreError: On any store failure; the run must stop
        """
        self._require_open()

        self._batch.statement.execute(record.as_row())
        self._batch.size += 1

        if self._batch.size >= self.batch_size:
            self._state = BatchState.SEALED
            self._commit()
            self._open()

    def finish(self):
        """
        Commit the trailing window and close the writer

        An empty trailing window is closed without a commit.

        Raises:
            StoreError: On any store failure
        """
        self._require_open()

        if self._batch.size > 0:
            self._state = BatchState.SEALED
            self._commit()
        else:
            self._discard()

        self._state = BatchState.CLOSED
        logger.info(
            f"Batch writer finished: {self.committed_rows} rows "
            f"in {self.committed_batches} batches"
        )

    def abort(self):
        """Drop the open window without committing it."""
        if self._batch is not None:
            pending = self._batch.size
            self._discard()
            if pending:
                logger.warning(f"Discarded {pending} uncommitted rows")
        self._state = BatchState.CLOSED

    def _discard(self):
        batch, self._batch = self._batch, None
        if batch.transaction.active:
            batch.transaction.rollback()
        if not batch.statement.closed:
            batch.statement.close()
