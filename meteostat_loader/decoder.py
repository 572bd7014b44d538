"""
Streaming decoders for Meteostat bulk archives

Both archive formats are gzip-compressed. The decoders are lazy
generators that pull one element (station) or one row (observation) at
a time from the decompressed stream, so memory use does not depend on
the archive size.
"""
import csv
import gzip
import logging
import zlib
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, NamedTuple, Tuple

import ijson

from .exceptions import DecodeError
from .models import OBSERVATION_COLUMN_COUNT, StationRecord

logger = logging.getLogger(__name__)

# Errors raised by gzip/zlib/csv while reading a corrupt archive
_STREAM_ERRORS = (gzip.BadGzipFile, EOFError, zlib.error, csv.Error, UnicodeDecodeError)


class RawObservationRow(NamedTuple):
    """One hourly CSV row, still as text."""
    line: int
    date: str
    hour: str
    values: Tuple[str, ...]


@contextmanager
def open_archive(path: Path, text: bool = True) -> Iterator[IO]:
    """
    Open a gzip archive for streaming reads

    Args:
        path: Local archive path
        text: Open as UTF-8 text (CSV) instead of bytes (JSON)

    Yields:
        File object over the decompressed content
    """
    if text:
        stream = gzip.open(path, "rt", encoding="utf-8", newline="")
    else:
        stream = gzip.open(path, "rb")
    try:
        yield stream
    finally:
        stream.close()


def iter_observation_rows(stream: IO[str]) -> Iterator[RawObservationRow]:
    """
    Decode the hourly CSV archive row by row

    Every non-blank row must have exactly 13 columns: date, hour and the
    eleven measurement columns.

    Args:
        stream: Text stream over the decompressed CSV

    Yields:
        RawObservationRow per data row

    Raises:
        DecodeError: On a corrupt stream or a row with the wrong width
    """
    reader = csv.reader(stream)
    try:
        for row in reader:
            if not row:
                continue
            if len(row) != OBSERVATION_COLUMN_COUNT:
                raise DecodeError(
                    f"Line {reader.line_num}: expected {OBSERVATION_COLUMN_COUNT} "
                    f"columns, got {len(row)}"
                )
            yield RawObservationRow(reader.line_num, row[0], row[1], tuple(row[2:]))
    except _STREAM_ERRORS as e:
        raise DecodeError(f"Corrupt observation archive near line {reader.line_num}: {e}") from e


def iter_stations(stream: IO[bytes]) -> Iterator[StationRecord]:
    """
    Decode the station metadata archive element by element

    The archive is one JSON array. It is walked with ijson parse events
    and each top-level element is built on its own.

    Args:
        stream: Binary stream over the decompressed JSON

    Yields:
        StationRecord per array element

    Raises:
        DecodeError: On a corrupt stream, a non-array document or an
            element without an id
    """
    try:
        for index, item in enumerate(_iter_array_elements(stream)):
            yield station_from_json(item, index)
    except (ijson.JSONError, *_STREAM_ERRORS) as e:
        raise DecodeError(f"Corrupt station archive: {e}") from e


def _iter_array_elements(stream: IO[bytes]) -> Iterator[object]:
    events = ijson.parse(stream, use_float=True)

    first = next(events, None)
    if first is None or first[1] != "start_array":
        raise DecodeError("Station archive is not a JSON array")

    builder = ijson.ObjectBuilder()
    for prefix, event, value in events:
        if prefix == "":
            # Only the closing bracket of the top-level array remains
            return
        builder.event(event, value)
        if prefix == "item" and event not in ("start_map", "start_array", "map_key"):
            yield builder.value
            builder = ijson.ObjectBuilder()

    raise DecodeError("Station archive ended before the closing bracket")


def station_from_json(item: object, index: int = 0) -> StationRecord:
    """
    Map one metadata element to a StationRecord

    Only `id` is required. A missing English name becomes an empty
    display name; other missing fields take empty/zero values.
    """
    if not isinstance(item, dict) or not item.get("id"):
        raise DecodeError(f"Station element {index} has no id")

    names = item.get("name")
    if not isinstance(names, dict):
        names = {}
    location = item.get("location")
    if not isinstance(location, dict):
        location = {}

    try:
        return StationRecord(
            id=str(item["id"]),
            display_name=names.get("en") or "",
            country=item.get("country") or "",
            latitude=float(location.get("latitude") or 0.0),
            longitude=float(location.get("longitude") or 0.0),
            timezone=item.get("timezone") or "",
            elevation=location.get("elevation"),
        )
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Station element {index} ({item['id']}): {e}") from e
