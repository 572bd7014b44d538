"""Exception hierarchy for the import pipeline.

Every fatal condition in the pipeline is raised as a subclass of
LoaderError and propagated to the command line entry point, which
reports it and exits non-zero. Nothing below the entry point retries.
"""
from typing import Optional


class LoaderError(Exception):
    """Base class for all fatal loader errors."""


class DownloadError(LoaderError):
    """Remote archive could not be fetched.

    Raised for any non-200 response and for transport failures.
    """

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"Download of {url} failed: {message}")
        self.url = url
        self.status_code = status_code


class DecodeError(LoaderError):
    """Archive is structurally malformed (gzip, JSON or CSV level)."""


class StationNotFoundError(LoaderError):
    """Station is missing from the stations table."""

    def __init__(self, station_id: str):
        super().__init__(f"Station not found: {station_id}")
        self.station_id = station_id


class TimestampError(LoaderError):
    """Date/hour pair or timezone name could not be interpreted."""


class StoreError(LoaderError):
    """ClickHouse rejected a statement or the connection failed."""
