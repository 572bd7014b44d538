"""Record types passed between the decoder, the parsers and the store."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


# Measurement columns of the hourly archive, in file order (columns 2-12).
# The flag says whether the column is an integer column.
MEASUREMENT_COLUMNS: Tuple[Tuple[str, bool], ...] = (
    ("temp", False),
    ("dwpt", False),
    ("rhum", True),
    ("prcp", False),
    ("snow", True),
    ("wdir", True),
    ("wspd", False),
    ("wpgt", False),
    ("pres", False),
    ("tsun", True),
    ("coco", True),
)

OBSERVATION_COLUMN_COUNT = 2 + len(MEASUREMENT_COLUMNS)


@dataclass(frozen=True)
class StationRecord:
    """Weather station from the metadata archive."""
    id: str
    display_name: str
    country: str
    latitude: float
    longitude: float
    timezone: str
    elevation: Optional[int] = None

    def as_row(self) -> tuple:
        """Row in `stations` column order."""
        return (
            self.id,
            self.display_name,
            self.country,
            self.latitude,
            self.longitude,
            self.timezone,
        )


@dataclass(frozen=True)
class ObservationRecord:
    """One hourly observation for one station."""
    station: str
    measured_at: datetime
    temp: Optional[float] = None
    dwpt: Optional[float] = None
    rhum: Optional[int] = None
    prcp: Optional[float] = None
    snow: Optional[int] = None
    wdir: Optional[int] = None
    wspd: Optional[float] = None
    wpgt: Optional[float] = None
    pres: Optional[float] = None
    tsun: Optional[int] = None
    coco: Optional[int] = None

    def measurements(self) -> dict:
        return {name: getattr(self, name) for name, _ in MEASUREMENT_COLUMNS}

    def as_row(self) -> tuple:
        """Row in `station_data` column order."""
        return (
            self.station,
            self.measured_at,
            *(getattr(self, name) for name, _ in MEASUREMENT_COLUMNS),
        )


@dataclass
class ImportProgress:
    """Count of processed records for operator-facing status lines."""
    log_interval: int
    count: int = field(default=0)

    def advance(self) -> bool:
        """Count one record; True when a status line is due."""
        self.count += 1
        return self.count % self.log_interval == 0
