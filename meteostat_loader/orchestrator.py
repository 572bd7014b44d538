"""
Import orchestrator

Main entry point for the loader. Coordinates download, decoding,
field parsing, timestamp reconstruction and batched inserts for one
command invocation:

    setup                    create destination tables
    import stations          load station metadata
    import data <station>    load one station's hourly observations
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .batch_writer import BatchWriter
from .config import LoaderConfig, get_config
from .decoder import RawObservationRow, iter_observation_rows, iter_stations, open_archive
from .exceptions import LoaderError
from .fields import parse_float32, parse_int16
from .meteostat_client import MeteostatClient
from .models import MEASUREMENT_COLUMNS, ImportProgress, ObservationRecord
from .store import ClickHouseStore
from .timestamps import load_timezone, reconstruct_timestamp

logger = logging.getLogger(__name__)


def build_observation(station_id: str, row: RawObservationRow, tz) -> ObservationRecord:
    """Turn a decoded CSV row into a typed observation."""
    measurements = {
        name: parse_int16(token) if is_int else parse_float32(token)
        for (name, is_int), token in zip(MEASUREMENT_COLUMNS, row.values)
    }
    return ObservationRecord(
        station=station_id,
        measured_at=reconstruct_timestamp(row.date, row.hour, tz),
        **measurements,
    )


class ImportOrchestrator:
    """Orchestrates imports from the Meteostat bulk archives into ClickHouse"""

    def __init__(
        self,
        config: LoaderConfig,
        store: ClickHouseStore,
        client: MeteostatClient,
    ):
        """
        Initialize orchestrator

        Args:
            config: Loader configuration
            store: Open store handle; its lifecycle belongs to the caller
            client: Download client
        """
        self.config = config
        self.store = store
        self.client = client
        self.data_dir = Path(config.data_dir)

    def setup(self):
        """Create the destination tables"""
        self.store.create_schema()

    def ensure_local_file(self, url: str, path: Path) -> Path:
        """
        Download a remote archive unless a local copy exists

        An existing file is used as-is, without any freshness check.
        """
        if path.exists():
            logger.info(f"Using cached archive {path}")
            return path
        return self.client.download_file(url, path)

    def import_stations(self) -> int:
        """
        Download and import the full station metadata archive

        The archive is always fetched again.

        Returns:
            Number of stations inserted
        """
        path = self.data_dir / MeteostatClient.STATIONS_ARCHIVE
        self.client.download_file(self.client.stations_url(), path)

        count = 0
        with open_archive(path, text=False) as stream:
            for station in iter_stations(stream):
                self.store.insert_station(station)
                count += 1

        logger.info(f"Imported {count} stations")
        return count

    def import_station_data(self, station_id: str) -> int:
        """
        Import one station's hourly observations

        Steps:
        1. Make sure the archive is cached locally
        2. Look up the station timezone
        3. Stream rows through parsers and the batch writer
        4. Commit the trailing batch

        Args:
            station_id: Meteostat station identifier

        Returns:
            Number of observations imported

        Raises:
            LoaderError: On any fatal condition; batches committed before
                the failure stay committed
        """
        station_id = station_id.strip()
        logger.info(f"Importing data for station {station_id}...")

        path = self.data_dir / f"{station_id}.csv.gz"
        self.ensure_local_file(self.client.hourly_url(station_id), path)

        tz = load_timezone(self.store.get_station_timezone(station_id))

        progress = ImportProgress(log_interval=self.config.log_interval)

        with open_archive(path) as stream, BatchWriter(self.store, self.config.batch_size) as writer:
            for row in iter_observation_rows(stream):
                writer.append(build_observation(station_id, row, tz))
                if progress.advance():
                    logger.info(f"Inserted {progress.count} records...")
            writer.finish()

        logger.info(
            f"Station {station_id} done: {progress.count} records "
            f"in {writer.committed_batches} batches"
        )
        return progress.count


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meteostat-loader",
        description="Meteostat bulk data import tool",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("setup", help="Create database tables")

    import_parser = commands.add_parser("import", aliases=["i"], help="Import tools")
    targets = import_parser.add_subparsers(dest="target", required=True)
    targets.add_parser("stations", help="Import station details")
    data_parser = targets.add_parser("data", help="Import hourly data for one station")
    data_parser.add_argument("station", help="Meteostat station ID (e.g. 10637)")

    return parser


def run(args: argparse.Namespace, config: LoaderConfig) -> None:
    """Run one parsed command with a store opened for its duration."""
    store = ClickHouseStore(config)
    client = MeteostatClient(config)
    try:
        orchestrator = ImportOrchestrator(config, store, client)
        if args.command == "setup":
            orchestrator.setup()
        elif args.target == "stations":
            orchestrator.import_stations()
        else:
            orchestrator.import_station_data(args.station)
    finally:
        client.close()
        store.close()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI"""
    args = build_arg_parser().parse_args(argv)
    config = get_config()

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        run(args, config)
    except LoaderError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
