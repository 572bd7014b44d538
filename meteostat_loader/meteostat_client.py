"""Meteostat bulk data client for fetching archive files."""
import logging
from pathlib import Path

import requests

from .config import LoaderConfig
from .exceptions import DownloadError

logger = logging.getLogger(__name__)


class MeteostatClient:
    """Client for the Meteostat bulk data endpoints."""

    STATIONS_ARCHIVE = "full.json.gz"

    def __init__(self, config: LoaderConfig):
        """Initialize Meteostat client.

        Args:
            config: Loader configuration
        """
        self.config = config
        self.base_url = config.meteostat_base_url.rstrip("/")
        self.session = requests.Session()

    def stations_url(self) -> str:
        """Get URL of the full station metadata archive."""
        return f"{self.base_url}/stations/{self.STATIONS_ARCHIVE}"

    def hourly_url(self, station_id: str) -> str:
        """Get URL of a station's hourly observation archive."""
        return f"{self.base_url}/hourly/{station_id}.csv.gz"

    def download_file(self, url: str, output_path: Path) -> Path:
        """Download a remote archive to a local path.

        The body is streamed to a `.part` file next to the target and
        moved into place only after the transfer completed, so the target
        path exists only for complete downloads.

        Args:
            url: Remote archive URL
            output_path: Local path to save file

        Returns:
            Path to downloaded file

        Raises:
            DownloadError: On a non-200 status or a transport failure
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        part_path = output_path.with_name(output_path.name + ".part")

        logger.info(f"Downloading {url} to {output_path}")

        try:
            with self.session.get(url, timeout=self.config.request_timeout, stream=True) as response:
                if response.status_code != requests.codes.ok:
                    raise DownloadError(
                        url,
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

                with open(part_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        f.write(chunk)

        except requests.RequestException as e:
            part_path.unlink(missing_ok=True)
            logger.error(f"Failed to download {url}: {e}")
            raise DownloadError(url, str(e)) from e
        except DownloadError:
            part_path.unlink(missing_ok=True)
            raise

        part_path.replace(output_path)
        logger.info(f"Downloaded {url} ({output_path.stat().st_size} bytes)")
        return output_path

    def close(self):
        """Close the HTTP session."""
        self.session.close()
