"""
HTTP client for the NHTSA FARS download site.

**Conceptual**: NHTSA publishes each FARS year as a zip archive of CSV tables
(<base_url>/<year>/National/FARS<year>NationalCSV.zip). This package only
needs the accident table, stored locally as accident_<year>.csv.bz2 so the
loaders can find it. The client downloads an archive, pulls out the member
ending in accident.csv, and writes it bz2-compressed into the data directory.

**Responsibilities**:
  - Construct archive URLs from a year
  - Make HTTP requests with timeout
  - Handle HTTP errors (404, 5xx, timeout, connection failures)
  - Extract the accident table and store it under the canonical filename

**NOT responsible for**:
  - Parsing the CSV (that's fars.data.io's job)
"""

import bz2
import io
import logging
import zipfile
from pathlib import Path
from typing import Any, Optional

import requests

from fars import __version__
from fars.config.settings import DownloadSettings
from fars.data.io import coerce_int, make_filename


logger = logging.getLogger(__name__)

ACCIDENT_MEMBER_SUFFIX = "accident.csv"


class FarsClientError(Exception):
    """
    Base exception for FARS download errors.

    Callers can catch FarsClientError to handle all download failures, or a
    subclass for finer handling.
    """
    pass


class FarsYearNotFoundError(FarsClientError):
    """
    Raised when NHTSA has no archive for the requested year (404).

    **Recovery**: Check the year; the newest FARS year is usually published
    about two years after the fact.
    """
    pass


class FarsServerError(FarsClientError):
    """
    Raised when the download site returns a 5xx error.

    **Recovery**: Retry later.
    """
    pass


class NhtsaFarsClient:
    """
    Thin HTTP client for yearly FARS archives.

    **Example usage**:
        >>> from fars.config.settings import get_settings
        >>> with NhtsaFarsClient(get_settings().download) as client:
        ...     path = client.download_accident_file(2015, "data/")
        >>> print(path)  # data/accident_2015.csv.bz2
    """

    def __init__(self, settings: DownloadSettings):
        """
        Initialize the client with download settings.

        Args:
            settings: Download configuration (base_url, timeout_seconds).
        """
        self.settings = settings
        self.session = requests.Session()
        self.session.headers.update({
            "Accept": "application/zip, application/octet-stream",
            "User-Agent": f"fars/{__version__}",
        })

    def archive_url(self, year: Any) -> str:
        """
        URL of the national CSV archive for a year.

        Raises:
            ValueError: If `year` can't be coerced to an integer.
        """
        coerced = coerce_int(year)
        if coerced is None:
            raise ValueError(f"Year must be coercible to an integer, got: {year!r}")
        return f"{self.settings.base_url}/{coerced}/National/FARS{coerced}NationalCSV.zip"

    def fetch_archive(self, year: Any) -> bytes:
        """
        Download the national CSV archive for a year.

        **Error handling**:
          - FarsYearNotFoundError: 404 (no archive for that year)
          - FarsServerError: 5xx
          - requests.Timeout: request took longer than the configured timeout
          - FarsClientError: other HTTP or connection errors

        Args:
            year: Year to download.

        Returns:
            Raw zip archive bytes.
        """
        url = self.archive_url(year)

        try:
            response = self.session.get(url, timeout=self.settings.timeout_seconds)

            if response.status_code == 404:
                raise FarsYearNotFoundError(
                    f"No FARS archive for year {year} at {url}"
                )

            if response.status_code >= 500:
                raise FarsServerError(
                    f"FARS download server error (status {response.status_code}) for {url}"
                )

            if 400 <= response.status_code < 500:
                raise FarsClientError(
                    f"Client error (status {response.status_code}) for {url}"
                )

            response.raise_for_status()
            return response.content

        except requests.Timeout as e:
            raise requests.Timeout(
                f"Request to {url} timed out after {self.settings.timeout_seconds}s. "
                f"Check network connection or increase FARS_DOWNLOAD_TIMEOUT_SECONDS."
            ) from e

        except requests.ConnectionError as e:
            raise FarsClientError(
                f"Failed to connect to {self.settings.base_url}. "
                f"Check network connection and base URL."
            ) from e

        except requests.RequestException as e:
            raise FarsClientError(f"HTTP request failed: {e}") from e

    def download_accident_file(
        self,
        year: Any,
        output_dir: str | Path,
        force: bool = False,
    ) -> Path:
        """
        Download a year's accident table to <output_dir>/accident_<year>.csv.bz2.

        Args:
            year: Year to download.
            output_dir: Directory to write into (created if missing).
            force: Overwrite an existing file. If False, an existing file is
                   left alone and its path returned.

        Returns:
            Path of the accident file.

        Raises:
            FarsClientError: For download failures or an archive without an
                            accident table.
        """
        output_dir = Path(output_dir)
        output_path = output_dir / make_filename(year)

        if output_path.exists() and not force:
            logger.info("Keeping existing %s", output_path)
            return output_path

        archive = self.fetch_archive(year)
        payload = extract_accident_table(archive)

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(bz2.compress(payload))
        logger.info(
            "Wrote %s (%d bytes uncompressed)", output_path, len(payload),
            extra={"year": coerce_int(year)},
        )
        return output_path

    def close(self):
        """Close the HTTP session and release resources."""
        self.session.close()

    def __enter__(self):
        """Enable context manager support (with statement)."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up session when exiting context manager."""
        self.close()
        return False


def extract_accident_table(archive: bytes, member_suffix: Optional[str] = None) -> bytes:
    """
    Return the raw bytes of the accident table inside a FARS zip archive.

    The member is matched case-insensitively by suffix ("accident.csv"), so
    both ACCIDENT.CSV and FARS2015NationalCSV/accident.csv are found.

    Raises:
        FarsClientError: If the bytes aren't a zip archive or no member matches.
    """
    suffix = (member_suffix or ACCIDENT_MEMBER_SUFFIX).lower()

    try:
        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            matches = [name for name in zf.namelist() if name.lower().endswith(suffix)]
            if not matches:
                raise FarsClientError(
                    f"No member ending in '{suffix}' in archive. "
                    f"Members: {zf.namelist()[:10]}"
                )
            return zf.read(matches[0])
    except zipfile.BadZipFile as e:
        raise FarsClientError(f"Downloaded file is not a zip archive: {e}") from e
