"""IEEE registry downloader for OUI/CID/IAB/MAM/OUI-36 assignment files"""

import asyncio
import csv
import hashlib
import io
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

import httpx
import structlog

from mac_registry.config import Settings, settings as default_settings
from mac_registry.ingestion.errors import (
    RecordCountError,
    RegistryFetchError,
    RegistryParseError,
    SizeRegressionError,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegistrySource:
    """A published IEEE registry feed"""
    url: str
    min_records: int

    @property
    def filename(self) -> str:
        return posixpath.basename(urlparse(self.url).path)

    @property
    def source_tag(self) -> str:
        return "ieee-" + self.filename


# Processed in this order on every run
IEEE_SOURCES = [
    RegistrySource("https://standards-oui.ieee.org/oui/oui.csv", 38831),
    RegistrySource("https://standards-oui.ieee.org/cid/cid.csv", 210),
    RegistrySource("https://standards-oui.ieee.org/iab/iab.csv", 4575),
    RegistrySource("https://standards-oui.ieee.org/oui28/mam.csv", 6235),
    RegistrySource("https://standards-oui.ieee.org/oui36/oui36.csv", 6873),
]


@dataclass
class RegistryDownload:
    """A fetched registry file and its parsed rows"""
    source: RegistrySource
    content: bytes
    rows: List[List[str]]
    checksum: str

    @property
    def size_bytes(self) -> int:
        return len(self.content)


def parse_registry_csv(content: bytes) -> List[List[str]]:
    """
    Parse a registry CSV liberally.

    Bytes that are not valid UTF-8 are kept as surrogate escapes so the
    text normalizer can render them as "<xx>". Every field is stripped.
    """
    text = content.decode("utf-8", errors="surrogateescape")
    reader = csv.reader(io.StringIO(text, newline=""), skipinitialspace=True, strict=False)
    try:
        return [[value.strip() for value in row] for row in reader]
    except csv.Error as e:
        raise RegistryParseError(f"Malformed registry CSV at line {reader.line_num}: {e}") from e


def build_download(source: RegistrySource, content: bytes) -> RegistryDownload:
    """Parse registry content and enforce the source's minimum row count"""
    try:
        rows = parse_registry_csv(content)
    except RegistryParseError as e:
        raise RegistryParseError(f"{source.url}: {e}", url=source.url) from e

    if len(rows) < source.min_records:
        raise RecordCountError(source.url, len(rows), source.min_records)

    return RegistryDownload(
        source=source,
        content=content,
        rows=rows,
        checksum=hashlib.sha256(content).hexdigest(),
    )


class IEEEDownloader:
    """Downloads registry files from standards-oui.ieee.org"""

    def __init__(self, snapshot_dir: Path, config: Optional[Settings] = None):
        self.snapshot_dir = Path(snapshot_dir)
        self.config = config or default_settings

    async def fetch(self, source: RegistrySource) -> RegistryDownload:
        """
        Fetch and parse one registry.

        Args:
            source: Registry feed to download

        Returns:
            RegistryDownload with the raw payload and parsed rows

        Raises:
            RegistryFetchError: download failed, timed out, shrank or is short
        """
        try:
            content = await asyncio.wait_for(
                self._fetch_with_retries(source.url),
                timeout=self.config.source_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RegistryFetchError(
                f"Timed out after {self.config.source_timeout_seconds}s fetching {source.url}",
                url=source.url,
            ) from e

        self._check_size_regression(source, content)
        download = build_download(source, content)

        logger.info(
            "Registry downloaded",
            url=source.url,
            size_bytes=download.size_bytes,
            records=len(download.rows),
            checksum=download.checksum,
        )
        return download

    async def _fetch_with_retries(self, url: str) -> bytes:
        """GET a URL, retrying transient failures with a fixed delay"""
        attempts = self.config.max_retries + 1
        last_error = ""

        async with httpx.AsyncClient(
            timeout=self.config.request_timeout_seconds,
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        ) as client:
            for attempt in range(attempts):
                if attempt > 0:
                    await asyncio.sleep(self.config.retry_delay_seconds)

                try:
                    response = await client.get(url)
                except httpx.HTTPError as e:
                    last_error = f"{type(e).__name__}: {e}"
                    logger.warning(
                        "HTTP error fetching registry, retrying",
                        url=url,
                        error=last_error,
                        attempt=attempt + 1,
                    )
                    continue

                if response.status_code != 200:
                    last_error = f"HTTP {response.status_code} from {url}"
                    logger.warning(
                        "Unexpected status fetching registry, retrying",
                        url=url,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                    )
                    continue

                return response.content

        raise RegistryFetchError(
            f"Failed to fetch {url} after {attempts} attempts: {last_error}",
            url=url,
        )

    def _check_size_regression(self, source: RegistrySource, content: bytes) -> None:
        snapshot_path = self.snapshot_dir / source.filename
        if not snapshot_path.exists():
            return

        existing_bytes = snapshot_path.stat().st_size
        if len(content) < existing_bytes - self.config.size_slack_bytes:
            raise SizeRegressionError(source.url, len(content), existing_bytes)
