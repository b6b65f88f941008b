"""
Registry Update Run

Loads the persisted history, merges the five IEEE registries into it one
after another and persists the result once every registry succeeded.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import structlog

from mac_registry.config import Settings, settings as default_settings
from mac_registry.ingestion.ages import ages_from_history, update_age
from mac_registry.ingestion.history import RegistryState, update_registration
from mac_registry.ingestion.ieee_downloader import (
    IEEE_SOURCES,
    IEEEDownloader,
    RegistryDownload,
    RegistrySource,
    build_download,
)
from mac_registry.ingestion.prefixes import build_prefix_key
from mac_registry.ingestion.state_store import StateStore

logger = structlog.get_logger(__name__)

HEADER_MARKER = "Registry"


@dataclass
class RowStats:
    """Outcome counts for one registry file"""
    added: int = 0
    changed: int = 0
    unchanged: int = 0
    duplicates: int = 0
    skipped: int = 0


def process_registry_rows(state: RegistryState, rows: Sequence[Sequence[str]], source_tag: str) -> RowStats:
    """
    Merge the rows of one registry file into the run state.

    Rows with fewer than four fields and header rows are skipped. A prefix
    seen twice in the same file is only merged the first time.
    """
    stats = RowStats()
    seen = set()

    for row in rows:
        if len(row) < 4 or row[0] == HEADER_MARKER:
            stats.skipped += 1
            logger.debug("Skipping registry row", source=source_tag, fields=len(row))
            continue

        prefix_key = build_prefix_key(row[1])
        if prefix_key in seen:
            stats.duplicates += 1
            logger.debug("Skipping duplicate registration", prefix=prefix_key, source=source_tag)
            continue

        # Registry addresses encode line breaks as a literal backslash-n
        address = row[3].replace("\\n", "\n").replace("\r", "")

        is_new = prefix_key not in state.history or not state.history[prefix_key]
        entry = update_registration(state.history, prefix_key, state.today, row[2], address, source_tag)
        update_age(state.ages, prefix_key, state.today, source_tag)
        seen.add(prefix_key)

        if entry is None:
            stats.unchanged += 1
        elif is_new:
            stats.added += 1
        else:
            stats.changed += 1

    return stats


def completion_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S.%f +0000 UTC")


class RegistryUpdater:
    """Runs one update of the registry history in a base directory"""

    def __init__(
        self,
        base_dir: Path,
        config: Optional[Settings] = None,
        today: Optional[str] = None,
        offline: bool = False,
        sources: Sequence[RegistrySource] = IEEE_SOURCES,
    ):
        self.config = config or default_settings
        self.store = StateStore(Path(base_dir))
        self.downloader = IEEEDownloader(self.store.snapshot_dir, self.config)
        self.today = today or date.today().isoformat()
        self.offline = offline
        self.sources = list(sources)

    def load_state(self) -> RegistryState:
        """Load the history and seed ages from it and from mac-ages.csv"""
        history = self.store.load_history()
        ages = ages_from_history(history)
        for prefix_key, record in self.store.load_ages().items():
            update_age(ages, prefix_key, record.date, record.source)
        return RegistryState(history=history, ages=ages, today=self.today)

    async def obtain(self, source: RegistrySource) -> RegistryDownload:
        if self.offline:
            return build_download(source, self.store.read_snapshot(source))
        return await self.downloader.fetch(source)

    async def run(self) -> Dict[str, Any]:
        """
        Execute the update.

        Returns:
            Summary with prefix counts and per-source row stats

        Raises:
            RegistryError: any load, fetch or parse failure; nothing is written
        """
        logger.info(
            "Starting update",
            today=self.today,
            base_dir=str(self.store.base_dir),
            offline=self.offline,
        )

        state = self.load_state()
        old_count = len(state.history)
        downloads: List[RegistryDownload] = []
        source_stats: Dict[str, Dict[str, int]] = {}

        for source in self.sources:
            download = await self.obtain(source)
            stats = process_registry_rows(state, download.rows, source.source_tag)
            source_stats[source.source_tag] = asdict(stats)
            logger.info("Merged registry", source=source.source_tag, **asdict(stats))

            if not self.offline:
                downloads.append(download)

        state.now = completion_timestamp()
        new_count = len(state.history)

        logger.info("Writing results", entries=new_count, old_count=old_count, new_count=new_count)
        self.store.write_results(state, downloads)

        return {
            "today": self.today,
            "old_count": old_count,
            "new_count": new_count,
            "ages": len(state.ages),
            "sources": source_stats,
            "updated": state.now,
        }
