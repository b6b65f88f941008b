"""
Persisted registry state

Layout under <base_dir>/data:
  macs.json      prefix history (short-key JSON)
  mac-ages.csv   key,date,source rows in output order
  updated.txt    completion timestamp of the last run
  ieee/          registry files exactly as downloaded
"""

import csv
import io
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

import structlog

from mac_registry.ingestion.ages import AgeRecord
from mac_registry.ingestion.errors import StateLoadError
from mac_registry.ingestion.history import History, RegistryState
from mac_registry.ingestion.ieee_downloader import RegistryDownload, RegistrySource
from mac_registry.ingestion.prefixes import sort_prefix_keys
from mac_registry.schemas.registry import history_from_json, history_to_json

logger = structlog.get_logger(__name__)


def dump_history(history: History) -> bytes:
    """Compact JSON with prefix keys sorted"""
    document = history_to_json({key: history[key] for key in sorted(history)})
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def parse_history(content: bytes) -> History:
    """Decode macs.json content into a history mapping"""
    try:
        return history_from_json(json.loads(content))
    except ValueError as e:
        raise StateLoadError(f"Malformed history document: {e}") from e


def dump_ages(ages: Dict[str, AgeRecord]) -> bytes:
    """mac-ages.csv content in descending sort-key order"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for prefix_key in sort_prefix_keys(ages):
        record = ages[prefix_key]
        writer.writerow([prefix_key, record.date, record.source])
    return buffer.getvalue().encode("utf-8")


def parse_ages(content: bytes) -> Dict[str, AgeRecord]:
    """Decode mac-ages.csv content; short rows are skipped"""
    ages: Dict[str, AgeRecord] = {}
    try:
        reader = csv.reader(io.StringIO(content.decode("utf-8"), newline=""))
        for row in reader:
            if len(row) < 3:
                continue
            ages[row[0]] = AgeRecord(date=row[1], source=row[2])
    except (csv.Error, UnicodeDecodeError) as e:
        raise StateLoadError(f"Malformed ages file: {e}") from e
    return ages


def atomic_write_many(files: Iterable[Tuple[Path, bytes]]) -> None:
    """
    Write every payload to a temporary sibling first, then move them all
    into place. Nothing is replaced unless every temporary write succeeded.
    """
    staged: List[Tuple[str, Path]] = []
    try:
        for target, payload in files:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
            staged.append((tmp_name, target))
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
    except OSError:
        for tmp_name, _ in staged:
            Path(tmp_name).unlink(missing_ok=True)
        raise

    for index, (tmp_name, target) in enumerate(staged):
        try:
            os.replace(tmp_name, target)
        except OSError:
            for pending, _ in staged[index:]:
                Path(pending).unlink(missing_ok=True)
            raise


class StateStore:
    """Reads and writes the registry state files of one base directory"""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.data_dir = self.base_dir / "data"
        self.history_path = self.data_dir / "macs.json"
        self.ages_path = self.data_dir / "mac-ages.csv"
        self.updated_path = self.data_dir / "updated.txt"
        self.snapshot_dir = self.data_dir / "ieee"

    def load_history(self) -> History:
        try:
            content = self.history_path.read_bytes()
        except OSError as e:
            raise StateLoadError(f"Cannot read {self.history_path}: {e}") from e
        history = parse_history(content)
        logger.info("Loaded history", path=str(self.history_path), prefixes=len(history))
        return history

    def load_ages(self) -> Dict[str, AgeRecord]:
        """Previously written ages; an absent file yields no records"""
        if not self.ages_path.exists():
            return {}
        try:
            content = self.ages_path.read_bytes()
        except OSError as e:
            raise StateLoadError(f"Cannot read {self.ages_path}: {e}") from e
        ages = parse_ages(content)
        logger.info("Loaded ages", path=str(self.ages_path), prefixes=len(ages))
        return ages

    def snapshot_path(self, source: RegistrySource) -> Path:
        return self.snapshot_dir / source.filename

    def read_snapshot(self, source: RegistrySource) -> bytes:
        path = self.snapshot_path(source)
        try:
            return path.read_bytes()
        except OSError as e:
            raise StateLoadError(f"Cannot read registry snapshot {path}: {e}") from e

    def write_results(self, state: RegistryState, downloads: Iterable[RegistryDownload] = ()) -> None:
        """Persist history, ages, timestamp and raw registry snapshots"""
        files = [
            (self.history_path, dump_history(state.history)),
            (self.ages_path, dump_ages(state.ages)),
            (self.updated_path, state.now.encode("utf-8")),
        ]
        files.extend((self.snapshot_path(d.source), d.content) for d in downloads)

        atomic_write_many(files)
        logger.info(
            "Wrote results",
            history=str(self.history_path),
            prefixes=len(state.history),
            ages=len(state.ages),
            snapshots=len(files) - 3,
        )
