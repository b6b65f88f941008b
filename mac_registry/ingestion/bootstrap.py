"""
History Bootstrap Tools

One-off conversions used to seed macs.json before regular updates:

  journal_to_history   directory of journal documents -> history mapping
  backfill_history     journal history + mac-ages.csv + IEEE snapshots
                       -> history covering every currently assigned prefix
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import structlog

from mac_registry.ingestion.ages import AgeRecord, parse_date
from mac_registry.ingestion.errors import BootstrapError
from mac_registry.ingestion.history import History
from mac_registry.ingestion.ieee_downloader import IEEE_SOURCES, parse_registry_csv
from mac_registry.ingestion.normalize import extract_country, normalize_text
from mac_registry.ingestion.prefixes import KEY_WIDTH, build_prefix_key
from mac_registry.schemas.registry import EntryType, RegistrationEntry

logger = structlog.get_logger(__name__)

BACKFILL_SOURCE = "ieee"


def _unescape_newlines(value: Optional[str]) -> str:
    return (value or "").replace("\\n", "\n")


def _journal_entry(record: Dict) -> RegistrationEntry:
    event_type = str(record.get("EventType") or "").lower()
    try:
        entry_type = EntryType(event_type)
    except ValueError as e:
        raise BootstrapError(f"Unknown journal event type {record.get('EventType')!r}") from e

    return RegistrationEntry(
        date=record.get("EventDate") or "",
        type=entry_type,
        address=_unescape_newlines(record.get("OrgAddress")),
        country=record.get("OrgCountry") or "",
        org=record.get("OrgName") or "",
    )


def journal_to_history(snapshot_dir: Path) -> History:
    """
    Consolidate journal documents into a history mapping.

    Every file under snapshot_dir is a JSON document whose "recs" list
    holds the events of one prefix (OUI, OUISize, EventDate, EventType,
    OrgAddress, OrgCountry, OrgName). The prefix key comes from the first
    record. Documents without records are ignored.
    """
    history: History = {}

    for path in sorted(p for p in Path(snapshot_dir).rglob("*") if p.is_file()):
        try:
            document = json.loads(path.read_bytes())
        except ValueError as e:
            raise BootstrapError(f"Malformed journal document {path}: {e}") from e

        if not isinstance(document, dict) or not document.get("recs"):
            continue

        records = document["recs"]
        first = records[0]
        prefix = str(first.get("OUI") or "").lower().ljust(KEY_WIDTH, "0")
        mask = int(first.get("OUISize") or 0)

        history[f"{prefix}/{mask}"] = [_journal_entry(record) for record in records]

    logger.info("Converted journal", snapshot_dir=str(snapshot_dir), prefixes=len(history))
    return history


def load_ieee_assignments(snapshot_dir: Path, filenames: Iterable[str]) -> Dict[str, Dict[str, str]]:
    """
    Current org/address per prefix from stored IEEE registry files.

    Within one file a repeated prefix keeps its last row.

    Raises:
        BootstrapError: the same prefix appears in more than one file
    """
    assignments: Dict[str, Dict[str, str]] = {}

    for filename in filenames:
        path = Path(snapshot_dir) / filename
        file_assignments: Dict[str, Dict[str, str]] = {}
        for row in parse_registry_csv(path.read_bytes()):
            if len(row) < 2 or row[0].startswith("Registry"):
                continue

            file_assignments[build_prefix_key(row[1])] = {
                "org": row[2] if len(row) > 2 else "",
                "address": row[3] if len(row) > 3 else "",
            }

        for prefix_key, assignment in file_assignments.items():
            if prefix_key in assignments:
                raise BootstrapError(f"Duplicate IEEE assignment {prefix_key} in {filename}")
            assignments[prefix_key] = assignment

    return assignments


def backfill_history(
    history: History,
    ages: Dict[str, AgeRecord],
    assignments: Dict[str, Dict[str, str]],
) -> History:
    """
    Reconcile a journal history with recorded ages and current assignments.

    - The first entry of a prefix takes the mac-ages date and source when
      that date is earlier.
    - Assigned prefixes missing from the journal get an "add" entry dated
      with their recorded age.
    - The last entry's address is refreshed from the current assignment.
    """
    result: History = {key: list(entries) for key, entries in history.items()}

    for prefix_key, entries in result.items():
        age = ages.get(prefix_key)
        if not entries or age is None:
            continue
        first = entries[0]
        if parse_date(age.date) < parse_date(first.date):
            entries[0] = first.model_copy(update={"date": age.date, "source": age.source})

    missing_ages = 0
    for prefix_key, assignment in assignments.items():
        address = normalize_text(_unescape_newlines(assignment["address"]))

        if not result.get(prefix_key):
            age = ages.get(prefix_key)
            if age is None:
                missing_ages += 1
                logger.warning("No recorded age for assignment, skipping", prefix=prefix_key)
                continue
            result[prefix_key] = [
                RegistrationEntry(
                    date=age.date,
                    type=EntryType.ADD,
                    source=BACKFILL_SOURCE,
                    address=address,
                    country=extract_country(address),
                    org=normalize_text(assignment["org"]),
                )
            ]

        entries = result[prefix_key]
        entries[-1] = entries[-1].model_copy(update={"address": address})

    logger.info(
        "Backfilled history",
        prefixes=len(result),
        journal_prefixes=len(history),
        assignments=len(assignments),
        missing_ages=missing_ages,
    )
    return result


def default_registry_filenames() -> List[str]:
    return [source.filename for source in IEEE_SOURCES]
