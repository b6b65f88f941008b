"""Earliest-seen date tracking per prefix"""

from dataclasses import dataclass
from typing import Dict, List

import structlog

from mac_registry.schemas.registry import RegistrationEntry

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AgeRecord:
    """Earliest known observation of a prefix"""
    date: str
    source: str


def parse_date(value: str) -> int:
    """
    Comparable integer for an ISO date ("2003-09-08" -> 20030908).
    
    Unparsable dates compare as 0, i.e. older than any real date.
    """
    try:
        return int(value.replace("-", ""), 10)
    except ValueError:
        logger.debug("Unparsable registry date", value=value)
        return 0


def update_age(ages: Dict[str, AgeRecord], prefix_key: str, date: str, source: str) -> bool:
    """
    Record an observation, keeping the earliest date for the prefix.
    
    Returns:
        True when the stored record was inserted or replaced
    """
    current = ages.get(prefix_key)
    if current is None:
        ages[prefix_key] = AgeRecord(date=date, source=source)
        return True
    
    if parse_date(date) < parse_date(current.date):
        ages[prefix_key] = AgeRecord(date=date, source=source)
        return True
    return False


def ages_from_history(history: Dict[str, List[RegistrationEntry]]) -> Dict[str, AgeRecord]:
    """Derive ages from the earliest entry of every prefix history"""
    ages: Dict[str, AgeRecord] = {}
    for prefix_key, entries in history.items():
        if not entries:
            continue
        earliest = entries[0]
        for entry in entries[1:]:
            if parse_date(entry.date) < parse_date(earliest.date):
                earliest = entry
        ages[prefix_key] = AgeRecord(date=earliest.date, source=earliest.source)
    return ages
