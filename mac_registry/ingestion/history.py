"""
Prefix History Merger

Merges one observed registry record into the append-only history of its
prefix. The last entry of a history is the prefix's current record; a new
observation is appended only when its squashed org or address differs from
that last entry.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from mac_registry.ingestion.ages import AgeRecord
from mac_registry.ingestion.normalize import extract_country, normalize_text, squash_cosmetic
from mac_registry.schemas.registry import EntryType, RegistrationEntry

logger = structlog.get_logger(__name__)

History = Dict[str, List[RegistrationEntry]]


@dataclass
class RegistryState:
    """Mutable state of one update run"""
    history: History = field(default_factory=dict)
    ages: Dict[str, AgeRecord] = field(default_factory=dict)
    today: str = ""
    now: str = ""


def update_registration(
    history: History,
    prefix_key: str,
    date: str,
    org: str,
    address: str,
    source: str,
) -> Optional[RegistrationEntry]:
    """
    Merge an observation into the history of a prefix.
    
    Args:
        history: Prefix history mapping, mutated in place
        prefix_key: Canonical "prefix/mask" key
        date: Observation date (YYYY-MM-DD)
        org: Raw organization name
        address: Raw organization address
        source: Source tag of the registry file
        
    Returns:
        The appended entry, or None when the observation is only cosmetic
    """
    clean_org = normalize_text(org)
    clean_address = normalize_text(address)
    country = extract_country(clean_address)
    
    entries = history.get(prefix_key)
    if not entries:
        entry = RegistrationEntry(
            date=date,
            type=EntryType.ADD,
            source=source,
            address=clean_address,
            country=country,
            org=clean_org,
        )
        history[prefix_key] = [entry]
        return entry
    
    last = entries[-1]
    if (
        squash_cosmetic(org) == squash_cosmetic(last.org)
        and squash_cosmetic(address) == squash_cosmetic(last.address)
    ):
        return None
    
    entry = RegistrationEntry(
        date=date,
        type=EntryType.CHANGE,
        source=source,
        address=clean_address,
        country=country,
        org=clean_org,
    )
    entries.append(entry)
    logger.debug(
        "Registration changed",
        prefix=prefix_key,
        source=source,
        entries=len(entries),
    )
    return entry
