"""
Test configuration and fixtures for the MAC registry test suite.

Provides small registry CSV payloads and a populated base directory laid
out the way the updater expects (data/macs.json, data/ieee/*.csv).
"""

import json
from pathlib import Path
from typing import Dict, List

import pytest

from mac_registry.config import Settings
from mac_registry.ingestion.history import RegistryState
from mac_registry.ingestion.ieee_downloader import RegistrySource


OUI_CSV = (
    b"Registry,Assignment,Organization Name,Organization Address\r\n"
    b"MA-L,000E02,Advantech AMT Inc.,657 Orly Ave.  Dorval Quebec CA H9P 1G1 \r\n"
    b'MA-L,001BC5,"Converging Systems, Inc.","32420 Nautilus Dr Rancho Palos Verdes CA US 90275 "\r\n'
    b"MA-L,FCFFAA,IEEE Registration Authority,445 Hoes Lane Piscataway NJ US 08554\r\n"
)

MAM_CSV = (
    b"Registry,Assignment,Organization Name,Organization Address\n"
    b"MA-M,8C1F64F,Caf\xe9 Devices,Rue du Port 2 Nantes FR 44000\n"
    b"MA-M,8C1F64F,Caf\xe9 Devices,Rue du Port 2 Nantes FR 44000\n"
    b"MA-M,70B3D5C,Acme Widgets,1 Main St\\nSpringfield IL US 62701\n"
)

OUI_SOURCE = RegistrySource("https://registry.example/oui/oui.csv", min_records=3)
MAM_SOURCE = RegistrySource("https://registry.example/oui28/mam.csv", min_records=3)

EXISTING_HISTORY: Dict[str, List[Dict[str, str]]] = {
    "000e02000000/24": [
        {
            "d": "2003-09-08",
            "t": "add",
            "s": "wireshark.org",
            "a": "657 Orly Ave.\nDorval Quebec H9P 1G1",
            "c": "CA",
            "o": "Advantech AMT Inc.",
        }
    ],
    "fcffaa000000/24": [
        {
            "d": "2015-02-01",
            "t": "add",
            "s": "ieee-oui.csv",
            "a": "445 Hoes Lane Piscataway NJ US 08554",
            "c": "US",
            "o": "IEEE Registration Authority",
        },
        {
            "d": "2018-06-01",
            "t": "change",
            "s": "ieee-oui.csv",
            "a": "445 Hoes Lane Piscataway NJ US 08554",
            "c": "US",
            "o": "IEEE REGISTRATION AUTHORITY - OLD",
        },
    ],
}


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no retry delay and a short overall deadline"""
    return Settings(
        max_retries=2,
        retry_delay_seconds=0,
        request_timeout_seconds=5,
        source_timeout_seconds=5,
        size_slack_bytes=512,
    )


@pytest.fixture
def registry_state() -> RegistryState:
    return RegistryState(today="2026-01-26", now="2026-01-26 00:00:00.000000 +0000 UTC")


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Base directory with an existing history and stored registry files"""
    data_dir = tmp_path / "data"
    ieee_dir = data_dir / "ieee"
    ieee_dir.mkdir(parents=True)

    (data_dir / "macs.json").write_text(json.dumps(EXISTING_HISTORY), encoding="utf-8")
    (ieee_dir / "oui.csv").write_bytes(OUI_CSV)
    (ieee_dir / "mam.csv").write_bytes(MAM_CSV)
    return tmp_path


@pytest.fixture
def test_sources() -> List[RegistrySource]:
    return [OUI_SOURCE, MAM_SOURCE]
