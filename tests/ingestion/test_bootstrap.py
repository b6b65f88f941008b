"""
Tests for the history bootstrap tools (journal conversion and backfill).
"""

import json

import pytest

from mac_registry.ingestion.ages import AgeRecord
from mac_registry.ingestion.bootstrap import (
    BACKFILL_SOURCE,
    backfill_history,
    journal_to_history,
    load_ieee_assignments,
)
from mac_registry.ingestion.errors import BootstrapError
from mac_registry.schemas.registry import EntryType, RegistrationEntry

from conftest import OUI_CSV


def _write_journal(directory, name, records):
    path = directory / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"recs": records}), encoding="utf-8")


@pytest.fixture
def journal_dir(tmp_path):
    directory = tmp_path / "journal"
    _write_journal(directory, "00/000E02.json", [
        {
            "OUI": "000E02",
            "OUISize": 24,
            "EventDate": "2003-09-08",
            "EventType": "add",
            "OrgAddress": "657 Orly Ave.\\nDorval Quebec H9P 1G1",
            "OrgCountry": "CA",
            "OrgName": "Advantech AMT Inc.",
        },
        {
            "OUI": "000E02",
            "OUISize": 24,
            "EventDate": "2012-04-01",
            "EventType": "change",
            "OrgAddress": "1 New Rd\\nDorval Quebec CA",
            "OrgCountry": None,
            "OrgName": "Advantech",
        },
    ])
    _write_journal(directory, "70/70B3D5C3C.json", [
        {
            "OUI": "70B3D5C3C",
            "OUISize": "36",
            "EventDate": "2017-01-01",
            "EventType": "add",
            "OrgAddress": "Somewhere US",
            "OrgCountry": "US",
            "OrgName": "Tiny Block Co",
        },
    ])
    (directory / "empty.json").write_text(json.dumps({"recs": []}), encoding="utf-8")
    return directory


def test_journal_to_history(journal_dir):
    history = journal_to_history(journal_dir)

    assert sorted(history) == ["000e02000000/24", "70b3d5c3c000/36"]
    entries = history["000e02000000/24"]
    assert [e.type for e in entries] == [EntryType.ADD, EntryType.CHANGE]
    assert entries[0].address == "657 Orly Ave.\nDorval Quebec H9P 1G1"
    assert entries[0].source == ""
    assert entries[1].country == ""


def test_journal_to_history_rejects_unknown_event(tmp_path):
    _write_journal(tmp_path, "bad.json", [
        {"OUI": "ABCDEF", "OUISize": 24, "EventDate": "2010-01-01", "EventType": "delete"},
    ])

    with pytest.raises(BootstrapError):
        journal_to_history(tmp_path)


def test_load_ieee_assignments(tmp_path):
    (tmp_path / "oui.csv").write_bytes(OUI_CSV)

    assignments = load_ieee_assignments(tmp_path, ["oui.csv"])

    assert sorted(assignments) == ["000e02000000/24", "001bc5000000/24", "fcffaa000000/24"]
    assert assignments["001bc5000000/24"]["org"] == "Converging Systems, Inc."


def test_load_ieee_assignments_last_row_wins_within_file(tmp_path):
    (tmp_path / "oui.csv").write_bytes(
        OUI_CSV + b"MA-L,000E02,Advantech Renamed,1 New Rd Dorval Quebec CA\r\n"
    )

    assignments = load_ieee_assignments(tmp_path, ["oui.csv"])

    assert len(assignments) == 3
    assert assignments["000e02000000/24"] == {
        "org": "Advantech Renamed",
        "address": "1 New Rd Dorval Quebec CA",
    }


def test_load_ieee_assignments_rejects_duplicates_across_files(tmp_path):
    (tmp_path / "oui.csv").write_bytes(OUI_CSV)
    (tmp_path / "copy.csv").write_bytes(OUI_CSV)

    with pytest.raises(BootstrapError):
        load_ieee_assignments(tmp_path, ["oui.csv", "copy.csv"])


def test_backfill_history():
    history = {
        "000e02000000/24": [
            RegistrationEntry(date="2003-09-08", type=EntryType.ADD, address="old", org="Advantech"),
            RegistrationEntry(date="2012-04-01", type=EntryType.CHANGE, address="older", org="Advantech"),
        ],
    }
    ages = {
        "000e02000000/24": AgeRecord("2001-01-01", "wireshark.org"),
        "001bc5000000/24": AgeRecord("2008-03-03", "ieee-oui.csv"),
    }
    assignments = {
        "000e02000000/24": {"org": "Advantech", "address": "1 New Rd\\nDorval Quebec CA"},
        "001bc5000000/24": {"org": "Converging Systems, Inc.", "address": "32420 Nautilus Dr\\nRancho Palos Verdes CA US 90275"},
        "fcffaa000000/24": {"org": "No Age Inc", "address": "Nowhere"},
    }

    result = backfill_history(history, ages, assignments)

    first = result["000e02000000/24"][0]
    assert (first.date, first.source) == ("2001-01-01", "wireshark.org")
    assert result["000e02000000/24"][-1].address == "1 New Rd\nDorval Quebec CA"
    assert len(result["000e02000000/24"]) == 2

    added = result["001bc5000000/24"]
    assert len(added) == 1
    assert added[0].type == EntryType.ADD
    assert added[0].date == "2008-03-03"
    assert added[0].source == BACKFILL_SOURCE
    assert added[0].country == "US"

    assert "fcffaa000000/24" not in result
    # Input history is left untouched
    assert history["000e02000000/24"][0].date == "2003-09-08"
