"""Pydantic schemas for persisted registry data"""

from .registry import EntryType, RegistrationEntry, history_from_json, history_to_json

__all__ = [
    "EntryType", "RegistrationEntry",
    "history_from_json", "history_to_json",
]
