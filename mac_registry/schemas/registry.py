"""Pydantic schemas for persisted registry history"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator


class EntryType(str, Enum):
    """Kind of registry event recorded in a prefix history"""
    ADD = "add"
    CHANGE = "change"


class RegistrationEntry(BaseModel):
    """
    A single registration or change event for one address prefix.
    
    Serialized with the short keys used by macs.json (d, t, s, a, c, o).
    Keys missing from older documents, and null values, load as empty
    strings. Only the entry type is required.
    """
    date: str = Field(default="", alias="d", description="Observation date (YYYY-MM-DD)")
    type: EntryType = Field(..., alias="t", description="add or change")
    source: str = Field(default="", alias="s", description="Registry file the entry came from")
    address: str = Field(default="", alias="a", description="Normalized organization address")
    country: str = Field(default="", alias="c", description="Two-letter country code or empty")
    org: str = Field(default="", alias="o", description="Normalized organization name")
    
    class Config:
        frozen = True
        populate_by_name = True
    
    @field_validator("date", "source", "address", "country", "org", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return "" if v is None else v
    
    def to_json_dict(self) -> Dict[str, str]:
        """Short-key dict in the persisted field order"""
        return {
            "d": self.date,
            "t": self.type.value,
            "s": self.source,
            "a": self.address,
            "c": self.country,
            "o": self.org,
        }


def history_from_json(raw: Dict[str, Any]) -> Dict[str, List[RegistrationEntry]]:
    """Validate a decoded macs.json document into a history mapping"""
    if not isinstance(raw, dict):
        raise ValueError(f"history document must be an object, got {type(raw).__name__}")
    
    history: Dict[str, List[RegistrationEntry]] = {}
    for prefix_key, entries in raw.items():
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise ValueError(f"history for {prefix_key} must be a list")
        history[prefix_key] = [RegistrationEntry.model_validate(entry) for entry in entries]
    return history


def history_to_json(history: Dict[str, List[RegistrationEntry]]) -> Dict[str, List[Dict[str, str]]]:
    """Convert a history mapping to plain JSON-ready structures"""
    return {
        prefix_key: [entry.to_json_dict() for entry in entries]
        for prefix_key, entries in history.items()
    }
