"""Normalization of raw registry text"""

from .registry_text import extract_country, normalize_text, squash_cosmetic

__all__ = [
    "normalize_text",
    "squash_cosmetic",
    "extract_country",
]
