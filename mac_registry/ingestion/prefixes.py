"""Canonical prefix keys for IEEE assignments and their output ordering"""

from typing import Iterable, List

KEY_WIDTH = 12


def build_prefix_key(raw_prefix: str) -> str:
    """
    Build the canonical "prefix/mask" key for a raw hex assignment.
    
    The mask comes from the unpadded length (two hex digits per byte),
    truncated toward zero for odd lengths.
    
    Examples:
        >>> build_prefix_key("000E02")
        '000e02000000/24'
        >>> build_prefix_key("70B3D5C3C")
        '70b3d5c3c000/36'
    """
    mask_bits = int((len(raw_prefix) / 2.0) * 8)
    padded = raw_prefix.ljust(KEY_WIDTH, "0").lower()
    return f"{padded}/{mask_bits}"


def sortable_prefix(prefix_key: str) -> str:
    """Sort key: two-digit mask followed by the prefix"""
    parts = prefix_key.split("/")
    if len(parts) != 2:
        return prefix_key
    prefix, mask = parts
    return mask.rjust(2, "0") + prefix


def sort_prefix_keys(prefix_keys: Iterable[str]) -> List[str]:
    """Order keys for mac-ages.csv (descending by sortable_prefix)"""
    return sorted(prefix_keys, key=sortable_prefix, reverse=True)
