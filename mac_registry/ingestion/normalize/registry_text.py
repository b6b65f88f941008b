"""
Registry Text Normalization

Cleans organization names and addresses taken from IEEE registry CSV files
before they are stored in, or compared against, the prefix history.

IEEE files regularly carry bytes that are not valid UTF-8, stray carriage
returns, NUL bytes and padded whitespace. The normalized form keeps the
information (invalid bytes are kept as "<xx>" escapes) while making repeated
downloads of the same record produce the same text.

Key Features:
  - Byte-by-byte escaping of invalid UTF-8 ("<ff>"), never coalesced
  - CR -> LF, NUL -> "<00>", a single pass collapsing "\\n\\n" to "\\n"
  - Cosmetic squash (normalize + lowercase) for change detection
  - Country code heuristic for free-text addresses
"""

import re
from typing import Union


# Undecodable bytes survive str decoding as lone surrogates U+DC80..U+DCFF
SURROGATE_ESCAPE_MIN = 0xDC80
SURROGATE_ESCAPE_MAX = 0xDCFF

WHITESPACE_RE = re.compile(r"[\t\n\f\r ]+")
COUNTRY_RE = re.compile(r"\b([A-Z]{2})\b", re.ASCII)


def _escape_byte(value: int) -> str:
    return f"<{value:02x}>"


def normalize_text(raw: Union[bytes, str]) -> str:
    """
    Normalize a raw registry field.

    Args:
        raw: Field content as bytes, or as str decoded with
            errors="surrogateescape" (undecodable bytes kept as surrogates)

    Returns:
        Cleaned text with invalid bytes escaped as "<xx>"

    Examples:
        >>> normalize_text(b"Test\\xffstring")
        'Test<ff>string'
        >>> normalize_text(b"\\xc0\\xc1\\xf5")
        '<c0><c1><f5>'
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="surrogateescape")

    parts = []
    for char in raw:
        code = ord(char)
        if SURROGATE_ESCAPE_MIN <= code <= SURROGATE_ESCAPE_MAX:
            parts.append(_escape_byte(code - 0xDC00))
        elif char == "\r":
            parts.append("\n")
        elif char == "\x00":
            parts.append("<00>")
        elif 0xD800 <= code <= 0xDFFF:
            # Other lone surrogates cannot be encoded as UTF-8 either
            parts.append("".join(_escape_byte(b) for b in char.encode("utf-8", errors="surrogatepass")))
        else:
            parts.append(char)

    # One pass only: runs of three or more newlines keep a pair
    return "".join(parts).replace("\n\n", "\n").strip()


def squash_cosmetic(raw: Union[bytes, str]) -> str:
    """Comparison form used to ignore case and whitespace-only changes"""
    return normalize_text(raw).lower().strip()


def extract_country(address: str) -> str:
    """
    Guess the two-letter country code of a registry address.

    Tokens are split on ASCII whitespace only and scanned from the end; the
    first token containing a bare two-letter uppercase word decides. The
    token is returned only if it is exactly that word, otherwise the address
    has no country.

    Examples:
        >>> extract_country("657 Orly Ave. Dorval Quebec CA H9P 1G1")
        'CA'
        >>> extract_country("No country code here")
        ''
    """
    if not address:
        return ""

    candidate = ""
    for token in reversed(WHITESPACE_RE.split(address)):
        if COUNTRY_RE.search(token):
            candidate = token
            break

    if len(candidate) != 2:
        return ""
    return candidate
