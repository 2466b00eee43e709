from __future__ import annotations

import codecs
import re
from typing import Optional, Tuple

from .log import get_logger

log = get_logger(__name__)

_CHARSET_RE = re.compile(r"charset\s*=\s*([\w-]+)", re.IGNORECASE)

# Longest BOMs first: the UTF-32 LE mark starts with the UTF-16 LE one.
_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (b"+/v", "utf-7"),
)


def canonical_name(encoding: str) -> str:
    """Return Python's canonical codec name; raises LookupError if unknown."""
    return codecs.lookup(encoding).name


def sniff_bom(data: bytes) -> Optional[str]:
    for bom, name in _BOMS:
        if data.startswith(bom):
            return name
    return None


def guess_wide_encoding(data: bytes) -> Optional[str]:
    # Without a BOM, lots of zero bytes means UTF-32/UTF-16 (little endian assumed).
    if not data:
        return None
    zeros = data.count(0)
    if zeros > len(data) * 0.5:
        return "utf-32-le"
    if zeros > len(data) * 0.2:
        return "utf-16-le"
    return None


def charset_from_header(header: str) -> Optional[str]:
    m = _CHARSET_RE.search(header)
    return m.group(1) if m else None


def detect_encoding(data: bytes, header_length: int = 512) -> str:
    """Pick the text encoding of a bookmarks document.

    A byte order mark always wins. Otherwise the first ``header_length``
    characters (0 means the whole document) are decoded with a best guess and
    searched for a ``charset=`` declaration. An unknown charset falls back to
    UTF-8.
    """
    bom = sniff_bom(data)
    if bom:
        return bom

    guess = guess_wide_encoding(data) or "utf-8"
    header_bytes = data
    if header_length > 0:
        header_bytes = data[: header_length * _max_char_width(guess)]
    header = header_bytes.decode(guess, errors="replace")

    charset = charset_from_header(header)
    if charset is None:
        return guess
    try:
        return canonical_name(charset)
    except LookupError:
        log.warning("Unknown charset %r in bookmarks header, falling back to UTF-8", charset)
        return "utf-8"


def decode_document(data: bytes, encoding: Optional[str] = None, *, header_length: int = 512) -> Tuple[str, str]:
    enc = encoding or detect_encoding(data, header_length=header_length)
    text = data.decode(enc, errors="replace")
    # Endian-specific codecs keep the byte order mark as U+FEFF.
    if text.startswith("\ufeff"):
        text = text[1:]
    return text, enc


def _max_char_width(encoding: str) -> int:
    name = canonical_name(encoding)
    if name.startswith("utf-32"):
        return 4
    if name.startswith("utf-16"):
        return 2
    return 4 if name.startswith("utf-8") else 1
