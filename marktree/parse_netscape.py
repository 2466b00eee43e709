from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from .errors import FormatError, require
from .log import get_logger
from .model import BookmarkFolder, BookmarkItem, BookmarkLink
from .text_encoding import decode_document, detect_encoding
from .timestamps import from_epoch_value
from .tokenizer import Tokenizer

log = get_logger(__name__)

_DOCUMENT_RE = re.compile(r"<DL\s*>.+?</DL\s*>", re.IGNORECASE | re.DOTALL)
_ICON_SPLIT_RE = re.compile(r"[,:;]")


def is_netscape_document(text: str) -> bool:
    return _DOCUMENT_RE.search(text) is not None


def parse_netscape(
    data: Union[bytes, bytearray, str],
    *,
    encoding: Optional[str] = None,
    auto_detect_encoding: bool = True,
    header_length: int = 512,
) -> BookmarkFolder:
    """Parse a Netscape bookmark document into a tree rooted at an untitled folder.

    Bytes are decoded with ``encoding`` when given, otherwise with the detected
    encoding (or UTF-8 when detection is off). Raises FormatError when the
    document has no <DL>...</DL> block.
    """
    require(data, "data")
    if isinstance(data, str):
        text = data
    else:
        raw = bytes(data)
        if encoding is None and auto_detect_encoding:
            encoding = detect_encoding(raw, header_length=header_length)
        text, encoding = decode_document(raw, encoding or "utf-8")
        log.debug("Decoded bookmarks document as %s", encoding)

    if not is_netscape_document(text):
        raise FormatError("not a recognized Netscape bookmark document (no <DL>...</DL> block found)")

    tokens = Tokenizer(text.encode("utf-8"))
    return _parse_root(tokens)


def read_netscape_file(path: Union[str, Path], **kwargs) -> BookmarkFolder:
    p = Path(path)
    root = parse_netscape(p.read_bytes(), **kwargs)
    log.info("Read %d items from %s", sum(1 for _ in root.all_items()), p)
    return root


def _parse_root(tokens: Tokenizer) -> BookmarkFolder:
    root = BookmarkFolder()
    seen_top = False
    while True:
        chunk = tokens.next_chunk()
        if chunk is None:
            return root
        if not (chunk.is_open_tag and chunk.tag == "dl"):
            continue
        if not seen_top:
            _parse_folder(tokens, root)
            seen_top = True
        else:
            log.debug("Extra top-level <DL> at byte %d kept as an untitled folder", chunk.position)
            extra = BookmarkFolder()
            _parse_folder(tokens, extra)
            root.add(extra)


def _parse_folder(tokens: Tokenizer, folder: BookmarkFolder) -> None:
    # A folder header (<H3>) waits here for the <DL> that holds its children.
    pending: Optional[BookmarkFolder] = None
    while True:
        chunk = tokens.next_chunk()
        if chunk is None:
            break

        if chunk.is_open_tag and chunk.tag in ("dt", "a", "h3"):
            if chunk.tag != "dt":
                # Item markup without its <DT>; read it anyway.
                tokens.step_back(chunk)
            if pending is not None:
                folder.add(pending)
                pending = None
            item = _parse_item(tokens)
            if isinstance(item, BookmarkFolder):
                pending = item
            elif item is not None:
                folder.add(item)
        elif chunk.is_open_tag and chunk.tag == "dl":
            sub = pending if pending is not None else BookmarkFolder()
            pending = None
            _parse_folder(tokens, sub)
            folder.add(sub)
        elif chunk.is_close_tag and chunk.tag == "dl":
            break

    if pending is not None:
        log.debug("Folder %r has no <DL>; kept empty", pending.title)
        folder.add(pending)


def _parse_item(tokens: Tokenizer) -> Optional[BookmarkItem]:
    link: Optional[BookmarkLink] = None
    while True:
        chunk = tokens.next_chunk()
        if chunk is None:
            return link

        # The next <DT> or any <DL> tag belongs to the enclosing folder.
        if chunk.tag == "dl" or (chunk.is_open_tag and chunk.tag == "dt"):
            tokens.step_back(chunk)
            return link

        if not chunk.is_open_tag:
            continue
        if chunk.tag == "a":
            if link is not None:
                tokens.step_back(chunk)
                return link
            link = BookmarkLink()
            _assign_link_attributes(link, chunk.params)
            link.title = _text_or_step_back(tokens)
        elif chunk.tag == "dd" and link is not None:
            link.description = _parse_description(tokens)
        elif chunk.tag == "h3":
            if link is not None:
                tokens.step_back(chunk)
                return link
            folder = BookmarkFolder()
            _assign_folder_attributes(folder, chunk.params)
            folder.title = _text_or_step_back(tokens)
            return folder


def _text_or_step_back(tokens: Tokenizer) -> Optional[str]:
    chunk = tokens.next_chunk()
    if chunk is not None and chunk.is_text:
        return chunk.text
    tokens.step_back(chunk)
    return None


def _parse_description(tokens: Tokenizer) -> Optional[str]:
    chunk = tokens.next_chunk()
    if chunk is None:
        return None
    if not chunk.is_text:
        tokens.step_back(chunk)
        return None
    return chunk.text.strip() or None


def _assign_link_attributes(link: BookmarkLink, params: Iterable[Tuple[str, str]]) -> None:
    for key, value in params:
        if key in link.attributes:
            continue
        link.attributes[key] = value
        if key == "href":
            link.url = value
        elif key == "add_date":
            link.added = from_epoch_value(value)
        elif key == "last_modified":
            link.last_modified = from_epoch_value(value)
        elif key in ("last_visit", "last_visited"):
            link.last_visit = from_epoch_value(value)
        elif key == "icon":
            link.icon_data, link.icon_content_type = decode_embedded_icon(value)
        elif key == "icon_uri":
            link.icon_url = value
        elif key == "feedurl":
            link.feed_url = value


def _assign_folder_attributes(folder: BookmarkFolder, params: Iterable[Tuple[str, str]]) -> None:
    for key, value in params:
        if key in folder.attributes:
            continue
        folder.attributes[key] = value
        if key == "add_date":
            folder.added = from_epoch_value(value)
        elif key == "last_modified":
            folder.last_modified = from_epoch_value(value)


def decode_embedded_icon(value: Optional[str]) -> Tuple[Optional[bytes], Optional[str]]:
    """Decode a ``data:<mime>;base64,<payload>`` icon.

    Returns (data, content_type), or (None, None) for anything else.
    """
    if not value:
        return None, None
    parts = _ICON_SPLIT_RE.split(value)
    if len(parts) != 4 or parts[2].lower() != "base64":
        return None, None
    try:
        data = base64.b64decode(parts[3], validate=True)
    except (binascii.Error, ValueError):
        log.debug("Ignoring undecodable embedded icon (%d chars)", len(value))
        return None, None
    return data, parts[1]
