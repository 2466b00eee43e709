"""Byte-level tokenizer for the Netscape bookmark dialect of HTML.

Only what bookmark exports need is understood: text, open/close tags with
attributes, and comments. There is no tree building and no error reporting;
malformed markup is returned as the best chunk that can be made of it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from html.entities import name2codepoint
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import require

_SPACE = 0x20
_TAB = 0x09
_LF = 0x0A
_CR = 0x0D
_AMP = ord("&")
_HASH = ord("#")
_SEMI = ord(";")
_LT = ord("<")
_GT = ord(">")
_SLASH = ord("/")
_QUOTES = (ord('"'), ord("'"))
_WHITESPACE = frozenset((_SPACE, _TAB, _LF, _CR))
_WHITESPACE_CHARS = frozenset(" \t\n\r")
_DEC_DIGITS = frozenset(b"0123456789")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")
_HEX_MARKERS = (ord("x"), ord("X"))
_COMMENT_OPENER = b"!--"


def _build_entities() -> Dict[bytes, str]:
    table = {name.encode("ascii"): chr(cp) for name, cp in name2codepoint.items()}
    # Bookmark titles use &nbsp; as a word separator; keep it a plain space.
    table[b"nbsp"] = " "
    return table


ENTITIES: Dict[bytes, str] = _build_entities()
_MIN_ENTITY_LEN = min(len(k) for k in ENTITIES)
_MAX_ENTITY_LEN = max(len(k) for k in ENTITIES)


class ChunkKind(enum.Enum):
    TEXT = "text"
    OPEN_TAG = "open"
    CLOSE_TAG = "close"
    COMMENT = "comment"


@dataclass(frozen=True)
class Chunk:
    kind: ChunkKind
    # Byte offset where the chunk starts; step_back() rewinds to it.
    position: int
    tag: str = ""
    text: str = ""
    params: Tuple[Tuple[str, str], ...] = ()
    self_closing: bool = False

    @property
    def is_text(self) -> bool:
        return self.kind is ChunkKind.TEXT

    @property
    def is_open_tag(self) -> bool:
        return self.kind is ChunkKind.OPEN_TAG

    @property
    def is_close_tag(self) -> bool:
        return self.kind is ChunkKind.CLOSE_TAG

    @property
    def is_comment(self) -> bool:
        return self.kind is ChunkKind.COMMENT

    @property
    def attributes(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for name, value in self.params:
            out.setdefault(name, value)
        return out


class Tokenizer:
    """Splits a UTF-8 byte buffer into chunks, one at a time.

    Every call to next_chunk() returns a new immutable Chunk, so chunks stay
    valid after further calls. One instance holds one cursor and must not be
    shared between threads.
    """

    def __init__(self, data: bytes):
        self._data = bytes(require(data, "data"))
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def __iter__(self) -> Iterator[Chunk]:
        while True:
            chunk = self.next_chunk()
            if chunk is None:
                return
            yield chunk

    def peek_next(self) -> Optional[Chunk]:
        saved = self._pos
        try:
            return self.next_chunk()
        finally:
            self._pos = saved

    def step_back(self, chunk: Optional[Chunk]) -> None:
        if chunk is None:
            return
        self._pos = chunk.position

    def next_chunk(self) -> Optional[Chunk]:
        data = self._data
        n = len(data)
        start = self._pos
        buf = bytearray()
        # Set by raw whitespace and by entities that decode to whitespace alike.
        saw_space = False

        while True:
            while self._pos < n and data[self._pos] in _WHITESPACE:
                self._pos += 1
                saw_space = True
            if self._pos >= n:
                break

            c = data[self._pos]
            self._pos += 1

            if c == _LT:
                if buf or saw_space:
                    # Whitespace before a tag still separates words.
                    if saw_space:
                        buf.append(_SPACE)
                    self._pos -= 1
                    return Chunk(ChunkKind.TEXT, start, text=_decode(buf))
                return self._parse_tag(start)

            if c == _AMP:
                decoded = self._check_entity()
                if decoded is not None:
                    if decoded in _WHITESPACE_CHARS:
                        saw_space = True
                        continue
                    if saw_space:
                        buf.append(_SPACE)
                        saw_space = False
                    buf += decoded.encode("utf-8")
                    continue
            if saw_space:
                buf.append(_SPACE)
                saw_space = False
            buf.append(c)

        if not buf:
            return None
        return Chunk(ChunkKind.TEXT, start, text=_decode(buf))

    def _parse_tag(self, start: int) -> Chunk:
        data = self._data
        n = len(data)
        token = bytearray()
        name: Optional[str] = None
        params: List[Tuple[str, str]] = []
        closing = False
        self_closing = False
        quote = 0

        def flush() -> None:
            nonlocal name
            if not token:
                return
            if name is None:
                name = _decode(token).lower()
            else:
                param = _split_param(_decode(token))
                if param is not None:
                    params.append(param)
            token.clear()

        def finish() -> Chunk:
            flush()
            kind = ChunkKind.CLOSE_TAG if closing else ChunkKind.OPEN_TAG
            return Chunk(kind, start, tag=name or "", params=tuple(params), self_closing=self_closing)

        while self._pos < n:
            c = data[self._pos]
            self._pos += 1

            if quote:
                if c == quote:
                    quote = 0
                elif c == _AMP:
                    decoded = self._check_entity()
                    if decoded is None:
                        token.append(c)
                    elif decoded != ">":
                        # A decoded '>' cannot end a quoted value and is dropped.
                        token += decoded.encode("utf-8")
                elif c != _CR:
                    token.append(c)
                continue

            if c in _WHITESPACE:
                flush()
                continue

            if c == _AMP:
                decoded = self._check_entity()
                if decoded is None:
                    token.append(c)
                    continue
                if decoded == ">":
                    return finish()
                if decoded != "/":
                    token += decoded.encode("utf-8")
                    continue
                c = _SLASH

            if c == _GT:
                return finish()
            if c in _QUOTES:
                quote = c
                continue
            if c == _SLASH:
                if name is None and not token:
                    closing = True
                    continue
                if self._pos < n and data[self._pos] == _GT:
                    self_closing = True
                    continue

            token.append(c)
            if name is None and token == _COMMENT_OPENER:
                return self._parse_comment(start)

        # Ran out of data inside the tag: keep what we have.
        return finish()

    def _parse_comment(self, start: int) -> Chunk:
        data = self._data
        n = len(data)
        body_start = self._pos
        while self._pos < n:
            c = data[self._pos]
            self._pos += 1
            # The "--" may overlap the opener, so "<!-->" is a complete comment.
            if c == _GT and data[self._pos - 3:self._pos - 1] == b"--":
                body = data[body_start:max(body_start, self._pos - 3)]
                return Chunk(ChunkKind.COMMENT, start, tag="!--", text=_decode(body))
        return Chunk(ChunkKind.COMMENT, start, tag="!--", text=_decode(data[body_start:]))

    def _check_entity(self) -> Optional[str]:
        """Try to read an entity right after an '&'.

        On success the cursor moves past the entity and its character is
        returned. On failure the cursor is left untouched so the '&' and what
        follows it are kept literally.
        """
        data = self._data
        n = len(data)
        i = self._pos
        if i < n and data[i] == _HASH:
            i += 1
            is_hex = i < n and data[i] in _HEX_MARKERS
            if is_hex:
                i += 1
            allowed = _HEX_DIGITS if is_hex else _DEC_DIGITS
            digits_start = i
            while i < n and data[i] in allowed and i - digits_start < _MAX_ENTITY_LEN:
                i += 1
            if i == digits_start:
                return None
            terminated = i < n and data[i] == _SEMI
            if not terminated and (is_hex or (i < n and data[i] in allowed)):
                return None
            ch = _code_point(int(data[digits_start:i], 16 if is_hex else 10))
            if ch is None:
                return None
            self._pos = i + 1 if terminated else i
            return ch

        end = data.find(b";", i, min(n, i + _MAX_ENTITY_LEN + 1))
        if end < 0 or not (_MIN_ENTITY_LEN <= end - i <= _MAX_ENTITY_LEN):
            return None
        ch = ENTITIES.get(data[i:end])
        if ch is None:
            return None
        self._pos = end + 1
        return ch


def tokenize(data: bytes) -> List[Chunk]:
    return list(Tokenizer(data))


def _split_param(token: str) -> Optional[Tuple[str, str]]:
    if token.startswith("="):
        # "=name" is a valueless attribute; a bare "=" is nothing at all.
        name = token.lstrip("=").split("=", 1)[0]
        return (name.lower(), "") if name else None
    idx = token.find("=")
    if idx < 0:
        return token.lower(), ""
    return token[:idx].lower(), token[idx + 1:]


def _code_point(value: int) -> Optional[str]:
    if value <= 0 or value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        return None
    return chr(value)


def _decode(buf) -> str:
    return bytes(buf).decode("utf-8", errors="replace")
