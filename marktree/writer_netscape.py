from __future__ import annotations

import base64
import codecs
import html
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .errors import require
from .log import get_logger
from .model import IGNORED_ATTRIBUTES, BookmarkFolder, BookmarkLink
from .timestamps import to_epoch_seconds

log = get_logger(__name__)

INDENT = "    "

HEADER_LINES = (
    "<!DOCTYPE NETSCAPE-Bookmark-file-1>",
    "<!--This is an automatically generated file.",
    "It will be read and overwritten.",
    "Do Not Edit! -->",
    '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset={charset}">',
    "<Title>Bookmarks</Title>",
    "<H1>Bookmarks</H1>",
)


def render_netscape(root: Optional[BookmarkFolder], *, charset: str = "utf-8") -> str:
    """Render a bookmark tree as a Netscape bookmark document.

    Key details:
    - Typed fields (dates, icon, feed, href) are written first in a fixed order,
      then every other entry of ``attributes`` with its name upper-cased.
    - Dates are whole seconds since the epoch.
    - Items that are neither links nor folders are skipped.
    """
    require(root, "root")
    lines: List[str] = [line.format(charset=charset) for line in HEADER_LINES]
    _write_folder(lines, root, depth=0)  # type: ignore[arg-type]
    return "\n".join(lines) + "\n"


def write_netscape(root: Optional[BookmarkFolder], *, encoding: str = "utf-8") -> bytes:
    charset = codecs.lookup(encoding).name
    text = render_netscape(root, charset=charset)
    # Characters the charset lacks become numeric references, which read back.
    return text.encode(charset, errors="xmlcharrefreplace")


def write_netscape_file(path: Union[str, Path], root: Optional[BookmarkFolder], *, encoding: str = "utf-8") -> None:
    out_path = Path(path)
    data = write_netscape(root, encoding=encoding)
    out_path.write_bytes(data)
    log.info("Wrote Netscape bookmarks HTML: %s", out_path)


def _write_folder(lines: List[str], folder: BookmarkFolder, depth: int) -> None:
    indent = INDENT * depth
    inner = INDENT * (depth + 1)
    lines.append(f"{indent}<DL><p>")
    for item in folder:
        if isinstance(item, BookmarkFolder):
            lines.append(f"{inner}<DT><H3{_attrs(_folder_attrs(item))}>{_esc(item.title)}</H3>")
            _write_folder(lines, item, depth + 1)
        elif isinstance(item, BookmarkLink):
            lines.append(f"{inner}<DT><A{_attrs(_link_attrs(item))}>{_esc(item.title)}</A>")
            if item.description:
                lines.append(f"{inner}<DD>{_esc(item.description)}")
        else:
            log.debug("Skipping item of unsupported type %s", type(item).__name__)
    lines.append(f"{indent}</DL><p>")


def _link_attrs(link: BookmarkLink) -> List[Tuple[str, str]]:
    attrs: List[Tuple[str, str]] = []
    _add_date(attrs, "LAST_MODIFIED", link.last_modified)
    _add_date(attrs, "LAST_VISIT", link.last_visit)
    _add_date(attrs, "ADD_DATE", link.added)
    if link.icon_url:
        attrs.append(("ICON_URI", link.icon_url))
    if link.icon_data is not None and link.icon_content_type:
        payload = base64.b64encode(link.icon_data).decode("ascii")
        attrs.append(("ICON", f"data:{link.icon_content_type};base64,{payload}"))
    skip = set()
    if link.feed_url:
        attrs.append(("FEED", "true"))
        attrs.append(("FEEDURL", link.feed_url))
        skip.add("feed")
    attrs.append(("HREF", link.url or ""))
    attrs.extend(_custom_attrs(link.attributes, skip))
    return attrs


def _folder_attrs(folder: BookmarkFolder) -> List[Tuple[str, str]]:
    attrs: List[Tuple[str, str]] = []
    _add_date(attrs, "LAST_MODIFIED", folder.last_modified)
    _add_date(attrs, "ADD_DATE", folder.added)
    attrs.extend(_custom_attrs(folder.attributes))
    return attrs


def _custom_attrs(attributes: Optional[Dict[str, str]], skip=()) -> List[Tuple[str, str]]:
    out: List[Tuple[str, str]] = []
    for key, value in (attributes or {}).items():
        lk = key.lower()
        if lk in IGNORED_ATTRIBUTES or lk in skip:
            continue
        out.append((key.upper(), "" if value is None else str(value)))
    return out


def _add_date(attrs: List[Tuple[str, str]], name: str, value: Optional[datetime]) -> None:
    if value is not None:
        attrs.append((name, str(to_epoch_seconds(value))))


def _attrs(attrs: List[Tuple[str, str]]) -> str:
    return "".join(f' {name}="{_esc_attr(value)}"' for name, value in attrs)


def _esc_attr(value: str) -> str:
    # '>' stays raw: inside quotes it is read back as is, while a decoded &gt; is dropped.
    return value.replace("&", "&amp;").replace("<", "&lt;").replace('"', "&quot;")


def _esc(text: Optional[str]) -> str:
    return html.escape(text or "", quote=True)
