"""Chrome bookmarks reader.

Two JSON shapes are accepted:
- the profile ``Bookmarks`` file (an object with a ``roots`` key), and
- the ``chrome.bookmarks`` API tree (a JSON array of BookmarkTreeNode).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import FormatError, require
from .log import get_logger
from .model import BookmarkFolder, BookmarkItem, BookmarkLink
from .timestamps import from_epoch_value, from_webkit_timestamp

log = get_logger(__name__)

BOOKMARKS_BAR_TITLE = "bookmarks bar"


class ChromeBookmarkNode(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    url: Optional[str] = None

    # chrome.bookmarks API fields
    parent_id: Optional[str] = Field(None, alias="parentId")
    index: Optional[int] = None
    title: Optional[str] = None
    date_added_ms: Optional[float] = Field(None, alias="dateAdded")
    date_group_modified_ms: Optional[float] = Field(None, alias="dateGroupModified")

    # Profile file fields; dates are WebKit microseconds stored as strings.
    type: Optional[str] = None
    name: Optional[str] = None
    date_added: Optional[int] = None
    date_modified: Optional[int] = None

    children: Optional[List["ChromeBookmarkNode"]] = None

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def display_title(self) -> Optional[str]:
        return self.title if self.title is not None else self.name


ChromeBookmarkNode.model_rebuild()


def parse_chrome(text: Optional[Union[str, bytes]]) -> BookmarkFolder:
    require(text, "text")
    try:
        doc = json.loads(text)  # type: ignore[arg-type]
    except json.JSONDecodeError as e:
        raise FormatError(f"not a Chrome bookmarks document: {e}") from e

    try:
        if isinstance(doc, dict) and "roots" in doc:
            nodes = _profile_roots(doc["roots"])
        elif isinstance(doc, list):
            nodes = [ChromeBookmarkNode.model_validate(n) for n in doc]
        else:
            raise FormatError("not a Chrome bookmarks document: expected a 'roots' object or a node array")
    except ValidationError as e:
        raise FormatError(f"invalid Chrome bookmark node: {e}") from e

    root = BookmarkFolder()
    root.extend(_to_item(n) for n in nodes)
    return root


def read_chrome_file(path: Union[str, Path]) -> BookmarkFolder:
    p = Path(path)
    root = parse_chrome(p.read_text(encoding="utf-8-sig", errors="replace"))
    log.info("Read %d items from %s", sum(1 for _ in root.all_items()), p)
    return root


def _profile_roots(roots: Any) -> List[ChromeBookmarkNode]:
    if not isinstance(roots, dict):
        raise FormatError("Chrome bookmarks file has a non-object 'roots' entry")
    out: List[ChromeBookmarkNode] = []
    for key, value in roots.items():
        # e.g. sync_transaction_version
        if not isinstance(value, dict):
            log.debug("Skipping non-folder root entry %r", key)
            continue
        out.append(ChromeBookmarkNode.model_validate(value))
    return out


def _to_item(node: ChromeBookmarkNode) -> BookmarkItem:
    added = _node_date(node.date_added_ms, node.date_added)
    modified = _node_date(node.date_group_modified_ms, node.date_modified)

    if node.url and node.children is None:
        link = BookmarkLink(url=node.url, title=node.display_title, added=added, last_modified=modified)
        _add_attributes(link.attributes, node)
        return link

    folder = BookmarkFolder(title=node.display_title, added=added, last_modified=modified)
    _add_attributes(folder.attributes, node)
    folder.extend(_to_item(child) for child in _ordered(node.children or ()))
    return folder


def _ordered(children: Iterable[ChromeBookmarkNode]) -> List[ChromeBookmarkNode]:
    # Profile file nodes carry no index and keep their array order.
    return sorted(children, key=lambda c: c.index or 0)


def _node_date(api_ms: Optional[float], webkit_us: Optional[int]):
    if api_ms is not None:
        return from_epoch_value(int(api_ms))
    return from_webkit_timestamp(webkit_us)


def _add_attributes(attributes: dict, node: ChromeBookmarkNode) -> None:
    if node.type is not None:
        attributes["type"] = node.type
    if node.id is not None:
        attributes["id"] = node.id
    if node.parent_id is not None:
        attributes["parentid"] = node.parent_id
    title = node.display_title
    if node.url is None and title is not None and title.lower() == BOOKMARKS_BAR_TITLE:
        attributes["personal_toolbar_folder"] = "true"
