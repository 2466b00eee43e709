from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Type, TypeVar, runtime_checkable

from .errors import require

# Attributes that only live in typed fields and are never written generically.
IGNORED_ATTRIBUTES = frozenset(
    {"last_modified", "icon", "icon_uri", "href", "last_visit", "add_date", "feedurl"}
)

T = TypeVar("T")


@runtime_checkable
class BookmarkItem(Protocol):
    title: Optional[str]


@dataclass
class BookmarkLink:
    url: str = ""
    title: Optional[str] = None
    icon_url: Optional[str] = None
    # Embedded favicon; set together with icon_content_type.
    icon_data: Optional[bytes] = None
    icon_content_type: Optional[str] = None
    feed_url: Optional[str] = None
    last_visit: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    added: Optional[datetime] = None
    description: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.title} ({self.url})"


@dataclass
class BookmarkFolder:
    title: Optional[str] = None
    children: List[BookmarkItem] = field(default_factory=list)
    added: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    attributes: Dict[str, str] = field(default_factory=dict)

    def add(self, item: BookmarkItem) -> None:
        self.children.append(require(item, "item"))

    def extend(self, items: Iterable[BookmarkItem]) -> None:
        for item in items:
            self.add(item)

    def __iter__(self) -> Iterator[BookmarkItem]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def __getitem__(self, index: int) -> BookmarkItem:
        return self.children[index]

    def __str__(self) -> str:
        return f">>> {self.title} <<<"

    def all_items(self) -> Iterator[BookmarkItem]:
        return iter_items(self)

    def all_links(self) -> Iterator[BookmarkLink]:
        return self.get_all_items(BookmarkLink)

    def all_folders(self) -> Iterator["BookmarkFolder"]:
        return self.get_all_items(BookmarkFolder)

    def get_all_items(self, kind: Type[T]) -> Iterator[T]:
        for item in iter_items(self):
            if isinstance(item, kind):
                yield item


def iter_items(container: Iterable[BookmarkItem]) -> Iterator[BookmarkItem]:
    """Depth-first, pre-order walk over a container and every nested container.

    Any item that is itself iterable is treated as a container, so custom
    folder types are walked without knowing their concrete class.
    """
    for item in container:
        yield item
        if _is_container(item):
            yield from iter_items(item)  # type: ignore[arg-type]


def bookmarks_bar(root: Optional[BookmarkFolder]) -> Optional[BookmarkFolder]:
    require(root, "root")
    for folder in root.all_folders():  # type: ignore[union-attr]
        if "personal_toolbar_folder" in folder.attributes:
            return folder
    return None


def _is_container(item) -> bool:
    return hasattr(item, "__iter__") and not isinstance(item, (str, bytes))
