from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from .log import get_logger
from .model import BookmarkFolder, BookmarkLink
from .timestamps import from_epoch_value

log = get_logger(__name__)

TYPE_LINK = 1
TYPE_FOLDER = 2

_ROOT_LABELS = {
    "toolbar": "Bookmarks Toolbar",
    "menu": "Bookmarks Menu",
    "unfiled": "Other Bookmarks",
    "mobile": "Mobile Bookmarks",
    "tags": "Tags",
}

_ROOT_GUID_TO_NAME = {
    "root________": "places",
    "menu________": "menu",
    "toolbar_____": "toolbar",
    "tags________": "tags",
    "unfiled_____": "unfiled",
    "mobile______": "mobile",
}

_ANNO_DESCRIPTION = "bookmarkproperties/description"
_ANNO_EXCLUDE_FROM_BACKUP = "places/excludefrombackup"
_ANNO_FEED_URI = "livemark/feeduri"
_ANNO_SITE_URI = "livemark/siteuri"


@dataclass
class FirefoxBookmarkLink(BookmarkLink):
    id: int = 0
    visit_count: Optional[int] = None
    # Not created by the user (smart bookmarks, "Most Visited", ...).
    internal: bool = False
    exclude_from_backup: bool = False


@dataclass
class FirefoxBookmarkFolder(BookmarkFolder):
    id: int = 0
    description: Optional[str] = None
    is_bookmarks_toolbar: bool = False
    internal: bool = False
    exclude_from_backup: bool = False


def parse_firefox_places(
    profile_or_db_path: Union[str, Path], *, include_internal: bool = False
) -> FirefoxBookmarkFolder:
    """Read the bookmark tree from a Firefox profile (or its places.sqlite).

    The database is opened read-only. Items Firefox creates for itself
    (``place:`` queries, ``places/*`` annotated items) are left out unless
    ``include_internal`` is set.
    """
    db_path = _resolve_places_path(Path(profile_or_db_path))
    uri = f"file:{db_path.as_posix()}?mode=ro"
    conn = sqlite3.connect(uri, uri=True)
    conn.row_factory = sqlite3.Row
    try:
        rows = _fetch_bookmark_rows(conn)
        roots_by_name = _fetch_roots(conn, rows)
        annos = _fetch_annotations(conn)
    finally:
        conn.close()

    root = _build_tree(rows, roots_by_name, annos, include_internal=include_internal)
    log.info("Read %d items from %s", sum(1 for _ in root.all_items()), db_path)
    return root


def _resolve_places_path(profile_or_db_path: Path) -> Path:
    p = Path(profile_or_db_path)
    if p.is_file():
        return p
    db = p / "places.sqlite"
    if db.exists():
        return db
    raise FileNotFoundError(f"places.sqlite not found in {p}")


def _has_table(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1",
        (name,),
    ).fetchone()
    return row is not None


def _has_column(conn: sqlite3.Connection, table_name: str, column_name: str) -> bool:
    rows = conn.execute(f"PRAGMA table_info({table_name})").fetchall()
    return any(str(r[1]) == column_name for r in rows)


def _fetch_bookmark_rows(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    def places_col(name: str) -> str:
        return f"p.{name}" if _has_column(conn, "moz_places", name) else f"NULL AS {name}"

    guid_expr = "b.guid" if _has_column(conn, "moz_bookmarks", "guid") else "NULL AS guid"
    return conn.execute(
        f"""
        SELECT
          b.id, b.parent, b.type, b.position, b.title, {guid_expr}, b.dateAdded, b.lastModified,
          p.url, {places_col("visit_count")}, {places_col("hidden")}, {places_col("last_visit_date")}
        FROM moz_bookmarks b
        LEFT JOIN moz_places p ON p.id = b.fk
        WHERE b.id > 0 AND b.type > 0 AND b.parent IS NOT NULL
        ORDER BY b.parent, b.position
        """
    ).fetchall()


def _fetch_roots(conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> Dict[str, int]:
    roots: Dict[str, int] = {}
    if _has_table(conn, "moz_bookmarks_roots"):
        for r in conn.execute("SELECT root_name, folder_id FROM moz_bookmarks_roots").fetchall():
            roots.setdefault(str(r["root_name"]).lower(), int(r["folder_id"]))
    if not roots:
        # Newer desktop profiles can lack moz_bookmarks_roots; derive roots by stable GUIDs.
        for r in rows:
            name = _ROOT_GUID_TO_NAME.get(str(r["guid"] or ""))
            if name:
                roots.setdefault(name, int(r["id"]))
    return roots


def _fetch_annotations(conn: sqlite3.Connection) -> Dict[int, Dict[str, str]]:
    if not (_has_table(conn, "moz_items_annos") and _has_table(conn, "moz_anno_attributes")):
        return {}
    out: Dict[int, Dict[str, str]] = {}
    rows = conn.execute(
        """
        SELECT a.item_id, aa.name, a.content
        FROM moz_items_annos a
        LEFT JOIN moz_anno_attributes aa ON aa.id = a.anno_attribute_id
        """
    ).fetchall()
    for r in rows:
        if r["name"] is None:
            continue
        value = "" if r["content"] is None else str(r["content"])
        out.setdefault(int(r["item_id"]), {})[str(r["name"]).lower()] = value
    return out


def _build_tree(
    rows: List[sqlite3.Row],
    roots_by_name: Dict[str, int],
    annos: Dict[int, Dict[str, str]],
    *,
    include_internal: bool,
) -> FirefoxBookmarkFolder:
    root_id = roots_by_name.get("places")
    if root_id is None:
        root_id = int(min(rows, key=lambda r: int(r["parent"]))["id"]) if rows else 0
    toolbar_id = roots_by_name.get("toolbar")
    root_names = {fid: name for name, fid in roots_by_name.items()}

    root = FirefoxBookmarkFolder(id=root_id)
    folders: Dict[int, FirefoxBookmarkFolder] = {root_id: root}

    # Create every folder first; rows are ordered by parent id, which need not
    # come before the ids of their own children.
    for r in rows:
        row_id = int(r["id"])
        item_annos = annos.get(row_id, {})
        if row_id == root_id or int(r["type"]) != TYPE_FOLDER or _is_livemark(item_annos):
            continue
        folders[row_id] = _row_to_folder(r, item_annos, toolbar_id, root_names.get(row_id))

    for r in rows:
        row_id = int(r["id"])
        if row_id == root_id:
            continue
        parent = folders.get(int(r["parent"]))
        if parent is None:
            continue
        item_annos = annos.get(row_id, {})
        row_type = int(r["type"])

        if row_type == TYPE_FOLDER and not _is_livemark(item_annos):
            folder = folders[row_id]
            if folder.internal and not include_internal:
                log.debug("Skipping internal folder %r", folder.title)
                continue
            parent.add(folder)
        elif row_type == TYPE_LINK or _is_livemark(item_annos):
            link = _row_to_link(r, item_annos)
            if link.internal and not include_internal:
                log.debug("Skipping internal bookmark %r", link.url)
                continue
            if int(r["hidden"] or 0) != 0 and not link.internal:
                continue
            parent.add(link)
    return root


def _is_livemark(item_annos: Dict[str, str]) -> bool:
    # Firefox stores livemarks (RSS bookmarks) as folders; they read as links.
    return any("livemark" in name for name in item_annos)


def _row_to_folder(
    r: sqlite3.Row, item_annos: Dict[str, str], toolbar_id: Optional[int], root_name: Optional[str]
) -> FirefoxBookmarkFolder:
    title = r["title"]
    # Newer profiles store root folders as bare names ("toolbar") or empty titles.
    if root_name and (not title or title.lower() == root_name):
        title = _ROOT_LABELS.get(root_name, root_name.title())
    folder = FirefoxBookmarkFolder(
        id=int(r["id"]),
        title=title,
        added=from_epoch_value(r["dateAdded"]),
        last_modified=from_epoch_value(r["lastModified"]),
    )
    if folder.id == toolbar_id:
        folder.is_bookmarks_toolbar = True
        folder.attributes["personal_toolbar_folder"] = "true"
    for name, value in item_annos.items():
        if name == _ANNO_DESCRIPTION:
            folder.description = value
        elif name == _ANNO_EXCLUDE_FROM_BACKUP:
            folder.exclude_from_backup = value == "1"
        if name.startswith("places/"):
            folder.internal = True
    return folder


def _row_to_link(r: sqlite3.Row, item_annos: Dict[str, str]) -> FirefoxBookmarkLink:
    visits = r["visit_count"]
    link = FirefoxBookmarkLink(
        id=int(r["id"]),
        url=r["url"] or "",
        title=r["title"],
        added=from_epoch_value(r["dateAdded"]),
        last_modified=from_epoch_value(r["lastModified"]),
        last_visit=from_epoch_value(r["last_visit_date"]),
        visit_count=None if visits is None else int(visits),
    )
    if link.url.lower().startswith("place:"):
        link.internal = True
    for name, value in item_annos.items():
        if name == _ANNO_FEED_URI:
            link.feed_url = value
        elif name == _ANNO_SITE_URI:
            link.url = value
        elif name == _ANNO_DESCRIPTION:
            link.description = value
        elif name == _ANNO_EXCLUDE_FROM_BACKUP:
            link.exclude_from_backup = value == "1"
        if name.startswith("places/"):
            link.internal = True
    return link
