"""marktree: read and write browser bookmark trees (Netscape HTML, Chrome JSON, Firefox places)."""

from pathlib import Path

from .errors import FormatError, InvalidArgumentError, MarktreeError
from .model import BookmarkFolder, BookmarkItem, BookmarkLink, bookmarks_bar
from .parse_chrome import parse_chrome, read_chrome_file
from .parse_firefox_places import parse_firefox_places
from .parse_netscape import parse_netscape, read_netscape_file
from .writer_netscape import render_netscape, write_netscape, write_netscape_file


def _read_version() -> str:
    p = Path(__file__).resolve().parents[1] / "VERSION"
    try:
        return p.read_text(encoding="utf-8").strip()
    except OSError:
        # Installed without the source tree.
        return "0.1.0"


__version__ = _read_version()

__all__ = [
    "BookmarkFolder",
    "BookmarkItem",
    "BookmarkLink",
    "FormatError",
    "InvalidArgumentError",
    "MarktreeError",
    "bookmarks_bar",
    "parse_chrome",
    "parse_firefox_places",
    "parse_netscape",
    "read_chrome_file",
    "read_netscape_file",
    "render_netscape",
    "write_netscape",
    "write_netscape_file",
]
