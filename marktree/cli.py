from __future__ import annotations

import argparse
import sqlite3
from pathlib import Path
from typing import List

from . import __version__
from .config import Settings, load_settings
from .errors import MarktreeError
from .log import LogConfig, get_logger, setup_logging
from .model import BookmarkFolder, bookmarks_bar
from .parse_chrome import read_chrome_file
from .parse_firefox_places import parse_firefox_places
from .parse_netscape import read_netscape_file
from .writer_netscape import write_netscape_file

log = get_logger(__name__)

SOURCES = ("netscape", "chrome", "firefox")


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="marktree",
        description="Read browser bookmarks (Netscape HTML, Chrome JSON, Firefox places) and write Netscape HTML.",
    )
    p.add_argument("-V", "--version", action="version", version=f"marktree {__version__}")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    p.add_argument("--no-color", action="store_true", help="Disable colored logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    conv = sub.add_parser("convert", help="Convert a bookmark source to Netscape bookmarks HTML.")
    conv.add_argument("input", help="Bookmarks HTML, Chrome Bookmarks JSON, or Firefox profile/places.sqlite.")
    conv.add_argument("--out", required=True, help="Output HTML path.")
    conv.add_argument("--from", dest="source", choices=SOURCES, default=None, help="Input format (default: guessed).")
    conv.add_argument("--encoding", default=None, help="Output text encoding (default: utf-8).")
    conv.add_argument("--include-internal", action="store_true", help="Firefox: keep bookmarks Firefox created itself.")

    stats = sub.add_parser("stats", help="Count folders and links in a bookmark source.")
    stats.add_argument("input", help="Bookmarks HTML, Chrome Bookmarks JSON, or Firefox profile/places.sqlite.")
    stats.add_argument("--from", dest="source", choices=SOURCES, default=None, help="Input format (default: guessed).")

    args = p.parse_args(argv)
    cfg = load_settings(args.config)
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color))

    if args.cmd == "convert":
        return _cmd_convert(args, cfg)
    if args.cmd == "stats":
        return _cmd_stats(args, cfg)
    return 2


def _cmd_convert(args, cfg: Settings) -> int:
    if args.include_internal:
        cfg.include_internal = True
    encoding = args.encoding or cfg.output_encoding
    try:
        root = _read_source(Path(args.input), args.source, cfg)
        write_netscape_file(Path(args.out), root, encoding=encoding)
    except (MarktreeError, OSError, LookupError, sqlite3.Error) as e:
        log.error("Failed to convert %s: %s", args.input, e)
        return 2
    return 0


def _cmd_stats(args, cfg: Settings) -> int:
    try:
        root = _read_source(Path(args.input), args.source, cfg)
    except (MarktreeError, OSError, LookupError, sqlite3.Error) as e:
        log.error("Failed to read %s: %s", args.input, e)
        return 2
    folders = sum(1 for _ in root.all_folders())
    links = sum(1 for _ in root.all_links())
    log.info("%s: %d folders, %d links", args.input, folders, links)
    bar = bookmarks_bar(root)
    if bar is not None:
        log.info("Bookmarks toolbar: %r (%d items)", bar.title, len(bar))
    return 0


def _read_source(path: Path, source: str | None, cfg: Settings) -> BookmarkFolder:
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {path}")
    kind = source or guess_source(path)
    log.debug("Reading %s as %s", path, kind)
    if kind == "chrome":
        return read_chrome_file(path)
    if kind == "firefox":
        return parse_firefox_places(path, include_internal=cfg.include_internal)
    return read_netscape_file(
        path,
        auto_detect_encoding=cfg.auto_detect_encoding,
        header_length=cfg.header_length,
    )


def guess_source(path: Path) -> str:
    if path.is_dir() or path.suffix.lower() in (".sqlite", ".db"):
        return "firefox"
    if path.suffix.lower() == ".json" or path.name == "Bookmarks":
        return "chrome"
    return "netscape"
