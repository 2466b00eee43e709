from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None else v


@dataclass
class Settings:
    # Netscape output
    output_encoding: str = "utf-8"

    # Netscape input
    header_length: int = 512  # characters searched for charset=; 0 = whole document
    auto_detect_encoding: bool = True

    # Firefox input
    include_internal: bool = False

    # Logging / UX
    log_level: str = "INFO"
    no_color: bool = False

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        s.output_encoding = _env_str("MARKTREE_OUTPUT_ENCODING", s.output_encoding)
        s.header_length = _env_int("MARKTREE_HEADER_LENGTH", s.header_length)
        s.auto_detect_encoding = _env_bool("MARKTREE_AUTO_DETECT_ENCODING", s.auto_detect_encoding)
        s.include_internal = _env_bool("MARKTREE_INCLUDE_INTERNAL", s.include_internal)
        s.log_level = _env_str("MARKTREE_LOG_LEVEL", s.log_level)
        s.no_color = _env_bool("MARKTREE_NO_COLOR", s.no_color)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        s = Settings.from_env()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)
        return s


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_file(Path(config_path))
    return Settings.from_env()
