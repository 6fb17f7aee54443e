"""Process-local settings cache.

Entries are keyed by the resolved config path and remember the file's
modification time, so an edited ``config.json`` is picked up on the next read.
Without a file the entry holds the env-and-defaults ``Config`` built once.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path

from procroute.config.loader import get_config_path, load_config
from procroute.config.schema import ClientConfig, Config, ServerConfig


@dataclass(slots=True)
class _Entry:
    config: Config
    mtime_ns: int | None


_lock = threading.RLock()
_entries: dict[Path, _Entry] = {}


def _resolve(config_path: Path | None) -> Path:
    return Path(config_path or get_config_path()).expanduser().resolve()


def _mtime_ns(path: Path) -> int | None:
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def get_config(*, config_path: Path | None = None, force_reload: bool = False) -> Config:
    """Settings for ``config_path`` (default file); reloaded when the file changes."""
    path = _resolve(config_path)
    mtime = _mtime_ns(path)
    with _lock:
        entry = _entries.get(path)
        if force_reload or entry is None or entry.mtime_ns != mtime:
            entry = _Entry(config=load_config(path), mtime_ns=mtime)
            _entries[path] = entry
        return entry.config


def get_server_config(*, config_path: Path | None = None) -> ServerConfig:
    return get_config(config_path=config_path).server


def get_client_config(*, config_path: Path | None = None) -> ClientConfig:
    return get_config(config_path=config_path).client


def clear_config_cache(*, config_path: Path | None = None) -> None:
    """Drop one cached entry, or all of them."""
    with _lock:
        if config_path is None:
            _entries.clear()
        else:
            _entries.pop(_resolve(config_path), None)
