"""Project configuration read from ``.symdex/config.yml``."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from symdex.errors import ConfigError
from symdex.infrastructure.db import DEFAULT_BUSY_TIMEOUT

CONFIG_DIR = ".symdex"
CONFIG_FILE = "config.yml"
DEFAULT_DB_NAME = "index.db"

# Directory names never worth descending into.
_DEFAULT_EXCLUDE = ("vendor/*", "node_modules/*", "__pycache__/*")


@dataclass(frozen=True)
class SymdexConfig:
    """Settings that shape how a project is scanned and indexed."""

    exclude: tuple[str, ...] = _DEFAULT_EXCLUDE
    extensions: tuple[str, ...] | None = None  # None means every supported extension
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT


def find_config_root(path: Path) -> Path:
    """Return the directory whose ``.symdex/`` applies to *path*.

    Walks up from the nearest existing directory at or above *path* to the
    nearest directory containing ``.symdex/``.  Falls back to that existing
    directory when there is none, so no missing directories get created.
    """
    start = path.resolve()
    while not start.is_dir():
        start = start.parent
    for candidate in (start, *start.parents):
        if (candidate / CONFIG_DIR).is_dir():
            return candidate
    return start


def default_db_path(root: Path) -> Path:
    return root / CONFIG_DIR / DEFAULT_DB_NAME


def _string_list(config: dict[str, object], key: str) -> tuple[str, ...] | None:
    value = config.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"'{key}' must be a list of strings"
        raise ConfigError(msg)
    return tuple(value)


def load_config(root: Path) -> SymdexConfig:
    """Load ``<root>/.symdex/config.yml``.

    Returns defaults when the file is absent.  Raises :class:`ConfigError`
    on invalid YAML or mistyped keys.
    """
    config_path = root / CONFIG_DIR / CONFIG_FILE
    if not config_path.is_file():
        return SymdexConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        msg = f"Cannot parse {config_path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{config_path} must contain a mapping"
        raise ConfigError(msg)

    exclude = _string_list(data, "exclude")
    extensions = _string_list(data, "extensions")
    if extensions is not None:
        extensions = tuple(e if e.startswith(".") else f".{e}" for e in extensions)

    busy_timeout = data.get("busy_timeout", DEFAULT_BUSY_TIMEOUT)
    if isinstance(busy_timeout, bool) or not isinstance(busy_timeout, (int, float)):
        msg = "'busy_timeout' must be a number of seconds"
        raise ConfigError(msg)

    return SymdexConfig(
        exclude=exclude if exclude is not None else _DEFAULT_EXCLUDE,
        extensions=extensions,
        busy_timeout=float(busy_timeout),
    )
