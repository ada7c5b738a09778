"""Versioned pattern tables.

Every heuristic in the package reads its vocabularies, regexes and thresholds
from a JSON table rather than inline literals. Tables ship inside
``story_narrator/data`` and can be replaced wholesale by pointing
``SN_TABLES_DIR`` at a directory holding files of the same names.
"""

import json
import logging
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Optional

from .config import get_settings
from .errors import TableError

logger = logging.getLogger(__name__)

TABLE_NAMES = (
    "vocabulary",
    "characters",
    "voices",
    "show_tell",
    "tropes",
    "purple_prose",
    "dialogue",
    "colors",
)


def load_table(name: str, tables_dir: Optional[Path] = None) -> dict[str, Any]:
    """Load a table by name.

    Args:
        name: Table name without the ``.json`` suffix
        tables_dir: Directory to read from (default: settings, then bundled data)

    Raises:
        TableError: if the table is missing, unreadable or unversioned
    """
    if tables_dir is None:
        tables_dir = get_settings().tables_dir
    return _load_table(name, str(tables_dir) if tables_dir else None)


@lru_cache(maxsize=None)
def _load_table(name: str, tables_dir: Optional[str]) -> dict[str, Any]:
    if tables_dir:
        path = Path(tables_dir) / f"{name}.json"
        if not path.exists():
            raise TableError(f"Table '{name}' not found in {tables_dir}")
        raw = path.read_text(encoding="utf-8")
        source = str(path)
    else:
        resource = resources.files("story_narrator") / "data" / f"{name}.json"
        try:
            raw = resource.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise TableError(f"Unknown table '{name}'") from e
        source = f"bundled:{name}"

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise TableError(f"Table '{name}' is not valid JSON: {e}") from e

    if not isinstance(data, dict) or "version" not in data:
        raise TableError(f"Table '{name}' has no version field")

    logger.debug("Loaded table %s v%s from %s", name, data["version"], source)
    return data


def table_versions(tables_dir: Optional[Path] = None) -> dict[str, str]:
    """Return the version string of every known table."""
    return {name: load_table(name, tables_dir)["version"] for name in TABLE_NAMES}


def clear_cache() -> None:
    """Forget loaded tables (tests and long-running processes that swap tables)."""
    _load_table.cache_clear()
