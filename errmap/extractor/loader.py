"""Source file discovery and reading."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional

from errmap.internals.errors import raise_error

SOURCE_SUFFIXES = frozenset({".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts"})
SKIP_DIRS = frozenset({"node_modules"})


def get_effective_cwd() -> Path:
    """Get the effective current working directory for path resolution.

    Checks the ERRMAP_CWD environment variable, set by wrapper scripts that
    change directory before invoking errmap. Falls back to the process cwd.
    """
    errmap_cwd = os.environ.get('ERRMAP_CWD')
    if errmap_cwd:
        return Path(errmap_cwd)
    return Path.cwd()


def is_source_file(path: Path) -> bool:
    if path.suffix not in SOURCE_SUFFIXES:
        return False
    # Type declaration files carry no runtime calls
    return not path.name.endswith((".d.ts", ".d.mts", ".d.cts"))


def _skip_dir(name: str) -> bool:
    return name in SKIP_DIRS or name.startswith(".")


def collect_sources(paths: Iterable[str], cwd: Optional[Path] = None) -> List[Path]:
    """Expand files and directories into a sorted, duplicate-free file list.

    The order is the code allocation order, so it only depends on the paths
    themselves and never on directory listing order.
    """
    cwd = cwd or get_effective_cwd()
    found: set[Path] = set()
    for entry in paths:
        path = Path(entry)
        if not path.is_absolute():
            path = cwd / path
        if path.is_file():
            found.add(path)
        elif path.is_dir():
            for root, dirs, files in os.walk(path):
                dirs[:] = [d for d in dirs if not _skip_dir(d)]
                for name in files:
                    candidate = Path(root) / name
                    if is_source_file(candidate):
                        found.add(candidate)
        else:
            raise_error("EI0004", path=entry)
    return sorted(found, key=lambda p: p.as_posix())


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        raise_error("EI0003", path=str(path), reason=reason)
