"""File access used by the extractor for the error map and generated helpers."""
from __future__ import annotations

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    def read_text(self, path: Path) -> str:
        """Return the file's UTF-8 text; FileNotFoundError when it is missing."""
        ...

    def write_text(self, path: Path, text: str) -> None:
        ...

    def ensure_dir(self, path: Path) -> None:
        ...


class LocalFileSystem:
    """FileSystem backed by the real disk."""

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: Path, text: str) -> None:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)

    def ensure_dir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)
