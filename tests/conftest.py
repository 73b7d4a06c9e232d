"""
Pytest configuration and fixtures.

Ensures the repository root is importable and provides an in-memory file
system for extractor tests.
"""
from __future__ import annotations

import sys
from pathlib import Path, PurePosixPath

import pytest

repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from errmap.extractor.config import ExtractOptions  # noqa: E402
from errmap.internals.report import Reporter  # noqa: E402

PROJECT = Path("/project")
URL = "https://reactjs.org/docs/error-decoder.html?invariant="


class MemoryFileSystem:
    """FileSystem keeping files in a dict; records every write."""

    def __init__(self, files: dict | None = None) -> None:
        self.files: dict[str, str] = {self._key(k): v for k, v in (files or {}).items()}
        self.dirs: set[str] = set()
        self.writes: list[str] = []
        self.reads: list[str] = []
        self.fail_writes: set[str] = set()

    @staticmethod
    def _key(path) -> str:
        return str(PurePosixPath(path))

    def read_text(self, path) -> str:
        key = self._key(path)
        self.reads.append(key)
        try:
            return self.files[key]
        except KeyError:
            raise FileNotFoundError(2, "No such file or directory", key) from None

    def write_text(self, path, text: str) -> None:
        key = self._key(path)
        if key in self.fail_writes:
            raise PermissionError(13, "Permission denied", key)
        self.files[key] = text
        self.writes.append(key)

    def ensure_dir(self, path) -> None:
        self.dirs.add(self._key(path))


@pytest.fixture
def memfs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def reporter() -> Reporter:
    return Reporter(filename="<test>")


@pytest.fixture
def options() -> ExtractOptions:
    return ExtractOptions(
        error_map_file_path="codes.json",
        name="my-lib",
        lookup_url_prefix=URL,
    )


@pytest.fixture
def project() -> Path:
    return PROJECT
