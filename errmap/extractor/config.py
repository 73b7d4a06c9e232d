"""Extraction options: the invocation contract and its config-file loader."""
from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from errmap.extract.scanner import DEFAULT_CALLEE
from errmap.extractor.naming import pretty_name
from errmap.internals.errors import raise_error

CONFIG_NAME = "errmap.toml"
PYPROJECT_NAME = "pyproject.toml"

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Camel-case spellings accepted for compatibility with existing build configs
ALIASES = {
    "errorMapFilePath": "error_map_file_path",
    "lookupUrlPrefix": "lookup_url_prefix",
    "extractErrors": "lookup_url_prefix",
    "errorsDir": "errors_dir",
}


@dataclass
class ExtractOptions:
    error_map_file_path: Optional[str] = None
    name: Optional[str] = None
    lookup_url_prefix: Any = None
    errors_dir: Optional[str] = None
    callee: str = DEFAULT_CALLEE
    sources: list[str] = field(default_factory=list)

    def validate(self) -> None:
        """Fail fast with ConfigError; performs no file I/O."""
        if not self.error_map_file_path:
            raise_error("EC0001")
        if not self.name:
            raise_error("EC0002")
        if not isinstance(self.lookup_url_prefix, str):
            raise_error("EC0003")
        if not isinstance(self.callee, str) or not IDENTIFIER_RE.match(self.callee):
            raise_error("EC0004", callee=self.callee)

    @property
    def pretty_name(self) -> str:
        return pretty_name(self.name or "")

    def resolved_errors_dir(self, cwd: Path) -> Path:
        if self.errors_dir:
            return cwd / self.errors_dir
        return cwd / "errors"

    def merged(self, overrides: Mapping[str, Any]) -> ExtractOptions:
        """Copy with every non-None entry of `overrides` applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


_EXPECTED = {
    "error_map_file_path": (str, "a string"),
    "name": (str, "a string"),
    "errors_dir": (str, "a string"),
    "callee": (str, "a string"),
}


def options_from_mapping(data: Mapping[str, Any], source: str = "<options>",
                         strict: bool = True) -> ExtractOptions:
    """Build options from a plain mapping, accepting the camel-case aliases.

    Unknown keys raise EC0007 when `strict` and are skipped otherwise.

    `lookup_url_prefix` is left untyped here so a flag given without a value
    (True) reaches `validate()` and fails with its own message.
    """
    known = {f.name for f in fields(ExtractOptions)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = ALIASES.get(key, key)
        if name not in known:
            if not strict:
                continue
            raise_error("EC0007", option=key, path=source)
        expected = _EXPECTED.get(name)
        if expected is not None and value is not None and not isinstance(value, expected[0]):
            raise_error("EC0006", option=key, expected=expected[1], got=type(value).__name__)
        if name == "sources":
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise_error("EC0006", option=key, expected="a list of strings",
                            got=type(value).__name__)
        values[name] = value
    return ExtractOptions(**values)


def load_config(path: Path) -> ExtractOptions:
    """Load options from `errmap.toml` or the `[tool.errmap]` table of pyproject.toml."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise_error("EC0005", path=str(path), reason=e.strerror or str(e))
    except tomllib.TOMLDecodeError as e:
        raise_error("EC0005", path=str(path), reason=str(e))

    if Path(path).name == PYPROJECT_NAME:
        data = data.get("tool", {}).get("errmap", {})
    return options_from_mapping(data, source=str(path))


def find_config(directory: Path) -> Optional[Path]:
    """First config in `directory`: errmap.toml, else a pyproject.toml with [tool.errmap]."""
    candidate = directory / CONFIG_NAME
    if candidate.is_file():
        return candidate
    pyproject = directory / PYPROJECT_NAME
    if pyproject.is_file():
        try:
            with open(pyproject, "rb") as f:
                data = tomllib.load(f)
        except OSError:
            return None
        except tomllib.TOMLDecodeError as e:
            raise_error("EC0005", path=str(pyproject), reason=str(e))
        if "errmap" in data.get("tool", {}):
            return pyproject
    return None
