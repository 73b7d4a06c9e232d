"""Error map store: the persisted code -> template mapping.

Codes are handed out once and never change meaning. A run loads the map,
builds a WorkingIndex (template -> code plus the allocation counter), feeds it
every template it discovers through `lookup_or_allocate`, then serializes it
back. For a fixed starting map and a fixed sequence of templates the result
is always the same.
"""
from __future__ import annotations

import json
import re
from typing import Dict, Optional

from errmap.internals import errors as er
from errmap.internals.report import Reporter

ErrorMap = Dict[str, str]

CODE_RE = re.compile(r"0|[1-9][0-9]*")


class DuplicateTemplateError(ValueError):
    """Two codes of a loaded map share one template."""

    def __init__(self, first: int, second: int, template: str) -> None:
        super().__init__(er.format_message("EM0002", first=first, second=second, template=template))
        self.first = first
        self.second = second
        self.template = template


class WorkingIndex:
    """In-memory inverse of an error map, owned by a single run."""

    def __init__(self) -> None:
        self.entries: ErrorMap = {}          # code -> template, in serialization order
        self.codes: Dict[str, int] = {}      # template -> code
        self.next_code = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, template: object) -> bool:
        return template in self.codes

    def code_of(self, template: str) -> Optional[int]:
        return self.codes.get(template)

    def template_of(self, code: int) -> Optional[str]:
        return self.entries.get(str(code))

    def lookup_or_allocate(self, template: str) -> int:
        code = self.codes.get(template)
        if code is not None:
            return code
        code = self.next_code
        self.next_code += 1
        self.codes[template] = code
        self.entries[str(code)] = template
        return code

    def to_error_map(self) -> ErrorMap:
        return dict(self.entries)


def load_error_map(raw: Optional[str], reporter: Optional[Reporter] = None,
                   path: str = "<error map>") -> ErrorMap:
    """Parse a persisted error map.

    `raw=None` means there is no map yet. Anything that is not a JSON object
    of canonical digit-string codes to string templates loads as an empty
    map; the reporter, when given, gets a warning since every previously
    published code is about to be reassigned.
    """
    if raw is None:
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        return _fallback(reporter, path, f"invalid JSON at line {e.lineno} column {e.colno}")

    if not isinstance(data, dict):
        return _fallback(reporter, path, f"expected a JSON object, got {type(data).__name__}")

    for code, template in data.items():
        if not CODE_RE.fullmatch(code):
            return _fallback(reporter, path, f"invalid code {code!r}")
        if not isinstance(template, str):
            return _fallback(reporter, path, f"template of code {code} is not a string")

    return data


def _fallback(reporter: Optional[Reporter], path: str, reason: str) -> ErrorMap:
    if reporter is not None:
        er.emit(reporter, er.ERR.EW0001, None, path=path, reason=reason)
    return {}


def build_index(error_map: ErrorMap, reporter: Optional[Reporter] = None,
                strict: bool = False) -> WorkingIndex:
    """Invert `error_map` into a WorkingIndex.

    When two codes share a template, `strict` raises DuplicateTemplateError.
    Otherwise the first code (in map order) is used for lookups, a warning is
    reported, and both entries stay in the map.
    """
    index = WorkingIndex()
    for code, template in error_map.items():
        existing = index.codes.get(template)
        if existing is not None:
            if strict:
                raise DuplicateTemplateError(existing, int(code), template)
            if reporter is not None:
                er.emit(reporter, er.ERR.EW0003, None, first=existing, second=code, template=template)
        else:
            index.codes[template] = int(code)
        index.entries[code] = template

    index.next_code = max((int(code) for code in error_map), default=-1) + 1
    return index


def serialize_error_map(index: WorkingIndex) -> str:
    """Render the index as the persisted JSON text (2-space indent, trailing newline)."""
    return json.dumps(index.entries, indent=2, ensure_ascii=False) + "\n"
