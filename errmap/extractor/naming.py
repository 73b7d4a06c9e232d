"""Identifier casing for generated helper names."""
from __future__ import annotations

import re

_SCOPE_RE = re.compile(r"^@.*/")
_UNSAFE_RE = re.compile(r"((^[^a-zA-Z]+)|[^\w.-])|([^a-zA-Z0-9]+$)")
# Word boundaries: lower or digit before upper, and the last capital of an acronym
_SPLIT_RES = (re.compile(r"([a-z0-9])([A-Z])"), re.compile(r"([A-Z])([A-Z][a-z])"))
_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")


def _words(text: str) -> list[str]:
    for split in _SPLIT_RES:
        text = split.sub(r"\1 \2", text)
    return _SEPARATOR_RE.sub(" ", text).split()


def camel_case(text: str) -> str:
    words = _words(text)
    if not words:
        return ""
    return words[0].lower() + "".join(w.capitalize() for w in words[1:])


def pascal_case(text: str) -> str:
    """`fooBar` -> `FooBar`; a later word starting with a digit gets a `_`."""
    return "".join(("_" if i and w[0].isdigit() else "") + w.capitalize()
                   for i, w in enumerate(_words(text)))


def safe_variable_name(name: str) -> str:
    """Package name to a camelCase identifier: `@scope/my-lib` -> `myLib`."""
    name = _SCOPE_RE.sub("", name).lower()
    return camel_case(_UNSAFE_RE.sub("", name))


def pretty_name(name: str) -> str:
    """Display name embedded in the production helper's message."""
    return pascal_case(safe_variable_name(name))
