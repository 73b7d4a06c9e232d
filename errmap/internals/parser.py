"""Lark parser setup."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from lark import Lark, Tree

from errmap.internals.lexer import ScriptLexer, TypeScriptLexer

GRAMMAR_PATH = Path(__file__).parent.parent / "grammar.lark"

# Extensions where `<T>expr` is a type cast and JSX is not allowed
NON_JSX_SUFFIXES = frozenset({".ts", ".mts", ".cts"})


@lru_cache(maxsize=None)
def _get_parser(jsx: bool) -> Lark:
    kwargs = dict(
        parser="lalr",
        propagate_positions=True,
        maybe_placeholders=False,
        lexer=ScriptLexer if jsx else TypeScriptLexer,
    )
    return Lark.open(str(GRAMMAR_PATH), **kwargs)


def jsx_enabled_for(filename: str | None) -> bool:
    return filename is None or Path(filename).suffix.lower() not in NON_JSX_SUFFIXES


def parse_source(src: str, filename: str | None = None, dump_parse: bool = False) -> Tree:
    """Parse source text into a tree of bracket groups and tokens.

    Raises:
        SourceSyntaxError: The text could not be tokenized.
        lark.UnexpectedInput: Brackets are not balanced.
    """
    parser = _get_parser(jsx_enabled_for(filename))
    tree = parser.parse(src)
    if dump_parse:
        print(tree.pretty())
    return tree
