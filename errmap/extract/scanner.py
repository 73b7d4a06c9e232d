"""Assertion call discovery over the parse tree."""
from __future__ import annotations
from typing import List, Optional, Sequence

from lark import Tree, Token

from errmap.extract.ast import InvariantCall
from errmap.extract.builder import Item, MessageBuilder
from errmap.internals import errors as er
from errmap.internals.report import Reporter, span_between

DEFAULT_CALLEE = "invariant"

# Tokens that, right before the callee name, mean it is not a plain call
_NOT_A_CALL_BEFORE = frozenset({".", "?.", "function", "new", "class"})

# Modifiers that may precede a class method name
_MEMBER_MODIFIERS = frozenset({
    "static", "async", "get", "set", "public", "private", "protected",
    "override", "readonly", "abstract",
})


class InvariantScanner:
    """Finds `invariant(condition, message, ...)` calls.

    Calls are collected depth first in source order and recorded when the
    walk leaves them, so a call nested in another call's arguments is
    recorded before the enclosing one.
    """

    def __init__(self, callee: str = DEFAULT_CALLEE, reporter: Optional[Reporter] = None,
                 filename: Optional[str] = None) -> None:
        self.callee = callee
        self.reporter = reporter
        self.filename = filename
        self.builder = MessageBuilder()

    def scan(self, tree: Tree) -> List[InvariantCall]:
        calls: List[InvariantCall] = []
        self._walk(tree, calls)
        return calls

    def _walk(self, tree: Tree, calls: List[InvariantCall]) -> None:
        children = tree.children
        in_brace = tree.data == "brace"
        for i, child in enumerate(children):
            if not isinstance(child, Tree):
                continue
            self._walk(child, calls)
            if child.data == "paren" and self._is_recognized_call(children, i, in_brace):
                calls.append(self._make_call(children[i - 1], child))

    def _is_recognized_call(self, siblings: Sequence[Item], paren_index: int,
                            in_brace: bool = False) -> bool:
        if paren_index == 0:
            return False
        callee = siblings[paren_index - 1]
        if not (isinstance(callee, Token) and callee.type == "NAME" and callee.value == self.callee):
            return False

        if paren_index >= 2:
            before = siblings[paren_index - 2]
            if (isinstance(before, Token) and before.type in ("NAME", "OP")
                    and before.value in _NOT_A_CALL_BEFORE):
                return False
            # function* invariant(...)
            if (isinstance(before, Token) and before.value == "*" and paren_index >= 3
                    and isinstance(siblings[paren_index - 3], Token)
                    and siblings[paren_index - 3].value == "function"):
                return False

        # invariant(a, b) { ... } is a method definition when the body opens on
        # the same line, or on a later line at the start of a class member
        if paren_index + 1 < len(siblings):
            after = siblings[paren_index + 1]
            paren = siblings[paren_index]
            if (isinstance(after, Tree) and after.data == "brace"
                    and not after.meta.empty and not paren.meta.empty):
                if after.meta.line == paren.meta.end_line:
                    return False
                if in_brace and _starts_member(siblings, paren_index - 1):
                    return False
        return True

    def _make_call(self, callee: Token, paren: Tree) -> InvariantCall:
        args = split_arguments(paren.children)
        loc = span_between(callee, paren)
        if len(args) < 2 or not args[1]:
            if self.reporter is not None:
                er.emit(self.reporter, er.ERR.EW0004, loc, callee=self.callee)
            return InvariantCall(loc=loc, callee=self.callee, message=None, filename=self.filename)
        message = self.builder.build(args[1])
        return InvariantCall(loc=loc, callee=self.callee, message=message, filename=self.filename)


def _starts_member(siblings: Sequence[Item], name_index: int) -> bool:
    if name_index == 0:
        return True
    before = siblings[name_index - 1]
    if isinstance(before, Tree):
        return before.data == "brace"
    if before.type == "OP":
        return before.value == ";"
    return before.type == "NAME" and before.value in _MEMBER_MODIFIERS


def split_arguments(items: Sequence[Item]) -> List[List[Item]]:
    """Split the contents of an argument list on top-level commas."""
    if not items:
        return []
    args: List[List[Item]] = [[]]
    for item in items:
        if isinstance(item, Token) and item.type == "COMMA":
            args.append([])
        else:
            args[-1].append(item)
    if not args[-1]:
        args.pop()  # trailing comma
    return args
