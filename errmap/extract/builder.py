"""Message argument parsing: bracket-group items to message expressions.

The parse tree only knows about bracket groups, so operator precedence for
the message argument is recovered here. Only `+` needs real treatment:

- an operator binding looser than `+` at the top level (`?:`, `||`, `=`,
  `=>`, comparisons, ...) makes the whole argument opaque;
- binary `+`/`-` split the argument into left-associated operands;
- an operand is a string literal, a template literal, a parenthesized
  sub-expression (built recursively) or opaque.
"""
from __future__ import annotations
from typing import List, Sequence, Union

from lark import Tree, Token

from errmap.extract.ast import Expr, StringLit, Concat, Opaque
from errmap.extract.strings import string_literal_value, template_quasi_value
from errmap.internals.report import span_of, span_between

Item = Union[Tree, Token]

LOOSER_OPERATORS = frozenset({
    "<<", ">>", ">>>", "<", ">", "<=", ">=", "==", "!=", "===", "!==",
    "&", "^", "|", "&&", "||", "??", "?", ":", "=>",
    "=", "+=", "-=", "*=", "/=", "%=", "**=", "<<=", ">>=", ">>>=",
    "&=", "|=", "^=", "&&=", "||=", "??=",
})
LOOSER_KEYWORDS = frozenset({"in", "instanceof", "as", "satisfies"})
PREFIX_KEYWORDS = frozenset({"typeof", "void", "delete", "new", "await", "yield"})

OPERAND_TOKEN_TYPES = frozenset({"NUMBER", "STRING", "NOSUB_TEMPLATE", "REGEX"})

_TOKEN_KINDS = {"NAME": "identifier", "NUMBER": "number", "REGEX": "regular expression"}
_TREE_KINDS = {"paren": "parenthesized expression", "bracket": "array literal",
               "brace": "object literal", "template": "template literal"}


def _is_token(item: Item, kind: str, value: str | None = None) -> bool:
    return isinstance(item, Token) and item.type == kind and (value is None or item.value == value)


def _ends_operand(item: Item) -> bool:
    """Whether a following `+`/`-` is binary."""
    if isinstance(item, Tree):
        return True
    if item.type == "NAME":
        return item.value not in PREFIX_KEYWORDS
    if item.type == "OP":
        return item.value in ("++", "--")
    if item.type == "JSX_PUNCT":
        return item.value.endswith(">")
    return item.type in OPERAND_TOKEN_TYPES


def _describe(segment: Sequence[Item]) -> str:
    if len(segment) == 1:
        item = segment[0]
        if isinstance(item, Token):
            return _TOKEN_KINDS.get(item.type, "expression")
        return _TREE_KINDS.get(str(item.data), "expression")
    last = segment[-1]
    if isinstance(last, Tree) and last.data == "paren":
        return "call"
    if isinstance(last, Tree) and last.data == "template":
        return "tagged template"
    if len(segment) >= 2 and _is_token(segment[-2], "OP") and segment[-2].value in (".", "?."):
        return "member access"
    return "expression"


class MessageBuilder:
    """Builds the message expression of one call argument."""

    def build(self, items: Sequence[Item]) -> Expr:
        if not items:
            return Opaque(loc=None, kind="empty")
        loc = span_between(items[0], items[-1])

        if _is_token(items[0], "NAME", "yield"):
            return Opaque(loc=loc, kind="expression")

        segments: List[List[Item]] = [[]]
        operators: List[Token] = []
        prev: Item | None = None
        for item in items:
            if isinstance(item, Token):
                if item.type == "COMMA":
                    return Opaque(loc=loc, kind="sequence")
                if item.type == "OP" and item.value in LOOSER_OPERATORS:
                    return Opaque(loc=loc, kind="expression")
                if (item.type == "NAME" and item.value in LOOSER_KEYWORDS
                        and prev is not None and _ends_operand(prev)):
                    return Opaque(loc=loc, kind="expression")
                if item.type in ("PLUS", "MINUS") and prev is not None and _ends_operand(prev):
                    operators.append(item)
                    segments.append([])
                    prev = item
                    continue
            segments[-1].append(item)
            prev = item

        if any(not segment for segment in segments):
            return Opaque(loc=loc, kind="expression")

        expr = self._operand(segments[0])
        for op, segment in zip(operators, segments[1:]):
            right = self._operand(segment)
            span = span_between(segments[0][0], segment[-1])
            if op.type == "PLUS":
                expr = Concat(loc=span, left=expr, right=right)
            else:
                expr = Opaque(loc=span, kind="arithmetic")
        return expr

    def _operand(self, segment: Sequence[Item]) -> Expr:
        loc = span_between(segment[0], segment[-1])
        if len(segment) == 1:
            item = segment[0]
            if _is_token(item, "STRING"):
                return StringLit(loc=loc, value=string_literal_value(item.value))
            if _is_token(item, "NOSUB_TEMPLATE"):
                return StringLit(loc=loc, value=template_quasi_value(item.value))
            if isinstance(item, Tree) and item.data == "paren" and item.children:
                return self.build(item.children)
            if isinstance(item, Tree) and item.data == "template":
                return self._template(item)
        return Opaque(loc=loc, kind=_describe(segment))

    def _template(self, tree: Tree) -> Expr:
        """Desugar `a${x}b` into ("a" + x) + "b"."""
        head, *rest = tree.children
        expr: Expr = StringLit(loc=span_of(head), value=template_quasi_value(head.value))
        substitution: List[Item] = []
        for child in rest:
            if _is_token(child, "TEMPLATE_MIDDLE") or _is_token(child, "TEMPLATE_TAIL"):
                expr = Concat(loc=span_of(tree), left=expr, right=self.build(substitution))
                quasi = StringLit(loc=span_of(child), value=template_quasi_value(child.value))
                expr = Concat(loc=span_of(tree), left=expr, right=quasi)
                substitution = []
            else:
                substitution.append(child)
        return expr


def build_message(items: Sequence[Item]) -> Expr:
    return MessageBuilder().build(items)
