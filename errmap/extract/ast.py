# extract/ast.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from errmap.internals.report import Span

# === Core node base ===

@dataclass
class Node:
    loc: Optional[Span]

# === Message expressions ===
#
# The closed set of shapes the template evaluator understands. Anything that
# is neither a string literal nor a `+` concatenation is Opaque.

@dataclass
class StringLit(Node):
    value: str                       # Cooked value, escapes already decoded

@dataclass
class Concat(Node):
    left: "Expr"
    right: "Expr"

@dataclass
class Opaque(Node):
    kind: str                        # What the expression looked like, e.g. "identifier"

Expr = Union[StringLit, Concat, Opaque]

# === Scan results ===

@dataclass
class InvariantCall(Node):
    callee: str
    message: Optional[Expr]          # None when the call has fewer than two arguments
    filename: Optional[str] = None
