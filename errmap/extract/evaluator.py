"""Template evaluation: static folding of message expressions."""
from __future__ import annotations

from typing import Sequence

from errmap.extract.ast import Expr, StringLit, Concat, Opaque

PLACEHOLDER = "%s"


def eval_to_template(expr: Expr) -> str:
    """Fold a message expression into a template.

    String literals keep their text, concatenations fold left to right and
    every opaque operand becomes one `%s` placeholder. Nothing is executed.
    """
    parts: list[str] = []
    stack: list[Expr] = [expr]
    # Iterative so long `+` chains do not hit the recursion limit
    while stack:
        node = stack.pop()
        match node:
            case StringLit(value=value):
                parts.append(value)
            case Concat(left=left, right=right):
                stack.append(right)
                stack.append(left)
            case Opaque():
                parts.append(PLACEHOLDER)
            case _:
                raise TypeError(f"unexpected message node {type(node).__name__}")
    return "".join(parts)


def format_template(template: str, args: Sequence[str]) -> str:
    """Substitute `args` for the placeholders of `template`, in order.

    Placeholders without a matching argument are left as they are, the same
    way the error decoder page renders them.
    """
    pieces = template.split(PLACEHOLDER)
    out = [pieces[0]]
    for index, piece in enumerate(pieces[1:]):
        out.append(str(args[index]) if index < len(args) else PLACEHOLDER)
        out.append(piece)
    return "".join(out)
