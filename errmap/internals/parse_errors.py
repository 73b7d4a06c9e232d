"""Shared parse exception handling for the pipeline and CLI."""
from __future__ import annotations

from lark import UnexpectedInput, UnexpectedEOF, UnexpectedToken

from errmap.internals import errors as er
from errmap.internals.report import Reporter, Span, span_of


def handle_parse_exception(exc: Exception, reporter: Reporter) -> bool:
    """Handle a parse exception by emitting diagnostics through the reporter.

    Returns:
        True if the exception was handled, False otherwise.
    """
    if isinstance(exc, er.SourceSyntaxError):
        er.emit(reporter, er.ERR.EP0001, exc.span, message=str(exc))
        return True

    if isinstance(exc, UnexpectedEOF):
        er.emit(reporter, er.ERR.EP0003, None)
        return True

    if isinstance(exc, UnexpectedToken):
        tok = exc.token
        if tok.type == "$END":
            er.emit(reporter, er.ERR.EP0003, None)
        else:
            er.emit(reporter, er.ERR.EP0002, span_of(tok), token=repr(str(tok)))
        return True

    if isinstance(exc, UnexpectedInput):
        line = getattr(exc, "line", -1)
        col = getattr(exc, "column", -1)
        span = Span(line, col, line, col + 1) if line and line > 0 else None
        er.emit(reporter, er.ERR.EP0001, span, message=str(exc).splitlines()[0])
        return True

    return False
