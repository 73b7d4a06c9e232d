from __future__ import annotations
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from lark import Token

class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"
    GRAY  = "\x1b[90m"

@dataclass
class Span:
    line: int
    col: int
    end_line: int
    end_col: int

@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    span: Optional[Span] = None
    filename: Optional[str] = None  # Source-specific filename for multi-file reporting

def span_of(t: Any) -> Optional[Span]:
    if isinstance(t, Token):
        line = getattr(t, "line", None)
        col = getattr(t, "column", None)
        end_line = getattr(t, "end_line", None)
        end_col = getattr(t, "end_column", None)
        if line is not None and col is not None:
            return Span(line, col, end_line or line, end_col or col)
        return None
    m = getattr(t, "meta", None)
    if m is not None and not getattr(m, "empty", True):
        return Span(m.line, m.column, m.end_line, m.end_column)
    return None

def span_between(first: Any, last: Any) -> Optional[Span]:
    """Span covering two tokens/trees, inclusive."""
    start = span_of(first)
    end = span_of(last)
    if start is None:
        return end
    if end is None:
        return start
    return Span(start.line, start.col, end.end_line, end.end_col)


class Reporter:
    """Collects diagnostics for one source text, or for a whole run.

    A per-file reporter keeps the text it was created with so its
    diagnostics can show the offending line after being merged into the
    run reporter.
    """

    def __init__(self, source: Optional[str] = None, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.items: List[Diagnostic] = []
        self._sources: Dict[str, List[str]] = {}
        if source is not None:
            self._sources[filename] = source.splitlines()

    def error(self, code: str, msg: str, span: Optional[Span]):
        self.items.append(Diagnostic("error", code, msg, span, filename=self.filename))

    def warn(self, code: str, msg: str, span: Optional[Span]):
        self.items.append(Diagnostic("warning", code, msg, span, filename=self.filename))

    def merge(self, other: Reporter) -> None:
        self.items.extend(other.items)
        self._sources.update(other._sources)

    @property
    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.items)

    @property
    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.items)

    def exit_code(self) -> int:
        """0 = clean, 1 = warnings only, 2 = errors."""
        if self.has_errors:
            return 2
        return 1 if self.has_warnings else 0

    def format(self, use_color: bool = True, use_unicode: bool = True) -> str:
        """Render all diagnostics, one block each.

        use_color   → ANSI colorize location, severity and the underline
        use_unicode → draw the gutter with │ instead of |
        """
        return "\n".join(self._render(d, use_color, use_unicode) for d in self.items)

    def _render(self, d: Diagnostic, use_color: bool, use_unicode: bool) -> str:
        def paint(text: str, style: str) -> str:
            return f"{style}{text}{C.RESET}" if use_color else text

        filename = d.filename or self.filename
        where = _display_name(filename)
        if d.span is not None:
            where += f":{d.span.line}:{d.span.col}"
        message = d.message if d.message.endswith('.') else f"{d.message}."
        tone = C.RED if d.kind == "error" else C.YELLOW
        head = f"{paint(where, C.CYAN)}: {paint(d.kind, C.BOLD + tone)} [{paint(d.code, C.DIM)}]: {message}"

        line_text = self._line(filename, d.span)
        if line_text is None:
            return head

        # Underline the span on its first line; 1-based columns
        start = max(1, d.span.col)
        if d.span.end_line == d.span.line and d.span.end_col > start:
            width = d.span.end_col - start
        else:
            width = max(1, len(line_text) - start + 1)
        number = str(d.span.line)
        bar = paint("│" if use_unicode else "|", C.GRAY)
        underline = paint(" " * (start - 1) + "^" * width, tone)
        return "\n".join([
            head,
            f" {number} {bar} {line_text}",
            f" {' ' * len(number)} {bar} {underline}",
        ])

    def _line(self, filename: str, span: Optional[Span]) -> Optional[str]:
        if span is None:
            return None
        lines = self._sources.get(filename)
        if lines is None or not 0 < span.line <= len(lines):
            return None
        return lines[span.line - 1]

    def print(self, stream=None, use_color: Optional[bool] = None, use_unicode: Optional[bool] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        Unicode gutters are auto-enabled for TTY unless NO_UNICODE or TERM=dumb.
        """
        stream = stream or sys.stderr
        fancy = bool(getattr(stream, "isatty", lambda: False)()) and os.getenv("TERM") != "dumb"
        if use_color is None:
            use_color = fancy and os.getenv("NO_COLOR") is None
        if use_unicode is None:
            use_unicode = fancy and os.getenv("NO_UNICODE") is None

        text = self.format(use_color=use_color, use_unicode=use_unicode)
        if text:
            print(text, file=stream)


def _display_name(filename: str) -> str:
    """Relative ./path when under the cwd, the bare name otherwise."""
    if filename.startswith("<"):
        return filename
    try:
        rel_path = Path(filename).resolve().relative_to(Path.cwd())
        return f"./{rel_path}"
    except (ValueError, OSError):
        return Path(filename).name
