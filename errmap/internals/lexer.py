# internals/lexer.py
"""
Custom lexer for JavaScript, JSX and Flow sources.

Problem:
--------
Lark's built-in lexers match terminals with context-free regexes. JavaScript
needs context in three places:

1. `/` starts a regular expression or divides, depending on the previous token
   (`x = /a+/g` vs `total / count`).
2. Template literals switch back to code inside `${ ... }` and back to text at
   the matching `}`.
3. JSX switches to a different lexical grammar inside `<tag ...>` and between
   an opening and a closing tag, where quotes and apostrophes are plain text.

Solution:
---------
A hand-written tokenizer with a mode stack, plugged into lark as a custom
lexer. Every `{` pushes a mode so the matching `}` knows whether it closes a
block, a template substitution, or a JSX expression container. Regexes and
JSX elements are only recognized where an expression may start, which is
decided from the last significant token.

Flow and TypeScript annotations are ordinary tokens to the grammar. Files that
may contain TypeScript angle-bracket casts are lexed with JSX turned off. In
JSX files a `<` that opens the type parameters of a generic arrow
(`<T>(x: T) => x`) is told apart from an element by looking ahead to the `=>`.
A `)` that closes an `if`/`while`/`for`/`with` header lets a regex start the
next statement.
"""
from __future__ import annotations

import re
from typing import Iterator, List, Optional

from lark import Token
from lark.lexer import Lexer

from errmap.internals.errors import make_error
from errmap.internals.report import Span

# Mode stack entries
BRACE = "brace"                    # `{` in code
TEMPLATE = "template"              # `${` inside a template literal
JSX_OPEN_TAG = "jsx_open_tag"      # between `<name` and `>` or `/>`
JSX_CLOSE_TAG = "jsx_close_tag"    # between `</` and `>`
JSX_CHILDREN = "jsx_children"      # between an opening and a closing tag

WHITESPACE_RE = re.compile(r"[ \t\n\r\f\v\u00a0\ufeff\u2028\u2029]+")
IDENT_RE = re.compile(r"#?(?:[^\W\d]|\$)(?:\w|\$)*")
JSX_NAME_RE = re.compile(r"(?:[^\W\d]|\$)[\w$\-:.]*")
JSX_TEXT_RE = re.compile(r"[^<{]+")
JSX_CLOSING_RE = re.compile(r"<\s*/")
JSX_SELF_CLOSE_RE = re.compile(r"/\s*>")
# `<T>(`, `<T, U>(`, `<T: Bound>(`: type parameters of a generic arrow or function type
TYPE_PARAMS_RE = re.compile(r"<\s*(?:[^\W\d]|\$)[\w$]*\s*(?:(?:[,:=]|extends\b)[^;(){}]*?)?>\s*\(")
ARROW_AFTER_PARAMS_RE = re.compile(r"\s*(?:=>|:[^\n;]*=>)")
REGEX_FLAGS_RE = re.compile(r"[A-Za-z]*")
NUMBER_RE = re.compile(r"""
      0[xX][0-9a-fA-F_]+n?
    | 0[oO][0-7_]+n?
    | 0[bB][01_]+n?
    | (?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d[\d_]*)?n?
""", re.VERBOSE)

PUNCTUATORS = [
    ">>>=", "...", "===", "!==", "**=", "<<=", ">>=", ">>>", "&&=", "||=", "??=",
    "=>", "==", "!=", "<=", ">=", "&&", "||", "??", "?.", "++", "--",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "**", "<<", ">>",
    "+", "-", "*", "/", "%", "&", "|", "^", "!", "~", "<", ">", "=",
    "?", ":", ";", ".", ",", "@",
]
PUNCT_RE = re.compile("|".join(re.escape(p) for p in sorted(PUNCTUATORS, key=len, reverse=True)))

GROUP_TOKENS = {"(": "_LPAR", ")": "_RPAR", "[": "_LSQB", "]": "_RSQB"}
PUNCT_TYPES = {"+": "PLUS", "-": "MINUS", ",": "COMMA"}

# Keywords after which `/` and `<` start an expression rather than an operator
KEYWORDS_BEFORE_EXPRESSION = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await", "extends",
})

# Keywords whose parenthesized header is followed by a statement
HEADER_KEYWORDS = frozenset({"if", "while", "for", "with"})

OPERAND_END_TYPES = frozenset({
    "NUMBER", "STRING", "REGEX", "NOSUB_TEMPLATE", "TEMPLATE_TAIL",
    "_RPAR", "_RSQB", "_RBRACE",
})


class ScriptTokenizer:
    """Tokenizes one source text into lark Tokens."""

    def __init__(self, text: str, jsx: bool = True) -> None:
        self.text = text
        self.jsx = jsx
        self.pos = 0
        self.line = 1
        self.col = 1
        self.modes: List[str] = []
        self.last: Optional[Token] = None
        # one entry per open `(`: does it start an `if`/`while`/`for`/`with` header
        self.parens: List[bool] = []
        self.closed_header = False

    def tokens(self) -> Iterator[Token]:
        if self.text.startswith("#!"):
            self._skip_line_comment()

        while True:
            mode = self.modes[-1] if self.modes else None
            if mode == JSX_CHILDREN:
                tok = self._lex_jsx_children()
            elif mode in (JSX_OPEN_TAG, JSX_CLOSE_TAG):
                tok = self._lex_jsx_tag(mode)
            else:
                tok = self._lex_script()
            if tok is None:
                break
            self.last = tok
            yield tok

        # Unclosed braces are left to the grammar, which reports them with context
        for mode in reversed(self.modes):
            if mode == TEMPLATE:
                raise self._error("unterminated template literal")
            if mode in (JSX_OPEN_TAG, JSX_CLOSE_TAG, JSX_CHILDREN):
                raise self._error("unterminated JSX element")

    # ------------------------------------------------------------------
    # Script mode
    # ------------------------------------------------------------------

    def _lex_script(self) -> Optional[Token]:
        self._skip_trivia()
        text = self.text
        if self.pos >= len(text):
            return None

        c = text[self.pos]
        start = self._mark()

        if c == "{":
            self.modes.append(BRACE)
            self._advance(self.pos + 1)
            return self._emit("_LBRACE", start)

        if c == "}":
            if self.modes and self.modes[-1] == TEMPLATE:
                self.modes.pop()
                return self._lex_template(head=False)
            if self.modes and self.modes[-1] == BRACE:
                self.modes.pop()
            self._advance(self.pos + 1)
            return self._emit("_RBRACE", start)

        if c in GROUP_TOKENS:
            if c == "(":
                last = self.last
                self.parens.append(last is not None and last.type == "NAME"
                                   and last.value in HEADER_KEYWORDS)
            elif c == ")":
                self.closed_header = self.parens.pop() if self.parens else False
            self._advance(self.pos + 1)
            return self._emit(GROUP_TOKENS[c], start)

        if c in "'\"":
            return self._lex_string(c)

        if c == "`":
            return self._lex_template(head=True)

        m = IDENT_RE.match(text, self.pos)
        if m:
            self._advance(m.end())
            return self._emit("NAME", start)

        if c.isdigit() or (c == "." and text[self.pos + 1:self.pos + 2].isdigit()):
            m = NUMBER_RE.match(text, self.pos)
            if m:
                self._advance(m.end())
                return self._emit("NUMBER", start)

        if c == "/" and self._expression_allowed():
            return self._lex_regex()

        if (c == "<" and self.jsx and self._expression_allowed()
                and self._jsx_follows() and not self._type_params_follow()):
            self._advance(self.pos + 1)
            self.modes.append(JSX_OPEN_TAG)
            return self._emit("JSX_PUNCT", start)

        m = PUNCT_RE.match(text, self.pos)
        if m:
            end = m.end()
            # `a?.5:1` is a conditional, not optional chaining
            if m.group() == "?." and text[end:end + 1].isdigit():
                end = self.pos + 1
            self._advance(end)
            value = text[start[0]:end]
            return self._emit(PUNCT_TYPES.get(value, "OP"), start)

        raise self._error(f"unexpected character {c!r}")

    def _lex_string(self, quote: str) -> Token:
        text = self.text
        start = self._mark()
        i = self.pos + 1
        while True:
            if i >= len(text):
                raise self._error("unterminated string literal")
            ch = text[i]
            if ch == "\\":
                i += 3 if text.startswith("\r\n", i + 1) else 2
                continue
            if ch == quote:
                i += 1
                break
            if ch in "\n\r":
                raise self._error("unterminated string literal")
            i += 1
        self._advance(i)
        return self._emit("STRING", start)

    def _lex_template(self, head: bool) -> Token:
        """Scan from a backtick (head) or a closing `}` (continuation)."""
        text = self.text
        start = self._mark()
        i = self.pos + 1
        while True:
            if i >= len(text):
                raise self._error("unterminated template literal")
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "`":
                i += 1
                kind = "NOSUB_TEMPLATE" if head else "TEMPLATE_TAIL"
                break
            if ch == "$" and text.startswith("${", i):
                i += 2
                kind = "TEMPLATE_HEAD" if head else "TEMPLATE_MIDDLE"
                self.modes.append(TEMPLATE)
                break
            i += 1
        self._advance(i)
        return self._emit(kind, start)

    def _lex_regex(self) -> Token:
        text = self.text
        start = self._mark()
        i = self.pos + 1
        in_class = False
        while True:
            if i >= len(text) or text[i] in "\n\r":
                raise self._error("unterminated regular expression")
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if in_class:
                if ch == "]":
                    in_class = False
            elif ch == "[":
                in_class = True
            elif ch == "/":
                i += 1
                break
            i += 1
        i = REGEX_FLAGS_RE.match(text, i).end()
        self._advance(i)
        return self._emit("REGEX", start)

    def _expression_allowed(self) -> bool:
        tok = self.last
        if tok is None:
            return True
        if tok.type == "NAME":
            return tok.value in KEYWORDS_BEFORE_EXPRESSION
        if tok.type == "_RPAR":
            return self.closed_header
        if tok.type in OPERAND_END_TYPES:
            return False
        if tok.type == "OP" and tok.value in ("++", "--"):
            return False
        if tok.type == "JSX_PUNCT" and tok.value.endswith(">"):
            return False
        return True

    def _jsx_follows(self) -> bool:
        nxt = self.text[self.pos + 1:self.pos + 2]
        return nxt == ">" or (nxt != "#" and IDENT_RE.match(nxt) is not None)

    def _type_params_follow(self) -> bool:
        """`<T>(x: T) => x` is a generic arrow or function type, not JSX."""
        text = self.text
        m = TYPE_PARAMS_RE.match(text, self.pos)
        if m is None:
            return False
        depth = 1
        i = m.end()
        while i < len(text) and depth:
            if text[i] == "(":
                depth += 1
            elif text[i] == ")":
                depth -= 1
            i += 1
        return depth == 0 and ARROW_AFTER_PARAMS_RE.match(text, i) is not None

    # ------------------------------------------------------------------
    # JSX modes
    # ------------------------------------------------------------------

    def _lex_jsx_tag(self, mode: str) -> Optional[Token]:
        self._skip_trivia()
        text = self.text
        if self.pos >= len(text):
            return None

        c = text[self.pos]
        start = self._mark()

        if c == ">":
            self._advance(self.pos + 1)
            self.modes.pop()
            if mode == JSX_OPEN_TAG:
                self.modes.append(JSX_CHILDREN)
            return self._emit("JSX_PUNCT", start)

        if c == "/":
            m = JSX_SELF_CLOSE_RE.match(text, self.pos)
            if mode == JSX_OPEN_TAG and m:
                self._advance(m.end())
                self.modes.pop()
                return self._emit("JSX_PUNCT", start, value="/>")
            self._advance(self.pos + 1)
            return self._emit("JSX_PUNCT", start)

        if c == "{":
            self.modes.append(BRACE)
            self._advance(self.pos + 1)
            return self._emit("_LBRACE", start)

        if c in "'\"":
            end = text.find(c, self.pos + 1)
            if end < 0:
                raise self._error("unterminated JSX attribute string")
            self._advance(end + 1)
            return self._emit("JSX_STRING", start)

        if c == "=":
            self._advance(self.pos + 1)
            return self._emit("JSX_PUNCT", start)

        if c == "<":
            # element used directly as an attribute value
            self._advance(self.pos + 1)
            self.modes.append(JSX_OPEN_TAG)
            return self._emit("JSX_PUNCT", start)

        m = JSX_NAME_RE.match(text, self.pos)
        if m:
            self._advance(m.end())
            return self._emit("JSX_NAME", start)

        raise self._error(f"unexpected character {c!r} in JSX tag")

    def _lex_jsx_children(self) -> Optional[Token]:
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            start = self._mark()

            if c == "{":
                self.modes.append(BRACE)
                self._advance(self.pos + 1)
                return self._emit("_LBRACE", start)

            if c == "<":
                m = JSX_CLOSING_RE.match(text, self.pos)
                if m:
                    self.modes[-1] = JSX_CLOSE_TAG
                    self._advance(m.end())
                    return self._emit("JSX_PUNCT", start, value="</")
                self.modes.append(JSX_OPEN_TAG)
                self._advance(self.pos + 1)
                return self._emit("JSX_PUNCT", start)

            m = JSX_TEXT_RE.match(text, self.pos)
            self._advance(m.end())
            if m.group().strip():
                return self._emit("JSX_TEXT", start)
        return None

    # ------------------------------------------------------------------
    # Cursor helpers
    # ------------------------------------------------------------------

    def _skip_trivia(self) -> None:
        text = self.text
        while self.pos < len(text):
            m = WHITESPACE_RE.match(text, self.pos)
            if m:
                self._advance(m.end())
            elif text.startswith("//", self.pos):
                self._skip_line_comment()
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end < 0:
                    raise self._error("unterminated comment")
                self._advance(end + 2)
            else:
                break

    def _skip_line_comment(self) -> None:
        end = self.text.find("\n", self.pos)
        self._advance(len(self.text) if end < 0 else end)

    def _mark(self) -> tuple[int, int, int]:
        return self.pos, self.line, self.col

    def _advance(self, end: int) -> None:
        chunk = self.text[self.pos:end]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.col = end - (self.pos + chunk.rfind("\n"))
        else:
            self.col += len(chunk)
        self.pos = end

    def _emit(self, kind: str, start: tuple[int, int, int], value: Optional[str] = None) -> Token:
        start_pos, line, col = start
        if value is None:
            value = self.text[start_pos:self.pos]
        return Token(kind, value, start_pos, line, col, self.line, self.col, self.pos)

    def _error(self, message: str):
        span = Span(self.line, self.col, self.line, self.col + 1)
        return make_error("EP0001", span, message=message)


class ScriptLexer(Lexer):
    """Lark lexer for .js/.jsx/.mjs/.cjs/.tsx sources."""
    jsx = True

    def __init__(self, lexer_conf=None):
        pass

    def lex(self, data: str) -> Iterator[Token]:
        return ScriptTokenizer(data, jsx=self.jsx).tokens()


class TypeScriptLexer(ScriptLexer):
    """Lark lexer for .ts sources, where `<T>expr` is a cast, not JSX."""
    jsx = False
