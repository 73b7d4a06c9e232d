"""String literal processing: JavaScript escape sequences and template quasis."""
from __future__ import annotations

import re

SIMPLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
}

LINE_CONTINUATIONS = ('\r\n', '\n', '\r', '\u2028', '\u2029')

_OCTAL_RE = re.compile(r'[0-3][0-7]{0,2}|[4-7][0-7]?')
_HEX2_RE = re.compile(r'[0-9a-fA-F]{2}')
_HEX4_RE = re.compile(r'[0-9a-fA-F]{4}')
_CODE_POINT_RE = re.compile(r'\{([0-9a-fA-F]+)\}')


def process_string_escapes(raw: str) -> str:
    r"""Cook the body of a JavaScript string or template literal.

    Handles:
    - \n \t \r \b \f \v and escaped quotes/backslashes
    - \0 and legacy octal escapes (\101 = 'A')
    - \xNN, \uNNNN and \u{N...} escapes, joining surrogate pairs
    - backslash followed by a line terminator (line continuation)

    Any other escaped character stands for itself, as in JavaScript.
    """
    if '\\' not in raw:
        return raw

    result = []
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch != '\\' or i + 1 >= n:
            result.append(ch)
            i += 1
            continue

        nxt = raw[i + 1]

        if nxt in SIMPLE_ESCAPES:
            result.append(SIMPLE_ESCAPES[nxt])
            i += 2
            continue

        continuation = next((lt for lt in LINE_CONTINUATIONS if raw.startswith(lt, i + 1)), None)
        if continuation is not None:
            i += 1 + len(continuation)
            continue

        if nxt in '01234567':
            m = _OCTAL_RE.match(raw, i + 1)
            result.append(chr(int(m.group(), 8)))
            i = m.end()
            continue

        if nxt == 'x':
            m = _HEX2_RE.match(raw, i + 2)
            if m:
                result.append(chr(int(m.group(), 16)))
                i = m.end()
                continue

        if nxt == 'u':
            m = _CODE_POINT_RE.match(raw, i + 2)
            if m and int(m.group(1), 16) <= 0x10FFFF:
                result.append(chr(int(m.group(1), 16)))
                i = m.end()
                continue
            m = _HEX4_RE.match(raw, i + 2)
            if m:
                result.append(chr(int(m.group(), 16)))
                i = m.end()
                continue

        result.append(nxt)
        i += 2

    return _join_surrogates(''.join(result))


def _join_surrogates(text: str) -> str:
    """Combine \\uD83D\\uDE00-style pairs into single code points."""
    if not any('\ud800' <= ch <= '\udfff' for ch in text):
        return text
    return text.encode('utf-16', 'surrogatepass').decode('utf-16', 'replace')


def string_literal_value(raw: str) -> str:
    """Value of a quoted string token, e.g. `'it\\'s'` -> `it's`."""
    return process_string_escapes(raw[1:-1])


def template_quasi_value(raw: str) -> str:
    """Cooked text of a template token.

    The raw token includes its delimiters: a leading backtick or `}` and a
    trailing backtick or `${`. Line terminators are normalized to `\\n`.
    """
    body = raw[1:]
    if body.endswith('${'):
        body = body[:-2]
    elif body.endswith('`'):
        body = body[:-1]
    body = body.replace('\r\n', '\n').replace('\r', '\n')
    return process_string_escapes(body)
