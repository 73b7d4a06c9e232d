# internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from errmap.internals.report import Span, Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    CONFIG    = "config"
    IO        = "io"
    SYNTAX    = "syntax"
    MAP       = "map"
    SCAN      = "scan"


class ErrorKind(str, Enum):
    """Fatal error kinds a caller can tell apart without matching on text."""
    CONFIG = "config"
    IO = "io"
    PARSE = "parse"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.SCAN
    doc: str = ""


class ExtractorError(Exception):
    """Base class for fatal extraction errors."""
    kind: ErrorKind

    def __init__(self, message: str, code: Optional[str] = None,
                 span: Optional[Span] = None) -> None:
        super().__init__(message)
        self.code = code
        self.span = span


class ConfigError(ExtractorError):
    kind = ErrorKind.CONFIG


class OutputError(ExtractorError):
    kind = ErrorKind.IO


class SourceSyntaxError(ExtractorError):
    kind = ErrorKind.PARSE


REGISTRY: Dict[str, ErrorMessage] = {}

_EXCEPTIONS = {
    Category.CONFIG: ConfigError,
    Category.IO: OutputError,
    Category.SYNTAX: SourceSyntaxError,
}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)

def emit(r: Reporter, em: ErrorMessage, span: Optional[Span], /, **kwargs) -> None:
    text = _fmt(em.code, **kwargs)
    if em.severity == Severity.ERROR:
        r.error(em.code, text, span)
    else:
        r.warn(em.code, text, span)

def make_error(code: str, span: Optional[Span] = None, /, **kwargs) -> ExtractorError:
    """Build the exception bound to the category of `code`.

    Config, I/O and syntax messages map to ConfigError, OutputError and
    SourceSyntaxError; other categories are reported, never raised.
    """
    msg = _get(code)
    text = _fmt(code, **kwargs)
    exc_type = _EXCEPTIONS.get(msg.category)
    if exc_type is None:
        raise ValueError(f"{code} is a {msg.category.value} message and has no exception kind")
    return exc_type(text, code=code, span=span)

def raise_error(code: str, span: Optional[Span] = None, /, **kwargs) -> None:
    """Raise the ExtractorError subclass for `code` with a formatted message.

    Args:
        code: Error code (e.g., "EC0001")
        span: Optional source location
        **kwargs: Format parameters for the error message

    Raises:
        ExtractorError: Always
    """
    raise make_error(code, span, **kwargs)


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def format_message(code: str, /, **kwargs) -> str:
    """Render the catalog text for `code`."""
    return _fmt(code, **kwargs)

def _fmt(code: str, /, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Configuration errors - EC0xxx range
_add(ErrorMessage("EC0001", Severity.ERROR,
    "missing option 'error_map_file_path'; pass --error-map or set error_map_file_path in the config",
    Category.CONFIG, "The path of the persisted error map is required."))

_add(ErrorMessage("EC0002", Severity.ERROR,
    "missing option 'name'; pass --name or set name in the config",
    Category.CONFIG, "The display name is used to build the production helper's message."))

_add(ErrorMessage("EC0003", Severity.ERROR,
    "no url passed for 'lookup_url_prefix'; pass a url, e.g. "
    "--extract-errors=https://reactjs.org/docs/error-decoder.html?invariant=",
    Category.CONFIG, "The lookup url prefix must be a string."))

_add(ErrorMessage("EC0004", Severity.ERROR,
    "invalid callee name '{callee}'; expected a plain identifier",
    Category.CONFIG, "The recognized assertion function must be a bare identifier."))

_add(ErrorMessage("EC0005", Severity.ERROR,
    "cannot read config file '{path}': {reason}",
    Category.CONFIG, "The config file is missing or is not valid TOML."))

_add(ErrorMessage("EC0006", Severity.ERROR,
    "option '{option}' must be {expected}, got {got}",
    Category.CONFIG, "A config value has the wrong type."))

_add(ErrorMessage("EC0007", Severity.ERROR,
    "unknown option '{option}' in {path}",
    Category.CONFIG, "The config table contains a key errmap does not understand."))

# I/O errors - EI0xxx range
_add(ErrorMessage("EI0001", Severity.ERROR,
    "cannot write '{path}': {reason}",
    Category.IO, "The error map or a generated helper could not be written."))

_add(ErrorMessage("EI0002", Severity.ERROR,
    "cannot create directory '{path}': {reason}",
    Category.IO, "The generated helper directory could not be created."))

_add(ErrorMessage("EI0003", Severity.ERROR,
    "cannot read source file '{path}': {reason}",
    Category.IO, "A source file selected for scanning could not be read."))

_add(ErrorMessage("EI0004", Severity.ERROR,
    "source path '{path}' does not exist",
    Category.IO, "A path given on the command line does not exist."))

# Syntax errors - EP0xxx range
_add(ErrorMessage("EP0001", Severity.ERROR,
    "{message}",
    Category.SYNTAX, "The source could not be tokenized."))

_add(ErrorMessage("EP0002", Severity.ERROR,
    "unexpected {token}; brackets are not balanced",
    Category.SYNTAX, "The token stream could not be grouped into balanced brackets."))

_add(ErrorMessage("EP0003", Severity.ERROR,
    "unexpected end of input; brackets are not balanced",
    Category.SYNTAX, "The source ended inside an open bracket."))

# Map errors - EM0xxx range
_add(ErrorMessage("EM0001", Severity.ERROR,
    "unknown error code {code}",
    Category.MAP, "The code is not present in the error map."))

_add(ErrorMessage("EM0002", Severity.ERROR,
    "codes {first} and {second} both map to the template {template!r}",
    Category.MAP, "Raised by strict index building when the error map holds duplicate templates."))

# Warnings - EW0xxx range
_add(ErrorMessage("EW0001", Severity.WARNING,
    "error map '{path}' is malformed ({reason}); starting from an empty map",
    Category.MAP, "All previously assigned codes will be reassigned from 0."))

_add(ErrorMessage("EW0002", Severity.WARNING,
    "cannot read error map '{path}': {reason}; starting from an empty map",
    Category.MAP, "The error map exists but could not be read."))

_add(ErrorMessage("EW0003", Severity.WARNING,
    "codes {first} and {second} both map to the template {template!r}; looking it up as {first}",
    Category.MAP, "Both entries are kept so already published codes stay decodable."))

_add(ErrorMessage("EW0004", Severity.WARNING,
    "'{callee}' call without a message argument is ignored",
    Category.SCAN, "Only the second positional argument is extracted."))

_add(ErrorMessage("EW0005", Severity.WARNING,
    "no source files found",
    Category.SCAN, "Nothing was scanned; the error map is written unchanged."))
