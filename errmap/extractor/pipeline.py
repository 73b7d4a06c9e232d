"""Extraction orchestration: scan sources, allocate codes, flush outputs."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Union

from lark import UnexpectedInput

from errmap.extract.ast import InvariantCall
from errmap.extract.evaluator import eval_to_template
from errmap.extract.scanner import DEFAULT_CALLEE, InvariantScanner
from errmap.extractor.config import ExtractOptions, options_from_mapping
from errmap.extractor.emitter import Emitter
from errmap.extractor.filesystem import FileSystem, LocalFileSystem
from errmap.extractor.loader import collect_sources, get_effective_cwd, read_source
from errmap.internals import errors as er
from errmap.internals.parse_errors import handle_parse_exception
from errmap.internals.parser import parse_source
from errmap.internals.report import Reporter
from errmap.store.error_map import WorkingIndex, build_index, load_error_map

DEFAULT_SOURCES = ("src",)
RUN_FILENAME = "<errmap>"


@dataclass
class ExtractedMessage:
    call: InvariantCall
    template: str
    code: Optional[int] = None


def scan_source(source: str, filename: Optional[str] = None, callee: str = DEFAULT_CALLEE,
                reporter: Optional[Reporter] = None) -> List[ExtractedMessage]:
    """Parse one source text and fold the message of every recognized call.

    Messages come back in recording order; calls without a message argument
    are reported and left out.
    """
    tree = parse_source(source, filename)
    calls = InvariantScanner(callee, reporter, filename).scan(tree)
    return [ExtractedMessage(call, eval_to_template(call.message))
            for call in calls if call.message is not None]


def read_error_map(fs: FileSystem, path: Path, reporter: Reporter) -> Optional[str]:
    """Raw map text, or None when there is no map yet or it cannot be read."""
    try:
        return fs.read_text(path)
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        er.emit(reporter, er.ERR.EW0002, None, path=str(path), reason=reason)
        return None


def load_index(fs: FileSystem, path: Path, reporter: Reporter) -> WorkingIndex:
    raw = read_error_map(fs, path, reporter)
    return build_index(load_error_map(raw, reporter, str(path)), reporter)


class ErrorExtractor:
    """One extraction run over a single error map.

    Options are validated before anything is read. The index lives for the
    whole run, so every source transformed through the same extractor shares
    one allocation counter.
    """

    def __init__(self, options: ExtractOptions, fs: Optional[FileSystem] = None,
                 reporter: Optional[Reporter] = None, cwd: Optional[Path] = None) -> None:
        options.validate()
        self.options = options
        self.fs = fs or LocalFileSystem()
        self.reporter = reporter or Reporter(filename=RUN_FILENAME)
        self.cwd = cwd or get_effective_cwd()
        self.error_map_path = self.cwd / options.error_map_file_path
        self.index = load_index(self.fs, self.error_map_path, self.reporter)
        self.emitter = Emitter(self.fs, self.error_map_path,
                               options.resolved_errors_dir(self.cwd),
                               options.lookup_url_prefix, options.pretty_name)

    def transform(self, source: str, filename: Optional[str] = None,
                  reporter: Optional[Reporter] = None) -> List[ExtractedMessage]:
        """Scan one source unit and allocate a code for each message found.

        Raises:
            SourceSyntaxError, lark.UnexpectedInput: The source did not parse.
                No code is allocated in that case.
        """
        messages = scan_source(source, filename, self.options.callee, reporter or self.reporter)
        for message in messages:
            message.code = self.index.lookup_or_allocate(message.template)
        return messages

    def flush(self) -> List[Path]:
        return self.emitter.flush(self.index)

    def __call__(self, source: str, filename: Optional[str] = None) -> List[ExtractedMessage]:
        messages = self.transform(source, filename)
        self.flush()
        return messages


def extract_errors(options: Union[ExtractOptions, Mapping[str, Any]],
                   fs: Optional[FileSystem] = None, cwd: Optional[Path] = None) -> ErrorExtractor:
    """Validate `options` and return a callable that transforms and flushes a source."""
    if not isinstance(options, ExtractOptions):
        options = options_from_mapping(options, strict=False)
    return ErrorExtractor(options, fs=fs, cwd=cwd)


def scan_files(paths: Sequence[Path], callee: str, reporter: Reporter,
               extractor: Optional[ErrorExtractor] = None) -> List[tuple[Path, ExtractedMessage]]:
    """Scan files one at a time in the given order.

    Each file reports into its own Reporter, merged into `reporter` once the
    file is done. A file that fails to parse contributes nothing and the
    remaining files are still scanned so every syntax error is reported.
    """
    found: List[tuple[Path, ExtractedMessage]] = []
    for path in paths:
        try:
            src = read_source(path)
        except er.ExtractorError as e:
            reporter.error(e.code, str(e), e.span)
            continue

        file_reporter = Reporter(source=src, filename=str(path))
        try:
            if extractor is not None:
                messages = extractor.transform(src, str(path), file_reporter)
            else:
                messages = scan_source(src, str(path), callee, file_reporter)
        except (UnexpectedInput, er.SourceSyntaxError) as e:
            handle_parse_exception(e, file_reporter)
            messages = []
        reporter.merge(file_reporter)
        found.extend((path, message) for message in messages)
    return found


def run_extraction(options: ExtractOptions, reporter: Reporter,
                   fs: Optional[FileSystem] = None, cwd: Optional[Path] = None) -> int:
    """Scan every source and flush the map and helpers.

    Returns:
        Exit code (0=success, 1=warnings, 2=errors). Nothing is written when
        any error was reported.
    """
    try:
        extractor = ErrorExtractor(options, fs=fs, reporter=reporter, cwd=cwd)
        paths = collect_sources(options.sources or DEFAULT_SOURCES, extractor.cwd)
    except er.ExtractorError as e:
        reporter.error(e.code, str(e), e.span)
        return 2

    if not paths:
        er.emit(reporter, er.ERR.EW0005, None)

    scan_files(paths, options.callee, reporter, extractor)
    if reporter.has_errors:
        return 2

    try:
        extractor.flush()
    except er.OutputError as e:
        reporter.error(e.code, str(e), e.span)
    return reporter.exit_code()
