"""errmap list - show assertion calls and their message templates."""
import argparse

from errmap.extract.scanner import DEFAULT_CALLEE
from errmap.extractor.filesystem import LocalFileSystem
from errmap.extractor.loader import collect_sources, get_effective_cwd
from errmap.extractor.pipeline import DEFAULT_SOURCES, RUN_FILENAME, load_index, scan_files
from errmap.internals.errors import ExtractorError
from errmap.internals.report import Reporter


def cmd_list(args: argparse.Namespace) -> int:
    cwd = get_effective_cwd()
    reporter = Reporter(filename=RUN_FILENAME)
    try:
        paths = collect_sources(args.sources or DEFAULT_SOURCES, cwd)
    except ExtractorError as e:
        reporter.error(e.code, str(e), e.span)
        reporter.print()
        return 2

    index = None
    if args.error_map_file_path:
        index = load_index(LocalFileSystem(), cwd / args.error_map_file_path, reporter)
    found = scan_files(paths, args.callee or DEFAULT_CALLEE, reporter)

    for path, message in found:
        where = str(path.relative_to(cwd)) if path.is_relative_to(cwd) else str(path)
        loc = message.call.loc
        if loc is not None:
            where += f":{loc.line}:{loc.col}"
        code = ""
        if index is not None:
            known = index.code_of(message.template)
            code = f"{'new' if known is None else known:>5}  "
        print(f"{code}{where}  {message.template!r}")

    if found:
        print(f"\n{len(found)} call(s) in {len(paths)} file(s).")
    else:
        print("No assertion calls found.")
    reporter.print()
    return reporter.exit_code()
