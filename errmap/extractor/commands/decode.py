"""errmap decode - print the full message for a minified error code."""
import argparse

from errmap.extract.evaluator import format_template
from errmap.extractor.filesystem import LocalFileSystem
from errmap.extractor.loader import get_effective_cwd
from errmap.extractor.pipeline import RUN_FILENAME, read_error_map
from errmap.internals import errors as er
from errmap.internals.report import Reporter
from errmap.store.error_map import CODE_RE, load_error_map


def cmd_decode(args: argparse.Namespace) -> int:
    path = get_effective_cwd() / args.error_map_file_path
    reporter = Reporter(filename=RUN_FILENAME)
    error_map = load_error_map(read_error_map(LocalFileSystem(), path, reporter), reporter, str(path))

    template = error_map.get(args.code) if CODE_RE.fullmatch(args.code) else None
    if template is None:
        er.emit(reporter, er.ERR.EM0001, None, code=args.code)
        reporter.print()
        return 2

    print(format_template(template, args.args))
    reporter.print()
    return reporter.exit_code()
