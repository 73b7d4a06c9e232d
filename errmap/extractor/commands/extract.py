"""errmap extract - update the error map and regenerate the helpers."""
import argparse
from pathlib import Path

from errmap.extractor.config import ExtractOptions, find_config, load_config
from errmap.extractor.loader import get_effective_cwd
from errmap.extractor.pipeline import RUN_FILENAME, run_extraction
from errmap.internals.report import Reporter


def options_from_args(args: argparse.Namespace, cwd: Path) -> ExtractOptions:
    """Config file options with the command line flags applied on top."""
    config_path = Path(args.config) if args.config else find_config(cwd)
    options = load_config(config_path) if config_path else ExtractOptions()
    return options.merged({
        "error_map_file_path": args.error_map_file_path,
        "name": args.name,
        "lookup_url_prefix": args.lookup_url_prefix,
        "errors_dir": args.errors_dir,
        "callee": args.callee,
        "sources": args.sources or None,
    })


def cmd_extract(args: argparse.Namespace) -> int:
    cwd = get_effective_cwd()
    options = options_from_args(args, cwd)
    reporter = Reporter(filename=RUN_FILENAME)
    status = run_extraction(options, reporter, cwd=cwd)
    reporter.print()
    return status
