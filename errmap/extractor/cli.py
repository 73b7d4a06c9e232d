"""errmap CLI - command line interface for error code extraction."""
from __future__ import annotations

import argparse
import sys

from errmap.internals.errors import ExtractorError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="errmap",
        description="Extract invariant messages into a stable error-code map",
    )
    parser.add_argument(
        "--version", action="store_true", help="Show version and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    # errmap extract [SOURCES...]
    extract_parser = subparsers.add_parser("extract", help="Update the error map and generate the error helpers")
    extract_parser.add_argument("sources", nargs="*", help="Source files or directories (default: src)")
    extract_parser.add_argument("--error-map", dest="error_map_file_path", metavar="PATH",
                                help="Path of the persisted error map (codes.json)")
    extract_parser.add_argument("--name", help="Package name used in the production error message")
    extract_parser.add_argument("--extract-errors", dest="lookup_url_prefix", nargs="?", const=True,
                                metavar="URL", help="Lookup url prefix the production helper links to")
    extract_parser.add_argument("--errors-dir", metavar="DIR",
                                help="Directory for ErrorDev.js and ErrorProd.js (default: errors)")
    extract_parser.add_argument("--callee", metavar="NAME", help="Assertion function name (default: invariant)")
    extract_parser.add_argument("--config", metavar="FILE",
                                help="Config file (default: errmap.toml or [tool.errmap] in pyproject.toml)")

    # errmap list [SOURCES...]
    list_parser = subparsers.add_parser("list", help="Show every assertion call and its message template")
    list_parser.add_argument("sources", nargs="*", help="Source files or directories (default: src)")
    list_parser.add_argument("--callee", metavar="NAME", default=None, help="Assertion function name (default: invariant)")
    list_parser.add_argument("--error-map", dest="error_map_file_path", metavar="PATH",
                             help="Show the code each template has in this map")

    # errmap decode CODE [ARGS...]
    decode_parser = subparsers.add_parser("decode", help="Print the full message for a minified error code")
    decode_parser.add_argument("code", help="Error code")
    decode_parser.add_argument("args", nargs="*", help="Values substituted for the %%s placeholders")
    decode_parser.add_argument("--error-map", dest="error_map_file_path", metavar="PATH", required=True,
                               help="Path of the persisted error map")

    return parser


def run(args: argparse.Namespace) -> int:
    if args.version:
        from errmap.internals.version import print_banner
        print_banner()
        return 0

    if args.command is None:
        build_parser().print_help()
        return 0

    if args.command == "extract":
        from errmap.extractor.commands.extract import cmd_extract
        return cmd_extract(args)

    if args.command == "list":
        from errmap.extractor.commands.list_cmd import cmd_list
        return cmd_list(args)

    if args.command == "decode":
        from errmap.extractor.commands.decode import cmd_decode
        return cmd_decode(args)

    return 0


def cli_main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return run(args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except ExtractorError as e:
        code = f"[{e.code}] " if e.code else ""
        print(f"error: {code}{e}", file=sys.stderr)
        return 2
