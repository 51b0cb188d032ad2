"""CLI tool to compile a FreeRADIUS dictionary into Python attribute modules."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dict_struct import DictionaryError
from raddict_codegen import generate_sources
from raddict_config import DEFAULT_RUNTIME_PACKAGE, CompilerConfig, configure_logging
from raddict_conversion import registry_to_json_dict
from raddict_parser import load_dictionary

logger = logging.getLogger(__name__)

USAGE = (
    "Requires 3 arguments: [namespace] [dictionary-dir] [output-dir]\n"
    "\tnamespace:       Dotted name of the package to be built (e.g. net.dictionary)\n"
    "\tdictionary-dir:  Directory where the FreeRADIUS 'dictionary' file is\n"
    "\toutput-dir:      Directory where to write the generated Python modules\n"
)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raddict",
        description="Compile a FreeRADIUS dictionary into Python attribute modules.",
    )
    parser.add_argument("args", nargs="*", help="namespace, dictionary directory, output directory")
    parser.add_argument(
        "--runtime-package",
        default=DEFAULT_RUNTIME_PACKAGE,
        help=f"Package providing the attribute base classes (default: {DEFAULT_RUNTIME_PACKAGE})",
    )
    parser.add_argument(
        "--strict-scopes",
        action="store_true",
        help="Reject BEGIN-/END- directives that do not pair up instead of tolerating them.",
    )
    parser.add_argument(
        "--dump-json",
        metavar="PATH",
        default=None,
        help="Also write the parsed registry as JSON to PATH.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More log output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if len(args.args) != 3:
        sys.stderr.write(USAGE)
        return 2

    configure_logging(-1 if args.quiet else args.verbose)
    namespace, dict_dir, out_dir = args.args
    try:
        config = CompilerConfig(
            namespace=namespace,
            dictionary_dir=dict_dir,
            output_dir=out_dir,
            runtime_package=args.runtime_package,
            strict_scopes=args.strict_scopes,
        )
        registry = load_dictionary(config)
    except DictionaryError as e:
        logger.error("%s", e)
        return 1

    if args.dump_json:
        with open(args.dump_json, "w", encoding="utf-8") as fw:
            json.dump(registry_to_json_dict(registry), fw, indent=4)

    generate_sources(registry, config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
