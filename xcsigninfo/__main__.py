import logging
import os
import sys

from typing import List, Mapping, Optional

from xcsigninfo.details.emitter import emit
from xcsigninfo.details.tools.arguments import CommandArgumentParser
from xcsigninfo.details.tools.artifacts import (
    export_method_main,
    export_options_main,
    locate_ipa_main,
)
from xcsigninfo.details.tools.codesign import codesign_main
from xcsigninfo.details.tools.targets import targets_main

COMMANDS = {
    "codesign": codesign_main,
    "targets": targets_main,
    "export-method": export_method_main,
    "export-options": export_options_main,
    "locate-ipa": locate_ipa_main,
}


def configure_logging(verbose: bool):
    # stdout is reserved for the JSON document
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def dispatch(argv: List[str], environ: Mapping[str, str]):
    parser = CommandArgumentParser(prog="xcsigninfo")
    parser.add_argument("command", choices=COMMANDS.keys())
    parser.add_argument("--verbose", action="store_true")
    args, command_args = parser.parse_known_args(argv)
    configure_logging(args.verbose)
    return COMMANDS[args.command](command_args=command_args, environ=environ)


def main(argv: Optional[List[str]] = None):
    argv = sys.argv[1:] if argv is None else argv
    exit_code = emit(lambda: dispatch(argv, os.environ))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
