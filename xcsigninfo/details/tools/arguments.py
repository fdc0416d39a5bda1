from argparse import ArgumentParser
from typing import List, Mapping

from xcsigninfo import Request
from xcsigninfo.errors import InputError


# Argument errors, --help included, become error documents: stdout only ever
# carries the JSON document
class CommandArgumentParser(ArgumentParser):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault("add_help", False)
        super().__init__(*args, **kwargs)

    def error(self, message):
        raise InputError(f"{self.prog}: {message}\n{self.format_usage().rstrip()}")


def parse_request(prog: str, command_args: List[str], environ: Mapping[str, str]) -> Request:
    parser = CommandArgumentParser(prog=prog)
    parser.add_argument("--project", help="path to a .xcodeproj or .xcworkspace")
    parser.add_argument("--scheme")
    parser.add_argument("--user", help="owner of private (non shared) schemes")
    parser.add_argument("--configuration", help="defaults to the scheme's archive action")
    args = parser.parse_args(command_args)
    return Request.from_inputs(
        project=args.project,
        scheme=args.scheme,
        user=args.user,
        configuration=args.configuration,
        environ=environ,
    )
