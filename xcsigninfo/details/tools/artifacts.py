from typing import List, Mapping

from xcsigninfo.artifacts.archive import locate_ipa
from xcsigninfo.artifacts.provisioning import (
    EXPORT_METHODS,
    archive_export_method,
    export_options,
    write_export_options,
)
from xcsigninfo.details.tools.arguments import CommandArgumentParser
from xcsigninfo.errors import InputError


def _add_method_arguments(parser: CommandArgumentParser, environ: Mapping[str, str]):
    parser.add_argument("--archive", default=environ.get("archive_path", ""))
    parser.add_argument(
        "--method",
        default=environ.get("export_method", ""),
        help=f"one of: {', '.join(EXPORT_METHODS)}",
    )


def export_method_main(command_args: List[str], environ: Mapping[str, str]):
    parser = CommandArgumentParser(prog="xcsigninfo export-method")
    _add_method_arguments(parser, environ)
    args = parser.parse_args(command_args)
    return archive_export_method(args.archive, method=args.method)


def export_options_main(command_args: List[str], environ: Mapping[str, str]):
    parser = CommandArgumentParser(prog="xcsigninfo export-options")
    _add_method_arguments(parser, environ)
    parser.add_argument(
        "--export-options-path", default=environ.get("export_options_path", "")
    )
    parser.add_argument("--upload-bitcode", default=environ.get("upload_bitcode", ""))
    parser.add_argument("--compile-bitcode", default=environ.get("compile_bitcode", ""))
    args = parser.parse_args(command_args)
    if not args.export_options_path:
        raise InputError("no export options path specified")
    result = archive_export_method(args.archive, method=args.method)
    options = export_options(
        result["method"],
        upload_bitcode=args.upload_bitcode,
        compile_bitcode=args.compile_bitcode,
    )
    return {
        **result,
        "export_options_path": write_export_options(args.export_options_path, options),
        "export_options": options,
    }


def locate_ipa_main(command_args: List[str], environ: Mapping[str, str]):
    parser = CommandArgumentParser(prog="xcsigninfo locate-ipa")
    parser.add_argument("--archive", default=environ.get("archive_path", ""))
    parser.add_argument("--output-dir", default=environ.get("output_dir", ""))
    args = parser.parse_args(command_args)
    if not args.archive:
        raise InputError("no archive path specified")
    if not args.output_dir:
        raise InputError("no output directory specified")
    return {"ipa_path": locate_ipa(args.archive, args.output_dir)}
