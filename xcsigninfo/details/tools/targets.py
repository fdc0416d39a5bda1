from typing import Any, Dict, List, Mapping

from xcsigninfo import Request
from xcsigninfo.details.resolution import resolve
from xcsigninfo.details.target_graph import targets_by_project
from xcsigninfo.details.tools.arguments import parse_request


def resolve_targets(request: Request) -> Dict[str, Any]:
    resolution = resolve(request)
    return {
        "configuration": resolution.configuration,
        "targets": targets_by_project(resolution.targets),
    }


def targets_main(command_args: List[str], environ: Mapping[str, str]):
    request = parse_request("xcsigninfo targets", command_args, environ)
    return resolve_targets(request)
