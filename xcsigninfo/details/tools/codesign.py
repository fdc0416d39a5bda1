import logging

from typing import Dict, List, Mapping

from xcsigninfo import Request
from xcsigninfo.details.build_settings import CodeSignInfo, code_sign_info
from xcsigninfo.details.resolution import Resolution, resolve
from xcsigninfo.details.tools.arguments import parse_request

logger = logging.getLogger(__name__)


def code_sign_infos(resolution: Resolution) -> Dict[str, CodeSignInfo]:
    infos: Dict[str, CodeSignInfo] = {}
    for project, target in resolution.targets:
        if target.name in infos:
            logger.warning(
                "target %s of %s shadowed by the one in %s",
                target.name,
                project.path,
                infos[target.name].project_path,
            )
            continue
        infos[target.name] = code_sign_info(
            project,
            target,
            resolution.configuration,
            root_dir=resolution.request.root_dir,
        )
    return infos


def resolve_code_sign_infos(request: Request) -> Dict[str, CodeSignInfo]:
    return code_sign_infos(resolve(request))


def codesign_main(command_args: List[str], environ: Mapping[str, str]):
    request = parse_request("xcsigninfo codesign", command_args, environ)
    return resolve_code_sign_infos(request)
