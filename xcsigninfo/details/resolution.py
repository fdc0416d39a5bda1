import logging

from dataclasses import dataclass
from typing import Callable, List

from xcsigninfo import Request
from xcsigninfo.details.build_settings import effective_configuration
from xcsigninfo.details.scheme import Scheme, resolve_scheme
from xcsigninfo.details.target_graph import ProjectTarget, runnable_targets
from xcsigninfo.details.workspace import Workspace
from xcsigninfo.xcode.model import ProjectContainer
from xcsigninfo.xcode.reader import read_project

logger = logging.getLogger(__name__)


@dataclass
class Resolution:
    request: Request
    workspace: Workspace
    scheme: Scheme
    configuration: str
    targets: List[ProjectTarget]


def resolve(
    request: Request, loader: Callable[[str], ProjectContainer] = read_project
) -> Resolution:
    # Locator -> scheme -> target graph, configuration checked before any settings are read
    workspace = Workspace(request.project, loader=loader)
    candidates = workspace.candidate_projects
    logger.info("candidate projects: %s", ", ".join(candidates))
    scheme = resolve_scheme(candidates, request.scheme, request.user)
    configuration = effective_configuration(request.configuration, scheme)
    logger.info("scheme %s, configuration %s", scheme.path, configuration)
    targets = runnable_targets(workspace, scheme)
    logger.info("runnable targets: %s", ", ".join(t.name for _, t in targets))
    return Resolution(
        request=request,
        workspace=workspace,
        scheme=scheme,
        configuration=configuration,
        targets=targets,
    )
