import logging

from typing import Dict, Iterator, List, Set, Tuple

from xcsigninfo.details.scheme import Scheme
from xcsigninfo.details.workspace import Workspace
from xcsigninfo.errors import GraphResolutionError, NotFoundError
from xcsigninfo.xcode.model import ProjectContainer, Target

logger = logging.getLogger(__name__)

ProjectTarget = Tuple[ProjectContainer, Target]


def target_key(project: ProjectContainer, target: Target) -> Tuple[str, str]:
    return project.path, target.name


def primary_target(workspace: Workspace, scheme: Scheme) -> ProjectTarget:
    entry = scheme.primary_entry()
    if entry is None or not entry.references:
        raise GraphResolutionError(f"scheme {scheme.name} has no buildable target")
    # only the first reference of an entry is canonical
    reference = entry.references[0]
    scheme_project = workspace.project(scheme.project_path)
    container_path = reference.container_abs_path(scheme_project.directory)
    try:
        return workspace.find_target(
            reference.target_name, container_path, outer=scheme_project
        )
    except NotFoundError as err:
        raise GraphResolutionError(
            f"unable to resolve buildable reference {reference.target_name} "
            f"of scheme {scheme.name}"
        ) from err


def runnable_targets(workspace: Workspace, scheme: Scheme) -> List[ProjectTarget]:
    """
    Resolve the embeddable targets built when archiving a scheme.

    The scheme's primary target comes first, followed by its runnable dependencies in
    depth-first declaration order. Non runnable dependencies are dead ends: neither
    added nor traversed. Every target is visited at most once, so dependency cycles
    terminate.
    """
    project, target = primary_target(workspace, scheme)
    if not target.is_runnable:
        product_type = target.product_type.value or "unknown product type"
        raise GraphResolutionError(
            f"scheme {scheme.name} builds {target.name} ({product_type}), "
            "which is neither an application nor an app extension"
        )
    return list(_depth_first(workspace, [(project, target)]))


def _depth_first(workspace: Workspace, start: List[ProjectTarget]) -> Iterator[ProjectTarget]:
    visited: Set[Tuple[str, str]] = set()
    stack = list(reversed(start))
    while stack:
        project, target = stack.pop()
        key = target_key(project, target)
        if key in visited:
            continue
        visited.add(key)
        yield project, target
        pending = []
        for dependency in target.dependencies:
            try:
                dep_project, dep_target = workspace.find_target(
                    dependency.target_name, dependency.container_path, outer=project
                )
            except NotFoundError as err:
                raise GraphResolutionError(
                    f"unable to resolve dependency {dependency.target_name} of {target.name}"
                ) from err
            if not dep_target.is_runnable:
                logger.debug("skipping non runnable dependency %s", dep_target.name)
                continue
            pending.append((dep_project, dep_target))
        # reversed so dependencies pop in declaration order
        stack.extend(reversed(pending))


def targets_by_project(targets: List[ProjectTarget]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for project, target in targets:
        grouped.setdefault(project.path, []).append(target.name)
    return grouped
