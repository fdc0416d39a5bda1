import logging
import os
import re

from typing import Callable, Dict, List, Optional, Tuple

from xcsigninfo.errors import InputError, NotFoundError
from xcsigninfo.xcode.model import ProjectContainer, Target
from xcsigninfo.xcode.reader import read_project

logger = logging.getLogger(__name__)

PROJECT_EXTENSION = ".xcodeproj"
WORKSPACE_EXTENSION = ".xcworkspace"
WORKSPACE_MANIFEST = "contents.xcworkspacedata"
PODS_PROJECT_SUFFIX = os.path.join("Pods", "Pods.xcodeproj")

_PROJECT_LOCATION = re.compile(r'(?:group|container):([^"\']*?\.xcodeproj)')


def workspace_project_paths(workspace_path: str) -> List[str]:
    manifest_path = os.path.join(workspace_path, WORKSPACE_MANIFEST)
    try:
        with open(manifest_path, encoding="utf-8") as f:
            manifest = f.read()
    except OSError as err:
        raise NotFoundError(f"failed to read workspace manifest {manifest_path}") from err
    workspace_dir = os.path.dirname(os.path.abspath(workspace_path))
    paths = [
        os.path.normpath(os.path.join(workspace_dir, location))
        for location in _PROJECT_LOCATION.findall(manifest)
    ]
    # CocoaPods projects never carry signing settings we care about
    return [p for p in paths if not p.endswith(PODS_PROJECT_SUFFIX)]


def locate_projects(path: str) -> List[str]:
    """
    Return every .xcodeproj to consider for a project or workspace path.

    A project yields itself, a workspace yields the projects referenced by its manifest
    in manifest order, without CocoaPods projects. Duplicates are preserved.
    """
    path = os.path.abspath(path.rstrip("/"))
    if path.endswith(PROJECT_EXTENSION):
        return [path]
    if path.endswith(WORKSPACE_EXTENSION):
        return workspace_project_paths(path)
    raise InputError(
        f"expected a path ending with '{PROJECT_EXTENSION}' or '{WORKSPACE_EXTENSION}', "
        f"got '{path}'"
    )


def dedupe(paths: List[str]) -> List[str]:
    return list(dict.fromkeys(paths))


class Workspace:
    """Projects opened during one resolution, each parsed at most once."""

    def __init__(
        self,
        root: str,
        loader: Callable[[str], ProjectContainer] = read_project,
    ):
        self.root = os.path.abspath(root.rstrip("/"))
        self.loader = loader
        self.projects: Dict[str, ProjectContainer] = {}

    @property
    def root_dir(self) -> str:
        return os.path.dirname(self.root)

    @property
    def candidate_projects(self) -> List[str]:
        return dedupe(locate_projects(self.root))

    def project(self, path: str) -> ProjectContainer:
        path = os.path.normpath(os.path.abspath(path))
        if path not in self.projects:
            self.projects[path] = self.loader(path)
        return self.projects[path]

    def find_target(
        self, name: str, container_path: str, outer: Optional[ProjectContainer]
    ) -> Tuple[ProjectContainer, Target]:
        if container_path:
            project = self.project(container_path)
        elif outer:
            project = outer
        else:
            raise NotFoundError(f"unable to locate project for target {name}")
        target = project.target(name)
        if target is None:
            raise NotFoundError(f"target {name} not found in project {project.path}")
        return project, target
