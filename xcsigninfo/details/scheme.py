import logging
import os

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from xml.dom import minidom
from xml.dom.minidom import Element
from xml.parsers.expat import ExpatError

from xcsigninfo.details.workspace import dedupe
from xcsigninfo.errors import GraphResolutionError, NotFoundError

logger = logging.getLogger(__name__)

SCHEME_EXTENSION = ".xcscheme"
CONTAINER_PREFIX = "container:"


@dataclass(frozen=True)
class BuildableReference:
    target_name: str
    # "container:App.xcodeproj" style token, empty means the scheme's own project
    container: str = ""
    blueprint_identifier: str = ""

    @property
    def container_path(self) -> str:
        if self.container.startswith(CONTAINER_PREFIX):
            return self.container[len(CONTAINER_PREFIX) :]
        return self.container

    def container_abs_path(self, base_dir: str) -> str:
        if not self.container_path:
            return ""
        return os.path.normpath(os.path.join(base_dir, self.container_path))


@dataclass(frozen=True)
class BuildActionEntry:
    archivable: bool
    references: List[BuildableReference] = field(default_factory=list)


@dataclass(frozen=True)
class Scheme:
    name: str
    path: str
    # project the scheme file was found in
    project_path: str
    shared: bool
    entries: List[BuildActionEntry] = field(default_factory=list)
    archive_configuration: str = ""

    def primary_entry(self) -> Optional[BuildActionEntry]:
        # first archivable entry, else the first declared one
        for entry in self.entries:
            if entry.archivable:
                return entry
        return self.entries[0] if self.entries else None


def shared_schemes_dir(project_path: str) -> str:
    return os.path.join(project_path, "xcshareddata", "xcschemes")


def user_schemes_dir(project_path: str, user: str) -> str:
    return os.path.join(project_path, "xcuserdata", f"{user}.xcuserdatad", "xcschemes")


def shared_scheme_names(project_path: str) -> List[str]:
    schemes_dir = shared_schemes_dir(project_path)
    if not os.path.isdir(schemes_dir):
        return []
    return sorted(
        os.path.splitext(name)[0]
        for name in os.listdir(schemes_dir)
        if name.endswith(SCHEME_EXTENSION)
    )


def scheme_path(project_path: str, name: str, user: str) -> Tuple[str, bool]:
    if name in shared_scheme_names(project_path):
        return os.path.join(shared_schemes_dir(project_path), name + SCHEME_EXTENSION), True
    return os.path.join(user_schemes_dir(project_path, user), name + SCHEME_EXTENSION), False


def _child_elements(parent: Element, tag: str) -> List[Element]:
    return [
        node
        for node in parent.childNodes
        if isinstance(node, Element) and node.tagName == tag
    ]


def _parse_entry(xentry: Element) -> BuildActionEntry:
    references = [
        BuildableReference(
            target_name=xref.getAttribute("BlueprintName"),
            container=xref.getAttribute("ReferencedContainer"),
            blueprint_identifier=xref.getAttribute("BlueprintIdentifier"),
        )
        for xref in xentry.getElementsByTagName("BuildableReference")
    ]
    return BuildActionEntry(
        archivable=xentry.getAttribute("buildForArchiving") == "YES",
        references=references,
    )


def parse_scheme(path: str, name: str, project_path: str, shared: bool) -> Scheme:
    try:
        xdoc = minidom.parse(path)
    except (ExpatError, OSError) as err:
        raise GraphResolutionError(f"failed to parse scheme file {path}") from err
    xroot = xdoc.documentElement
    entries = [
        _parse_entry(xentry)
        for xaction in _child_elements(xroot, "BuildAction")
        for xentries in _child_elements(xaction, "BuildActionEntries")
        for xentry in _child_elements(xentries, "BuildActionEntry")
    ]
    archive_configuration = ""
    for xarchive in _child_elements(xroot, "ArchiveAction"):
        archive_configuration = xarchive.getAttribute("buildConfiguration")
    return Scheme(
        name=name,
        path=path,
        project_path=project_path,
        shared=shared,
        entries=entries,
        archive_configuration=archive_configuration,
    )


def resolve_project_scheme(project_path: str, name: str, user: str) -> Optional[Scheme]:
    """
    Resolve a scheme against one project.

    Shared schemes win over the user's private ones. Returns None when the scheme file
    does not exist, so callers scanning a workspace can move on to the next project.
    """
    path, shared = scheme_path(project_path, name, user)
    if not os.path.isfile(path):
        logger.debug("scheme %s not found at %s", name, path)
        return None
    logger.debug("using %s scheme %s", "shared" if shared else "user", path)
    return parse_scheme(path, name, project_path, shared)


def resolve_scheme(project_paths: List[str], name: str, user: str) -> Scheme:
    # first project holding the scheme wins
    for project_path in dedupe(project_paths):
        scheme = resolve_project_scheme(project_path, name, user)
        if scheme is not None:
            return scheme
    raise NotFoundError(
        f"scheme {name} not found for user {user} in: {', '.join(project_paths)}"
    )
