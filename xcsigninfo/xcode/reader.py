# Xcode project reader.
#
# Loads a .xcodeproj bundle with the pbxproj library and converts the objects we care
# about (targets, target dependencies, build configurations and their base .xcconfig
# files) into the read-only model defined in model.py.

import logging
import os

from typing import Dict, List, Optional

from pbxproj import XcodeProject

from xcsigninfo.errors import NotFoundError
from xcsigninfo.xcode.model import (
    BuildConfiguration,
    Dependency,
    ProductType,
    ProjectContainer,
    SettingValue,
    Target,
)

logger = logging.getLogger(__name__)


def _field(obj, name: str, default=None):
    value = getattr(obj, name, default)
    return default if value is None else value


def _public_fields(obj) -> Dict[str, object]:
    return {k: v for k, v in vars(obj).items() if not k.startswith("_")}


def _setting_value(value) -> SettingValue:
    if isinstance(value, list):
        return [str(v) for v in value]
    return str(value)


class ProjectReader:
    def __init__(self, project_path: str):
        self.path = os.path.abspath(project_path)
        self.directory = os.path.dirname(self.path)
        pbxproj_path = os.path.join(self.path, "project.pbxproj")
        if not os.path.isdir(self.path):
            raise NotFoundError(f"project not found: {self.path}")
        if not os.path.isfile(pbxproj_path):
            raise NotFoundError(f"project file not found: {pbxproj_path}")
        try:
            self.project = XcodeProject.load(pbxproj_path)
        except Exception as err:
            raise NotFoundError(f"failed to parse project file {pbxproj_path}") from err
        self.objects = self.project.objects
        self.root = self._object(str(self.project.rootObject))
        if self.root is None:
            raise NotFoundError(f"project object missing in {pbxproj_path}")
        self._parents = self._collect_group_parents()

    def read(self) -> ProjectContainer:
        target_attributes = self._target_attributes()
        targets = []
        for target_id in _field(self.root, "targets", []):
            obj = self._object(str(target_id))
            if obj is None:
                logger.warning("dangling target reference %s in %s", target_id, self.path)
                continue
            targets.append(
                Target(
                    id=str(target_id),
                    name=str(_field(obj, "name", "")),
                    product_type=ProductType.from_identifier(_field(obj, "productType")),
                    dependencies=self._dependencies(obj),
                    build_configurations=self._configurations(
                        _field(obj, "buildConfigurationList")
                    ),
                    attributes=target_attributes.get(str(target_id), {}),
                    product_path=self._product_path(obj),
                )
            )
        return ProjectContainer(
            path=self.path,
            targets=targets,
            build_configurations=self._configurations(
                _field(self.root, "buildConfigurationList")
            ),
        )

    def _target_attributes(self) -> Dict[str, Dict[str, str]]:
        attributes = _field(self.root, "attributes")
        target_attributes = _field(attributes, "TargetAttributes")
        if target_attributes is None:
            return {}
        return {
            str(target_id): {
                k: str(v)
                for k, v in _public_fields(values).items()
                if isinstance(v, str)
            }
            for target_id, values in _public_fields(target_attributes).items()
        }

    def _product_path(self, target) -> str:
        product_id = _field(target, "productReference")
        if product_id is None:
            return ""
        reference = self._object(str(product_id))
        if reference is None:
            return ""
        return str(_field(reference, "path", ""))

    def _configurations(self, list_id) -> List[BuildConfiguration]:
        if list_id is None:
            return []
        configuration_list = self._object(str(list_id))
        if configuration_list is None:
            return []
        configurations = []
        for config_id in _field(configuration_list, "buildConfigurations", []):
            obj = self._object(str(config_id))
            if obj is None:
                continue
            settings = _field(obj, "buildSettings")
            base_id = _field(obj, "baseConfigurationReference")
            configurations.append(
                BuildConfiguration(
                    name=str(_field(obj, "name", "")),
                    build_settings={
                        str(k): _setting_value(v)
                        for k, v in (_public_fields(settings) if settings else {}).items()
                    },
                    base_configuration_path=(
                        self._file_path(str(base_id)) if base_id else None
                    ),
                )
            )
        return configurations

    def _dependencies(self, target) -> List[Dependency]:
        dependencies = []
        for dependency_id in _field(target, "dependencies", []):
            obj = self._object(str(dependency_id))
            if obj is None:
                continue
            dependency = self._dependency(obj)
            if dependency is None:
                logger.warning("unable to resolve target dependency %s", dependency_id)
                continue
            dependencies.append(dependency)
        return dependencies

    def _dependency(self, obj) -> Optional[Dependency]:
        # Same project dependencies point straight at the target...
        local_id = _field(obj, "target")
        if local_id is not None:
            local = self._object(str(local_id))
            if local is not None:
                return Dependency(target_name=str(_field(local, "name", "")))
        # ...others go through a container item proxy
        proxy = self._object(str(_field(obj, "targetProxy", "")))
        if proxy is None:
            return None
        portal = str(_field(proxy, "containerPortal", ""))
        if portal == str(self.project.rootObject):
            remote = self._object(str(_field(proxy, "remoteGlobalIDString", "")))
            if remote is not None:
                return Dependency(target_name=str(_field(remote, "name", "")))
            return Dependency(target_name=str(_field(proxy, "remoteInfo", "")))
        container_path = self._file_path(portal)
        if container_path is None:
            return None
        return Dependency(
            target_name=str(_field(proxy, "remoteInfo", "")),
            container_path=container_path,
        )

    def _object(self, object_id: str):
        try:
            return self.objects[object_id]
        except KeyError:
            return None

    # Maps every group child to the group holding it, walking down from the main group
    def _collect_group_parents(self) -> Dict[str, str]:
        parents: Dict[str, str] = {}
        pending = [str(_field(self.root, "mainGroup", ""))]
        while pending:
            group_id = pending.pop()
            group = self._object(group_id)
            if group is None:
                continue
            for child_id in _field(group, "children", []):
                if str(child_id) not in parents:
                    parents[str(child_id)] = group_id
                    pending.append(str(child_id))
        return parents

    # Absolute path of a file reference, following <group> relative paths up the
    # group hierarchy to the project directory.
    def _file_path(self, file_id: str) -> Optional[str]:
        parts: List[str] = []
        current: Optional[str] = file_id
        while current is not None:
            obj = self._object(current)
            if obj is None:
                return None
            path = _field(obj, "path")
            source_tree = _field(obj, "sourceTree", "<group>")
            if path:
                parts.insert(0, str(path))
            if source_tree == "<absolute>":
                return os.path.normpath(os.path.join(*parts)) if parts else None
            if source_tree == "SOURCE_ROOT":
                break
            if source_tree != "<group>":
                # BUILT_PRODUCTS_DIR, SDKROOT, DEVELOPER_DIR... are unknown here
                return None
            current = self._parents.get(current)
        project_dir = os.path.join(
            self.directory, str(_field(self.root, "projectDirPath", ""))
        )
        return os.path.normpath(os.path.join(project_dir, *parts))


def read_project(project_path: str) -> ProjectContainer:
    logger.debug("reading project %s", project_path)
    return ProjectReader(project_path).read()
