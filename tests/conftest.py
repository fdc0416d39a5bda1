import os
import re
import uuid

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

APPLICATION = "com.apple.product-type.application"
APP_EXTENSION = "com.apple.product-type.app-extension"
STATIC_LIBRARY = "com.apple.product-type.library.static"
FRAMEWORK = "com.apple.product-type.framework"

PRODUCT_FILE_TYPES = {
    ".app": "wrapper.application",
    ".appex": "wrapper.app-extension",
    ".framework": "wrapper.framework",
    ".a": "archive.ar",
}

_BARE_STRING = re.compile(r"^[A-Za-z0-9_./]+$")


def make_id(key: str) -> str:
    return uuid.uuid5(uuid.NAMESPACE_X500, key).hex.upper()[:24]


def target_id(project_name: str, target_name: str) -> str:
    return make_id(f"{project_name}:target:{target_name}")


def format_string(value: str) -> str:
    if _BARE_STRING.match(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_value(value, indent: int) -> str:
    tabs = "\t" * indent
    if isinstance(value, dict):
        lines = [
            f"{tabs}\t{format_string(k)} = {format_value(v, indent + 1)};"
            for k, v in value.items()
        ]
        return "{\n" + "\n".join(lines) + f"\n{tabs}}}"
    if isinstance(value, list):
        lines = [f"{tabs}\t{format_value(v, indent + 1)}," for v in value]
        return "(\n" + "\n".join(lines) + f"\n{tabs})"
    return format_string(str(value))


# A target dependency is either a target name in the same project, or a
# (target name, relative path of the other .xcodeproj) pair
DependencySpec = Union[str, Tuple[str, str]]


@dataclass
class TargetSpec:
    name: str
    product_type: str = APPLICATION
    dependencies: Sequence[DependencySpec] = ()
    configurations: Dict[str, Dict[str, object]] = field(
        default_factory=lambda: {"Debug": {}, "Release": {}}
    )
    # configuration name -> .xcconfig path relative to the project directory
    xcconfigs: Dict[str, str] = field(default_factory=dict)
    attributes: Dict[str, str] = field(default_factory=dict)
    # product file reference path, e.g. "App.app", no reference when empty
    product_path: str = ""


class ProjectWriter:
    def __init__(self, name: str):
        self.name = name
        self.objects: Dict[str, Dict[str, object]] = {}
        self.main_group_children: List[str] = []

    def _file_reference(self, path: str, file_type: str) -> str:
        file_id = make_id(f"{self.name}:file:{path}")
        if file_id not in self.objects:
            self.objects[file_id] = {
                "isa": "PBXFileReference",
                "lastKnownFileType": file_type,
                "path": path,
                "sourceTree": "<group>",
            }
            self.main_group_children.append(file_id)
        return file_id

    def _product_reference(self, path: str) -> str:
        product_id = make_id(f"{self.name}:product:{path}")
        self.objects[product_id] = {
            "isa": "PBXFileReference",
            "explicitFileType": PRODUCT_FILE_TYPES.get(os.path.splitext(path)[1], "file"),
            "includeInIndex": "0",
            "path": path,
            "sourceTree": "BUILT_PRODUCTS_DIR",
        }
        return product_id

    def _configuration_list(
        self, owner: str, configurations: Dict[str, Dict[str, object]], xcconfigs: Dict[str, str]
    ) -> str:
        config_ids = []
        for config_name, settings in configurations.items():
            config_id = make_id(f"{self.name}:{owner}:config:{config_name}")
            config: Dict[str, object] = {
                "isa": "XCBuildConfiguration",
                "buildSettings": dict(settings),
                "name": config_name,
            }
            if config_name in xcconfigs:
                config["baseConfigurationReference"] = self._file_reference(
                    xcconfigs[config_name], "text.xcconfig"
                )
            self.objects[config_id] = config
            config_ids.append(config_id)
        list_id = make_id(f"{self.name}:{owner}:configlist")
        self.objects[list_id] = {
            "isa": "XCConfigurationList",
            "buildConfigurations": config_ids,
            "defaultConfigurationIsVisible": "0",
            "defaultConfigurationName": "Release",
        }
        return list_id

    def _dependency(self, project_id: str, owner: str, dependency: DependencySpec) -> str:
        if isinstance(dependency, str):
            dep_name, container = dependency, None
        else:
            dep_name, container = dependency
        proxy_id = make_id(f"{self.name}:{owner}:proxy:{dep_name}")
        dependency_id = make_id(f"{self.name}:{owner}:dependency:{dep_name}")
        if container is None:
            remote_id = target_id(self.name, dep_name)
            portal = project_id
        else:
            other_name = os.path.splitext(os.path.basename(container))[0]
            remote_id = target_id(other_name, dep_name)
            portal = self._file_reference(container, "wrapper.pb-project")
        self.objects[proxy_id] = {
            "isa": "PBXContainerItemProxy",
            "containerPortal": portal,
            "proxyType": "1",
            "remoteGlobalIDString": remote_id,
            "remoteInfo": dep_name,
        }
        dependency_object: Dict[str, object] = {
            "isa": "PBXTargetDependency",
            "targetProxy": proxy_id,
        }
        if container is None:
            dependency_object["target"] = remote_id
        self.objects[dependency_id] = dependency_object
        return dependency_id

    def render(
        self,
        targets: Sequence[TargetSpec],
        project_configurations: Dict[str, Dict[str, object]],
        project_xcconfigs: Dict[str, str],
    ) -> str:
        project_id = make_id(f"{self.name}:project")
        main_group_id = make_id(f"{self.name}:maingroup")
        target_ids = []
        target_attributes = {}
        for definition in targets:
            tid = target_id(self.name, definition.name)
            self.objects[tid] = {
                "isa": "PBXNativeTarget",
                "buildConfigurationList": self._configuration_list(
                    definition.name, definition.configurations, definition.xcconfigs
                ),
                "buildPhases": [],
                "buildRules": [],
                "dependencies": [
                    self._dependency(project_id, definition.name, d) for d in definition.dependencies
                ],
                "name": definition.name,
                "productName": definition.name,
                "productType": definition.product_type,
            }
            if definition.product_path:
                self.objects[tid]["productReference"] = self._product_reference(
                    definition.product_path
                )
            target_ids.append(tid)
            if definition.attributes:
                target_attributes[tid] = dict(definition.attributes)
        self.objects[project_id] = {
            "isa": "PBXProject",
            "attributes": {
                "LastUpgradeCheck": "1500",
                "TargetAttributes": target_attributes,
            },
            "buildConfigurationList": self._configuration_list(
                "project", project_configurations, project_xcconfigs
            ),
            "compatibilityVersion": "Xcode 14.0",
            "mainGroup": main_group_id,
            "projectDirPath": "",
            "projectRoot": "",
            "targets": target_ids,
        }
        self.objects[main_group_id] = {
            "isa": "PBXGroup",
            "children": list(self.main_group_children),
            "sourceTree": "<group>",
        }
        root = {
            "archiveVersion": "1",
            "classes": {},
            "objectVersion": "56",
            "objects": self.objects,
            "rootObject": project_id,
        }
        return "// !$*UTF8*$!\n" + format_value(root, 0) + "\n"


def scheme_xml(entries: Sequence[Tuple[bool, Sequence[Tuple[str, str]]]], archive_configuration: str) -> str:
    xentries = []
    for archivable, references in entries:
        xrefs = "".join(
            f'            <BuildableReference BuildableIdentifier="primary" '
            f'BlueprintIdentifier="{make_id(name)}" BuildableName="{name}.app" '
            f'BlueprintName="{name}" ReferencedContainer="{container}">\n'
            f"            </BuildableReference>\n"
            for name, container in references
        )
        xentries.append(
            f'         <BuildActionEntry buildForTesting="YES" buildForRunning="YES" '
            f'buildForProfiling="YES" buildForArchiving="{"YES" if archivable else "NO"}" '
            f'buildForAnalyzing="YES">\n{xrefs}         </BuildActionEntry>\n'
        )
    archive = ""
    if archive_configuration is not None:
        archive = (
            f'   <ArchiveAction buildConfiguration="{archive_configuration}" '
            f'revealArchiveInOrganizer="YES">\n   </ArchiveAction>\n'
        )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<Scheme LastUpgradeVersion="1500" version="1.7">\n'
        '   <BuildAction parallelizeBuildables="YES" buildImplicitDependencies="YES">\n'
        "      <BuildActionEntries>\n"
        + "".join(xentries)
        + "      </BuildActionEntries>\n"
        "   </BuildAction>\n" + archive + "</Scheme>\n"
    )


class XcodeFixtures:
    def __init__(self, root: Path):
        self.root = root

    def project(
        self,
        relative_path: str,
        targets: Sequence[TargetSpec],
        configurations: Optional[Dict[str, Dict[str, object]]] = None,
        xcconfigs: Optional[Dict[str, str]] = None,
    ) -> Path:
        project_path = self.root / relative_path
        project_path.mkdir(parents=True, exist_ok=True)
        name = project_path.stem
        content = ProjectWriter(name).render(
            targets,
            configurations if configurations is not None else {"Debug": {}, "Release": {}},
            xcconfigs or {},
        )
        (project_path / "project.pbxproj").write_text(content, encoding="utf-8")
        return project_path

    def scheme(
        self,
        project_path: Path,
        name: str,
        entries: Sequence[Tuple[bool, Sequence[Tuple[str, str]]]],
        archive_configuration: Optional[str] = "Release",
        user: Optional[str] = None,
    ) -> Path:
        if user is None:
            schemes_dir = project_path / "xcshareddata" / "xcschemes"
        else:
            schemes_dir = project_path / "xcuserdata" / f"{user}.xcuserdatad" / "xcschemes"
        schemes_dir.mkdir(parents=True, exist_ok=True)
        path = schemes_dir / f"{name}.xcscheme"
        path.write_text(scheme_xml(entries, archive_configuration), encoding="utf-8")
        return path

    def workspace(self, relative_path: str, project_locations: Sequence[str]) -> Path:
        workspace_path = self.root / relative_path
        workspace_path.mkdir(parents=True, exist_ok=True)
        refs = "".join(
            f'   <FileRef\n      location = "group:{location}">\n   </FileRef>\n'
            for location in project_locations
        )
        (workspace_path / "contents.xcworkspacedata").write_text(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<Workspace\n   version = "1.0">\n' + refs + "</Workspace>\n",
            encoding="utf-8",
        )
        return workspace_path

    def file(self, relative_path: str, content: Union[str, bytes]) -> Path:
        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path


@pytest.fixture
def xcode(tmp_path) -> XcodeFixtures:
    return XcodeFixtures(tmp_path)


# App (Release scheme) -> NotificationExt [app-extension], StaticLib [library],
# next to a CocoaPods project, inside App.xcworkspace
@pytest.fixture
def app_workspace(xcode):
    xcode.project(
        "App.xcodeproj",
        [
            TargetSpec(
                name="App",
                dependencies=["NotificationExt", "StaticLib"],
                configurations={
                    "Debug": {
                        "PRODUCT_BUNDLE_IDENTIFIER": "com.example.app.debug",
                        "INFOPLIST_FILE": "App/Info.plist",
                    },
                    "Release": {
                        "PRODUCT_BUNDLE_IDENTIFIER": "com.example.app",
                        "INFOPLIST_FILE": "App/Info.plist",
                        "CODE_SIGN_IDENTITY": "iPhone Distribution",
                        "PROVISIONING_PROFILE_SPECIFIER": "App Store Profile",
                        "PROVISIONING_PROFILE": "6bd6f4b2-8b49-4d1f-9e9b-2c6b0c1a2f10",
                    },
                },
                attributes={"ProvisioningStyle": "Manual"},
            ),
            TargetSpec(
                name="NotificationExt",
                product_type=APP_EXTENSION,
                configurations={
                    "Debug": {"PRODUCT_BUNDLE_IDENTIFIER": "com.example.app.debug.$(TARGET_NAME)"},
                    "Release": {"PRODUCT_BUNDLE_IDENTIFIER": "com.example.app.$(TARGET_NAME)"},
                },
            ),
            TargetSpec(name="StaticLib", product_type=STATIC_LIBRARY),
        ],
    )
    xcode.project("Pods/Pods.xcodeproj", [TargetSpec(name="Pods-App", product_type=FRAMEWORK)])
    xcode.scheme(
        xcode.root / "App.xcodeproj",
        "Release",
        [(True, [("App", "container:App.xcodeproj")])],
        archive_configuration="Release",
    )
    return xcode.workspace("App.xcworkspace", ["App.xcodeproj", "Pods/Pods.xcodeproj"])
