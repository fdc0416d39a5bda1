import logging
import os

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from xcsigninfo.details.scheme import Scheme
from xcsigninfo.details.variable_expansion import BuildSettings, Level
from xcsigninfo.errors import InputError, NotFoundError
from xcsigninfo.xcode.model import BuildConfiguration, ProjectContainer, Target
from xcsigninfo.xcode.xcconfig import read_xcconfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CodeSignInfo:
    project_path: str
    info_plist_path: str
    configuration: str
    provisioning_style: str
    bundle_id: str
    code_sign_identity: str
    provisioning_profile_specifier: str
    provisioning_profile: str
    sdk: str


def effective_configuration(configuration: str, scheme: Scheme) -> str:
    # explicit configuration wins over the scheme's archive action default
    name = configuration or scheme.archive_configuration
    if not name:
        raise InputError(
            f"no configuration provided nor default defined for the scheme's "
            f"({scheme.name}) archive action"
        )
    return name


def builtin_settings(
    project: ProjectContainer, target: Target, configuration: str
) -> Dict[str, str]:
    return {
        "TARGET_NAME": target.name,
        "TARGETNAME": target.name,
        "PRODUCT_NAME": "$(TARGET_NAME)",
        "PROJECT_NAME": project.name,
        "PROJECT_DIR": project.directory,
        "PROJECT_FILE_PATH": project.path,
        "SRCROOT": project.directory,
        "SOURCE_ROOT": project.directory,
        "CONFIGURATION": configuration,
    }


def _configuration_levels(configuration: Optional[BuildConfiguration]) -> List[Level]:
    if configuration is None:
        return []
    levels: List[Level] = [configuration.build_settings]
    if configuration.base_configuration_path:
        if os.path.isfile(configuration.base_configuration_path):
            levels.append(read_xcconfig(configuration.base_configuration_path))
        else:
            logger.warning(
                "base configuration %s of %s not found",
                configuration.base_configuration_path,
                configuration.name,
            )
    return levels


def normalize_sdk(sdk: str) -> str:
    # "/.../iPhoneOS13.4.sdk" and "iphoneos13.4" both become "iphoneos13.4"
    sdk = sdk.lower()
    if sdk.endswith(".sdk"):
        sdk = os.path.splitext(os.path.basename(sdk))[0]
    return sdk


def target_build_settings(
    project: ProjectContainer, target: Target, configuration: str
) -> Tuple[BuildSettings, str]:
    target_configuration = target.configuration(configuration)
    if target_configuration is None:
        raise NotFoundError(
            f"build configuration {configuration} not found for target {target.name}"
        )
    # target settings, target xcconfig, project settings, project xcconfig, builtins
    levels = [
        *_configuration_levels(target_configuration),
        *_configuration_levels(project.configuration(configuration)),
        builtin_settings(project, target, configuration),
    ]
    sdk = normalize_sdk(BuildSettings(levels, {"config": configuration}).get("SDKROOT"))
    return BuildSettings(levels, {"sdk": sdk, "config": configuration}), sdk


def absolute_info_plist(info_plist: str, root_dir: str) -> str:
    if not info_plist:
        return ""
    return os.path.normpath(os.path.join(root_dir, info_plist))


def code_sign_info(
    project: ProjectContainer, target: Target, configuration: str, root_dir: str
) -> CodeSignInfo:
    """
    Read the code signing settings of a target for a build configuration.

    Every setting is optional and defaults to an empty string. The Info.plist path is
    anchored at root_dir, the directory holding the project or workspace the
    resolution started from.
    """
    settings, sdk = target_build_settings(project, target, configuration)
    # newer projects track the style in the configuration, older ones as a target attribute
    provisioning_style = target.attributes.get("ProvisioningStyle") or settings.get(
        "CODE_SIGN_STYLE"
    )
    return CodeSignInfo(
        project_path=project.path,
        info_plist_path=absolute_info_plist(settings.get("INFOPLIST_FILE"), root_dir),
        configuration=configuration,
        provisioning_style=provisioning_style,
        bundle_id=settings.get("PRODUCT_BUNDLE_IDENTIFIER"),
        code_sign_identity=settings.get("CODE_SIGN_IDENTITY"),
        provisioning_profile_specifier=settings.get("PROVISIONING_PROFILE_SPECIFIER"),
        provisioning_profile=settings.get("PROVISIONING_PROFILE"),
        sdk=sdk,
    )
