# Xcode project model.
#
# This module defines the read-only view of an Xcode project (.xcodeproj) used while
# resolving code signing settings: the project's targets, their product types, the
# dependencies between them, and their build configurations.

import os

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union


# Product types found in PBXNativeTarget
class ProductType(Enum):
    APPLICATION = "com.apple.product-type.application"
    WATCH_APP = "com.apple.product-type.application.watchapp"
    WATCH2_APP = "com.apple.product-type.application.watchapp2"
    MESSAGES_APPLICATION = "com.apple.product-type.application.messages"
    APP_CLIP = "com.apple.product-type.application.on-demand-install-capable"
    WATCH2_APP_CONTAINER = "com.apple.product-type.application.watchapp2-container"
    APP_EXTENSION = "com.apple.product-type.app-extension"
    MESSAGES_EXTENSION = "com.apple.product-type.app-extension.messages"
    STICKER_PACK = "com.apple.product-type.app-extension.messages-sticker-pack"
    WATCH_EXTENSION = "com.apple.product-type.watchkit-extension"
    WATCH2_EXTENSION = "com.apple.product-type.watchkit2-extension"
    TV_APP_EXTENSION = "com.apple.product-type.tv-app-extension"
    EXTENSIONKIT_EXTENSION = "com.apple.product-type.extensionkit-extension"
    XCODE_EXTENSION = "com.apple.product-type.xcode-extension"
    FRAMEWORK = "com.apple.product-type.framework"
    STATIC_LIBRARY = "com.apple.product-type.library.static"
    DYNAMIC_LIBRARY = "com.apple.product-type.library.dynamic"
    BUNDLE = "com.apple.product-type.bundle"
    TOOL = "com.apple.product-type.tool"
    UNIT_TEST_BUNDLE = "com.apple.product-type.bundle.unit-test"
    UI_TEST_BUNDLE = "com.apple.product-type.bundle.ui-testing"
    OTHER = ""

    @staticmethod
    def from_identifier(identifier: Optional[str]) -> "ProductType":
        try:
            return ProductType(identifier or "")
        except ValueError:
            return ProductType.OTHER

    @property
    def is_embeddable(self) -> bool:
        return self in EMBEDDABLE_PRODUCT_TYPES


# Only applications and app extensions end up embedded in an archive
EMBEDDABLE_PRODUCT_TYPES = frozenset(
    {
        ProductType.APPLICATION,
        ProductType.WATCH_APP,
        ProductType.WATCH2_APP,
        ProductType.MESSAGES_APPLICATION,
        ProductType.APP_CLIP,
        ProductType.WATCH2_APP_CONTAINER,
        ProductType.APP_EXTENSION,
        ProductType.MESSAGES_EXTENSION,
        ProductType.STICKER_PACK,
        ProductType.WATCH_EXTENSION,
        ProductType.WATCH2_EXTENSION,
        ProductType.TV_APP_EXTENSION,
        ProductType.EXTENSIONKIT_EXTENSION,
        ProductType.XCODE_EXTENSION,
    }
)

# File extensions of application and app extension products
EMBEDDABLE_PRODUCT_EXTENSIONS = (".app", ".appex")


SettingValue = Union[str, List[str]]


@dataclass(frozen=True)
class Dependency:
    target_name: str
    # absolute path of the referenced .xcodeproj, empty for the same project
    container_path: str = ""


@dataclass
class BuildConfiguration:
    name: str
    build_settings: Dict[str, SettingValue] = field(default_factory=dict)
    # absolute path of the .xcconfig file the configuration is based on
    base_configuration_path: Optional[str] = None


@dataclass
class Target:
    id: str
    name: str
    product_type: ProductType
    dependencies: List[Dependency] = field(default_factory=list)
    build_configurations: List[BuildConfiguration] = field(default_factory=list)
    # PBXProject TargetAttributes entry, e.g. ProvisioningStyle
    attributes: Dict[str, str] = field(default_factory=dict)
    # path of the product file reference, e.g. "App.app"
    product_path: str = ""

    @property
    def is_runnable(self) -> bool:
        # the product file decides, the product type only without one
        if self.product_path:
            return os.path.splitext(self.product_path)[1] in EMBEDDABLE_PRODUCT_EXTENSIONS
        return self.product_type.is_embeddable

    def configuration(self, name: str) -> Optional[BuildConfiguration]:
        return next((c for c in self.build_configurations if c.name == name), None)


@dataclass
class ProjectContainer:
    path: str
    targets: List[Target] = field(default_factory=list)
    build_configurations: List[BuildConfiguration] = field(default_factory=list)

    @property
    def name(self) -> str:
        return os.path.splitext(os.path.basename(self.path))[0]

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    def target(self, name: str) -> Optional[Target]:
        return next((t for t in self.targets if t.name == name), None)

    def configuration(self, name: str) -> Optional[BuildConfiguration]:
        return next((c for c in self.build_configurations if c.name == name), None)
