# Provisioning profile inspection.
#
# Decodes the embedded.mobileprovision of an archived application with the platform's
# signature verification utility and derives the export method the profile allows.

import glob
import logging
import os
import plistlib
import subprocess

from typing import Any, Callable, Dict, List, Optional
from xml.parsers.expat import ExpatError

from xcsigninfo.errors import InputError, NotFoundError

logger = logging.getLogger(__name__)

DEVELOPMENT = "development"
AD_HOC = "ad-hoc"
ENTERPRISE = "enterprise"
APP_STORE = "app-store"
EXPORT_METHODS = (DEVELOPMENT, AD_HOC, ENTERPRISE, APP_STORE)

Runner = Callable[..., subprocess.CompletedProcess]


class ProfileDecoder:
    """
    Wrapper around `security cms -D -i <profile>`.

    The utility reads the signed profile and prints its embedded property list; a
    non-zero exit means the signature could not be decoded.
    """

    COMMAND = ["security", "cms", "-D", "-i"]

    def __init__(self, runner: Runner = subprocess.run):
        self.runner = runner

    def decode(self, profile_path: str) -> Dict[str, Any]:
        try:
            result = self.runner(
                [*self.COMMAND, profile_path], capture_output=True, check=False
            )
        except OSError as err:
            raise InputError(f"failed to run {self.COMMAND[0]} on {profile_path}") from err
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", "replace").strip() if result.stderr else ""
            raise InputError(
                f"failed to decode provisioning profile {profile_path} "
                f"(exit status {result.returncode}): {stderr}"
            )
        try:
            content = plistlib.loads(result.stdout)
        except (plistlib.InvalidFileException, ExpatError, ValueError) as err:
            raise InputError(
                f"provisioning profile {profile_path} is not a property list"
            ) from err
        if not isinstance(content, dict):
            raise InputError(f"provisioning profile {profile_path} is not a dictionary")
        # certificates are large binary blobs nobody downstream looks at
        content.pop("DeveloperCertificates", None)
        return content


def _is_true(value: Any) -> bool:
    return value is True or value == "true"


def export_method(profile: Dict[str, Any]) -> str:
    if profile.get("ProvisionedDevices") is None:
        if _is_true(profile.get("ProvisionsAllDevices")):
            return ENTERPRISE
        return APP_STORE
    entitlements = profile.get("Entitlements")
    if isinstance(entitlements, dict):
        if _is_true(entitlements.get("get-task-allow")):
            return DEVELOPMENT
        return AD_HOC
    return DEVELOPMENT


def embedded_profiles(archive_path: str) -> List[str]:
    applications_dir = os.path.join(glob.escape(archive_path), "Products", "Applications")
    pattern = os.path.join(applications_dir, "*.app", "embedded.mobileprovision")
    return sorted(glob.glob(pattern))


def archive_export_method(
    archive_path: str,
    method: Optional[str] = None,
    decoder: Optional[ProfileDecoder] = None,
) -> Dict[str, str]:
    """
    Determine the export method of an archive.

    An explicitly requested method is validated and returned unchanged, otherwise the
    first embedded provisioning profile of the archived applications decides.
    """
    if method:
        if method not in EXPORT_METHODS:
            raise InputError(
                f"unknown export method {method}, "
                f"expected one of: {', '.join(EXPORT_METHODS)}"
            )
        return {"method": method, "profile": ""}
    if not archive_path:
        raise InputError(
            "failed to determine export method: no archive path nor export method provided"
        )
    profiles = embedded_profiles(archive_path)
    if not profiles:
        raise NotFoundError(f"no embedded.mobileprovision found in {archive_path}")
    profile_path = profiles[0]
    logger.info("reading provisioning profile %s", profile_path)
    content = (decoder or ProfileDecoder()).decode(profile_path)
    return {"method": export_method(content), "profile": profile_path}


_BITCODE_FLAGS = {"yes": True, "true": True, "no": False, "false": False}


def _bitcode_flag(name: str, value: str) -> bool:
    try:
        return _BITCODE_FLAGS[value.lower()]
    except KeyError:
        raise InputError(f"invalid {name} value {value}, expected yes or no") from None


def export_options(
    method: str, upload_bitcode: str = "", compile_bitcode: str = ""
) -> Dict[str, Any]:
    """
    Build the export options property list for an export method.

    Uploading bitcode only applies to app-store exports, recompiling from bitcode only
    to the other methods. Unset flags are left out so the exporter's defaults apply.
    """
    options: Dict[str, Any] = {"method": method}
    if method == APP_STORE:
        if upload_bitcode:
            options["uploadBitcode"] = _bitcode_flag("uploadBitcode", upload_bitcode)
    elif compile_bitcode:
        options["compileBitcode"] = _bitcode_flag("compileBitcode", compile_bitcode)
    return options


def write_export_options(path: str, options: Dict[str, Any]) -> str:
    path = os.path.abspath(path)
    logger.info("writing export options to %s", path)
    try:
        with open(path, "wb") as f:
            plistlib.dump(options, f)
    except OSError as err:
        raise InputError(f"failed to write export options to {path}") from err
    return path
