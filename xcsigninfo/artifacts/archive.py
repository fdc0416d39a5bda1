import glob
import logging
import os
import plistlib

from typing import Any, Dict
from xml.parsers.expat import ExpatError

from xcsigninfo.errors import AmbiguousResultError, InputError, NotFoundError

logger = logging.getLogger(__name__)


def read_info_plist(path: str) -> Dict[str, Any]:
    if not os.path.isfile(path):
        raise NotFoundError(f"no Info.plist found at {path}")
    try:
        with open(path, "rb") as f:
            content = plistlib.load(f)
    except (plistlib.InvalidFileException, ExpatError, ValueError) as err:
        raise InputError(f"failed to read {path}") from err
    if not isinstance(content, dict):
        raise InputError(f"{path} is not a dictionary")
    return content


def archive_name(archive_path: str) -> str:
    info = read_info_plist(os.path.join(archive_path, "Info.plist"))
    name = info.get("Name")
    if not isinstance(name, str) or not name:
        raise NotFoundError(f"failed to read the application name of {archive_path}")
    return name


def locate_ipa(archive_path: str, output_dir: str) -> str:
    """
    Find the .ipa exported from an archive.

    The archive's application name is tried first, otherwise the output directory must
    contain exactly one .ipa.
    """
    name = archive_name(archive_path)
    ipa_path = os.path.join(output_dir, f"{name}.ipa")
    if os.path.isfile(ipa_path):
        return os.path.abspath(ipa_path)
    logger.info("no %s.ipa found, searching for other .ipa files", name)
    candidates = sorted(glob.glob(os.path.join(glob.escape(output_dir), "*.ipa")))
    if len(candidates) > 1:
        raise AmbiguousResultError(
            f"more than one .ipa found in {output_dir}: {', '.join(candidates)}"
        )
    if not candidates:
        raise NotFoundError(f"no .ipa found in {output_dir}")
    return os.path.abspath(candidates[0])
