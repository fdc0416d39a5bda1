import logging
import os
import re

from typing import Dict, Set

from xcsigninfo.errors import NotFoundError

logger = logging.getLogger(__name__)

_INCLUDE = re.compile(r'^#include(\?)?\s+"([^"]+)"')
_ASSIGNMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*(?:\[[^\]]*\])*)\s*=\s*(.*)$")
_INHERITED = re.compile(r"\$(?:\(inherited\)|\{inherited\})")


def _strip_comment(line: str) -> str:
    # "//" starts a comment unless it is part of a URL-like value (e.g. https://)
    index = 0
    while True:
        index = line.find("//", index)
        if index < 0:
            return line
        if index == 0 or line[index - 1] != ":":
            return line[:index]
        index += 2


def _assign(settings: Dict[str, str], key: str, value: str):
    # a reassignment inherits the value it replaces, only the first assignment
    # of a key inherits from the levels below the file
    if key in settings:
        previous = settings[key]
        value = _INHERITED.sub(lambda _: previous, value).strip()
    settings[key] = value


def _read_into(path: str, settings: Dict[str, str], seen: Set[str]):
    path = os.path.normpath(os.path.abspath(path))
    if path in seen:
        logger.warning("ignoring recursive xcconfig include of %s", path)
        return
    seen.add(path)
    with open(path, encoding="utf-8") as f:
        for raw_line in f:
            line = raw_line.strip()
            include = _INCLUDE.match(line)
            if include:
                optional, included = include.groups()
                included_path = os.path.join(os.path.dirname(path), included)
                if not os.path.isfile(included_path):
                    if optional:
                        continue
                    raise NotFoundError(f"xcconfig include not found: {included_path}")
                _read_into(included_path, settings, seen)
                continue
            line = _strip_comment(line).strip().rstrip(";").strip()
            assignment = _ASSIGNMENT.match(line)
            if assignment:
                key, value = assignment.groups()
                _assign(settings, key, value.strip())


def read_xcconfig(path: str) -> Dict[str, str]:
    """
    Read the settings of an .xcconfig file, following #include directives.

    Included files are merged at the point of the directive. A later assignment
    replaces an earlier one, $(inherited) in it expands to the value it replaces.
    Optional includes (#include?) of missing files are ignored.
    """
    settings: Dict[str, str] = {}
    _read_into(path, settings, set())
    return settings
