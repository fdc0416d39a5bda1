import fnmatch
import logging
import os
import re

from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from xcsigninfo.xcode.model import SettingValue

logger = logging.getLogger(__name__)

# $(NAME), ${NAME}, optionally followed by ":modifier[,modifier...]"
_REFERENCE = re.compile(
    r"\$(?:\(([A-Za-z0-9_]+)(?::([^)]*))?\)|\{([A-Za-z0-9_]+)(?::([^}]*))?\})"
)
# [sdk=iphoneos*][arch=arm64] suffix of a conditional setting key
_CONDITION = re.compile(r"\[([A-Za-z_]+)=([^\]]*)\]")

Level = Mapping[str, SettingValue]


def _rfc1034_identifier(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9.\-]", "-", value)


def _c99_identifier(value: str) -> str:
    identifier = re.sub(r"[^A-Za-z0-9_]", "_", value)
    if identifier[:1].isdigit():
        identifier = "_" + identifier
    return identifier


MODIFIERS: Dict[str, Callable[[str], str]] = {
    "rfc1034identifier": _rfc1034_identifier,
    "c99extidentifier": _c99_identifier,
    "identifier": _c99_identifier,
    "lower": str.lower,
    "upper": str.upper,
    "base": lambda v: os.path.splitext(os.path.basename(v))[0],
    "dir": os.path.dirname,
    "file": os.path.basename,
    "suffix": lambda v: os.path.splitext(v)[1],
}


def apply_modifiers(value: str, modifiers: str) -> str:
    for modifier in filter(None, modifiers.split(",")):
        if modifier.startswith("default="):
            value = value or modifier[len("default=") :]
        elif modifier in MODIFIERS:
            value = MODIFIERS[modifier](value)
        else:
            logger.debug("ignoring unsupported build setting modifier %s", modifier)
    return value


def conditions_match(suffix: str, conditions: Mapping[str, str]) -> bool:
    parsed: List[Tuple[str, str]] = _CONDITION.findall(suffix)
    if not parsed or "".join(f"[{k}={v}]" for k, v in parsed) != suffix:
        return False
    for name, pattern in parsed:
        value = conditions.get(name)
        if value is None:
            # conditions we know nothing about (arch, variant...) only match "*"
            if pattern != "*":
                return False
        elif not fnmatch.fnmatchcase(value, pattern):
            return False
    return True


# Look up a setting in one level, conditional keys beat the plain key...
def lookup(level: Level, name: str, conditions: Mapping[str, str]) -> Optional[SettingValue]:
    prefix = name + "["
    for key, value in level.items():
        if key.startswith(prefix) and conditions_match(key[len(name) :], conditions):
            return value
    return level.get(name)


class BuildSettings:
    """
    Layered build settings with Xcode style expansion.

    Levels are ordered from most to least specific, for a target this is: target
    configuration, target .xcconfig, project configuration, project .xcconfig, builtin
    settings. A value is taken from the first level defining it, $(inherited) continues
    the lookup in the levels below it, and every other $(NAME) or ${NAME} reference is
    resolved from the top again. Unknown references expand to an empty string.
    """

    def __init__(
        self, levels: Sequence[Level], conditions: Optional[Mapping[str, str]] = None
    ):
        self.levels = list(levels)
        self.conditions = dict(conditions or {})

    def get(self, name: str) -> str:
        return self._resolve(name, 0, frozenset())

    def _resolve(
        self, name: str, start: int, resolving: FrozenSet[Tuple[str, int]]
    ) -> str:
        if (name, start) in resolving:
            logger.warning("recursive build setting reference to %s", name)
            return ""
        for index in range(start, len(self.levels)):
            value = lookup(self.levels[index], name, self.conditions)
            if value is not None:
                return self._expand(value, name, index, resolving | {(name, start)})
        return ""

    def _expand(
        self,
        value: SettingValue,
        name: str,
        index: int,
        resolving: FrozenSet[Tuple[str, int]],
    ) -> str:
        if isinstance(value, list):
            value = " ".join(value)

        def replace(match: "re.Match") -> str:
            reference = match.group(1) or match.group(3)
            modifiers = match.group(2) or match.group(4) or ""
            if reference == "inherited":
                resolved = self._resolve(name, index + 1, resolving)
            else:
                resolved = self._resolve(reference, 0, resolving)
            return apply_modifiers(resolved, modifiers)

        return _REFERENCE.sub(replace, value).strip()
