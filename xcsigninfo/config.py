import os

from dataclasses import dataclass
from typing import Mapping, Optional

from xcsigninfo.errors import InputError


# Inputs of a single resolution, built once at the entry point...
@dataclass(frozen=True)
class Request:
    project: str
    scheme: str
    user: str
    configuration: str = ""

    @property
    def root_dir(self) -> str:
        return os.path.dirname(self.project)

    @property
    def is_workspace(self) -> bool:
        return self.project.endswith(".xcworkspace")

    @staticmethod
    def from_inputs(
        *,
        project: Optional[str] = None,
        scheme: Optional[str] = None,
        user: Optional[str] = None,
        configuration: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Request":
        environ = environ if environ is not None else {}
        # explicit arguments win over the environment...
        project = project or environ.get("project", "")
        scheme = scheme or environ.get("scheme", "")
        user = user or environ.get("user", "") or environ.get("USER", "")
        configuration = configuration or environ.get("configuration", "")
        if not project:
            raise InputError("no project or workspace path specified")
        if not scheme:
            raise InputError("no scheme specified")
        if not user:
            raise InputError("no user specified")
        return Request(
            project=os.path.abspath(project.rstrip("/")),
            scheme=scheme,
            user=user,
            configuration=configuration,
        )
