from typing import Optional


class ResolutionError(Exception):
    pass


# Missing or empty required input
class InputError(ResolutionError):
    pass


# Scheme, target, build configuration or project file absent
class NotFoundError(ResolutionError):
    pass


# More than one candidate artifact matches a lookup by name
class AmbiguousResultError(ResolutionError):
    pass


# Primary target missing, unresolved buildable reference, or no runnable target
class GraphResolutionError(ResolutionError):
    pass


class RemoteError(ResolutionError):
    def __init__(self, message: str, preferred_message: Optional[str] = None):
        super().__init__(message)
        self.preferred_message = preferred_message

    def __str__(self):
        if self.preferred_message:
            return self.preferred_message
        return super().__str__()


# Transient remote condition, the caller re-invokes instead of failing
class RetryableError(RemoteError):
    retry = True
