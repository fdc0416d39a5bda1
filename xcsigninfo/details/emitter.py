import dataclasses
import json
import logging
import sys
import traceback

from typing import Any, Callable, Dict, Optional, TextIO

from xcsigninfo.errors import RetryableError

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {k: _jsonable(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


# One line per cause, each indented two spaces deeper than its consequence
def format_error_chain(error: BaseException) -> str:
    lines = []
    depth = 0
    current = error
    while current is not None:
        reason = str(current) or current.__class__.__name__
        lines.append("  " * depth + reason)
        current = current.__cause__
        depth += 1
    return ":\n".join(lines)


def format_error(error: BaseException) -> str:
    trace = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    return f"{format_error_chain(error)}\n{trace}"


def success_document(data: Any) -> Dict[str, Any]:
    return {"data": _jsonable(data)}


def failure_document(error: BaseException) -> Dict[str, Any]:
    if isinstance(error, RetryableError):
        return {"retry": True, "error": format_error(error)}
    return {"error": format_error(error)}


def write_document(document: Dict[str, Any], file: TextIO) -> None:
    json.dump(document, file, indent=2)
    file.write("\n")


def emit(run: Callable[[], Any], file: Optional[TextIO] = None) -> int:
    """
    Run a resolution and write its single JSON document.

    Returns the process exit code: 0 on success and for retryable failures (the
    caller inspects the retry flag), 1 for any other failure.
    """
    file = file or sys.stdout
    try:
        data = run()
    except RetryableError as err:
        logger.warning("retryable failure: %s", err)
        write_document(failure_document(err), file)
        return 0
    except Exception as err:
        logger.debug("resolution failed", exc_info=True)
        write_document(failure_document(err), file)
        return 1
    write_document(success_document(data), file)
    return 0
