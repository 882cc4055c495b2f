"""Wrapping of calls into external collaborators."""

from typing import Any, Callable

from ..errors import ExternalCallError, YieldFarmError


def call_external(target: str, fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke a collaborator; anything it raises that is not a core error becomes ExternalCallError."""
    try:
        return fn(*args)
    except YieldFarmError:
        raise
    except Exception as exc:
        raise ExternalCallError(target, f"{type(exc).__name__}: {exc}") from exc
