"""Explicit outcome type for best-effort call sites."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Outcome(Enum):
    OK = "ok"
    RECOVERABLE = "recoverable"
    FATAL = "fatal"


@dataclass(frozen=True)
class CallResult:
    """Result of a best-effort sub-operation.

    ``RECOVERABLE`` means the caller logs and proceeds; ``FATAL`` means the
    caller aborts the enclosing operation.
    """
    outcome: Outcome
    value: int = 0
    reason: Optional[str] = None
    code: Optional[str] = None
    error: Optional[Exception] = field(default=None, compare=False, repr=False)

    @classmethod
    def ok(cls, value: int = 0) -> 'CallResult':
        return cls(Outcome.OK, value=value)

    @classmethod
    def recoverable(cls, reason: str, code: str = None, error: Exception = None) -> 'CallResult':
        return cls(Outcome.RECOVERABLE, reason=reason, code=code, error=error)

    @classmethod
    def fatal(cls, reason: str, code: str = None, error: Exception = None) -> 'CallResult':
        return cls(Outcome.FATAL, reason=reason, code=code, error=error)

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def is_recoverable(self) -> bool:
        return self.outcome is Outcome.RECOVERABLE

    @property
    def is_fatal(self) -> bool:
        return self.outcome is Outcome.FATAL
