from dataclasses import dataclass
from typing import Any, Optional

from django.core.exceptions import ValidationError

from .exceptions import LEDGER_ERRORS

# Everything a caller can fix: bad input, wrong state, closed period...
BUSINESS_ERRORS = (ValidationError,) + LEDGER_ERRORS


@dataclass(frozen=True)
class ServiceResult:
    """
    Outcome of a ledger operation.
    Expected business-rule failures come back as ok=False with a message
    instead of propagating as exceptions to the caller.
    """

    ok: bool
    message: str = ""
    value: Optional[Any] = None

    @classmethod
    def success(cls, value=None, message=""):
        return cls(ok=True, message=message, value=value)

    @classmethod
    def failure(cls, message):
        return cls(ok=False, message=str(message))

    def __bool__(self):
        return self.ok


def error_message(exc):
    """Flatten an exception (Django ValidationError included) into one line."""
    messages = getattr(exc, "messages", None)
    if messages:
        return "; ".join(str(m) for m in messages)
    return str(exc)
