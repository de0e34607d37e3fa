"""Structured error taxonomy shared by wallets, actions and the registry.

Every failure that crosses the dispatch boundary is a :class:`DispatchError`
carrying a machine-readable :class:`ErrorKind` plus a human-readable message,
so a calling AI loop can branch on ``kind`` instead of parsing text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    ACTION_NOT_FOUND = "action_not_found"
    INVALID_INPUT = "invalid_input"
    SIGNING_UNAVAILABLE = "signing_unavailable"
    SIGNING_REJECTED = "signing_rejected"
    EXTERNAL_FAILURE = "external_failure"


class DispatchError(Exception):
    """Base class for every error surfaced by :meth:`ActionRegistry.execute`."""

    kind: ErrorKind

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ActionNotFound(DispatchError):
    """No action is currently registered under the requested name."""

    kind = ErrorKind.ACTION_NOT_FOUND

    def __init__(self, name: str, *, available: Optional[list[str]] = None) -> None:
        super().__init__(
            f"Unknown action '{name}'",
            details={"name": name, "available": available or []},
        )
        self.name = name


class ActionError(DispatchError):
    """An action ran and failed."""

    kind = ErrorKind.EXTERNAL_FAILURE


class InvalidInput(ActionError):
    """The action rejected its input before performing any side effect."""

    kind = ErrorKind.INVALID_INPUT


class SigningError(ActionError):
    """The wallet could not or would not produce a signature.

    Only the subclasses are raised; the base class has no kind of its own.
    """

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None) -> None:
        if type(self) is SigningError:
            raise TypeError("raise SigningUnavailable or SigningRejected, not SigningError")
        super().__init__(message, details=details)


class SigningUnavailable(SigningError):
    kind = ErrorKind.SIGNING_UNAVAILABLE


class SigningRejected(SigningError):
    kind = ErrorKind.SIGNING_REJECTED


class ExternalFailure(ActionError):
    """A network call or remote API used by an action failed.

    ``retryable`` tells the caller whether trying again later is reasonable.
    It is advisory only: the core never retries on the caller's behalf.
    """

    kind = ErrorKind.EXTERNAL_FAILURE

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = False,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.retryable = retryable

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["details"] = {**self.details, "retryable": self.retryable}
        return payload
