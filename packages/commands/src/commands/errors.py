"""
Command Errors

A single failure type tagged by kind covers every way a dispatch can go
wrong. Hosts match on ``failure.kind`` to decide how to render the message
and usage to the player.

Registration problems are a separate type: they are configuration bugs and
must stop the load phase rather than reach a player.
"""

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Why a dispatch did not complete."""

    UNRESOLVED_COMMAND = "unresolved_command"  # No root alias matched
    MISSING_SUB_COMMAND = "missing_sub_command"
    PERMISSION_DENIED = "permission_denied"
    TOO_FEW_ARGUMENTS = "too_few_arguments"
    TOO_MANY_ARGUMENTS = "too_many_arguments"
    UNKNOWN_FLAG = "unknown_flag"
    HANDLER_FAILED = "handler_failed"  # Handler raised something else


class CommandFailure(Exception):
    """
    A typed dispatch failure.

    Handlers may raise this themselves (for example with
    ``FailureKind.TOO_FEW_ARGUMENTS`` after their own checks); the
    dispatcher passes it through untouched instead of wrapping it.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str = "",
        usage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message or kind.value)
        self.kind = kind
        self.message = message or kind.value
        self.usage = usage
        self.cause = cause

    def __repr__(self) -> str:
        return f"CommandFailure({self.kind.value!r}, {self.message!r}, usage={self.usage!r})"

    @classmethod
    def unresolved(cls, name: str) -> "CommandFailure":
        return cls(FailureKind.UNRESOLVED_COMMAND, f"Unknown command: {name}")

    @classmethod
    def permission_denied(cls) -> "CommandFailure":
        return cls(FailureKind.PERMISSION_DENIED, "You are not permitted to do that.")

    @classmethod
    def wrapped(cls, error: BaseException) -> "CommandFailure":
        return cls(FailureKind.HANDLER_FAILED, str(error) or type(error).__name__, cause=error)


class RegistrationError(ValueError):
    """Raised when command metadata is malformed or registration is closed."""
