"""Standardized error types for bridge operations.

Every public bridge operation fails with exactly one of three kinds:
:class:`BridgeConnectionError`, :class:`CommandError` or
:class:`ValidationError`. All of them share the :class:`BridgeError` base and
serialize to the same JSON shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for error codes used in tool responses."""

    CONNECTION_ERROR = "connection_error"
    INVALID_ENDPOINT = "invalid_endpoint"
    COMMAND_ERROR = "command_error"
    VALIDATION_ERROR = "validation_error"
    UNKNOWN_TOOL = "unknown_tool"
    INTERNAL_ERROR = "internal_error"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class BridgeError(Exception):
    """Base exception class for all bridge errors.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary for JSON tool responses."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Connection Errors
# -----------------------------------------------------------------------------

@dataclass
class BridgeConnectionError(BridgeError):
    """Raised when the remote Neovim session cannot be reached or established."""

    error_code: str = field(default=ErrorCode.CONNECTION_ERROR)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Start Neovim with --listen <socket> or point NVIM_SOCKET_PATH at its socket")

    endpoint: str | None = field(default=None)
    cause: BaseException | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = (
                f"Failed to connect to Neovim at {self.endpoint}. "
                f"Is Neovim running with --listen {self.endpoint}?"
            )
        super().__post_init__()

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.endpoint is not None:
            result["endpoint"] = self.endpoint
        if self.cause is not None:
            result["cause"] = str(self.cause) or type(self.cause).__name__
        return result


# -----------------------------------------------------------------------------
# Command Errors
# -----------------------------------------------------------------------------

@dataclass
class CommandError(BridgeError):
    """Raised when a remote call failed or an operation broke unexpectedly."""

    error_code: str = field(default=ErrorCode.COMMAND_ERROR)
    message: str = field(default="")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    command: str = field(default="")
    remote_error: str = field(default="")

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Failed to execute command '{self.command}': {self.remote_error}"
        super().__post_init__()

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["command"] = self.command
        if self.remote_error:
            result["remote_error"] = self.remote_error
        return result


# -----------------------------------------------------------------------------
# Validation Errors
# -----------------------------------------------------------------------------

@dataclass
class ValidationError(BridgeError):
    """Raised when caller arguments fail a precondition before any remote call."""

    error_code: str = field(default=ErrorCode.VALIDATION_ERROR)
    message: str = field(default="Invalid argument")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="")

    field_name: str | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field_name is not None:
            result["field"] = self.field_name
        return result


@dataclass
class InvalidEndpointError(ValidationError, BridgeConnectionError):
    """Raised when the configured socket path is empty.

    A configuration defect rather than a network failure, so it is both a
    validation error and a connection error.
    """

    error_code: str = field(default=ErrorCode.INVALID_ENDPOINT)
    message: str = field(default="Socket path cannot be empty")
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = field(default="Set NVIM_SOCKET_PATH or socket_path in the settings file")

    field_name: str | None = field(default="socket_path")


RECOGNIZED_ERRORS: tuple[type[BridgeError], ...] = (
    BridgeConnectionError,
    CommandError,
    ValidationError,
)


__all__ = [
    "ErrorCode",
    "BridgeError",
    "BridgeConnectionError",
    "CommandError",
    "ValidationError",
    "InvalidEndpointError",
    "RECOGNIZED_ERRORS",
]
