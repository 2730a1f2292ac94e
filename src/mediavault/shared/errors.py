"""MediaVault Error Handling Module

This module defines the error handling system for MediaVault, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ("user_id",)


class ErrorCode(str, Enum):
    """Error codes for MediaVault.

    This enum serves as the single source of truth for all error codes
    used throughout the application.
    """

    # File System Errors
    DIRECTORY_ENUMERATION_FAILED = "DIRECTORY_ENUMERATION_FAILED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Parsing Errors
    SIDECAR_PARSE_FAILED = "SIDECAR_PARSE_FAILED"
    EMBEDDED_TAGS_UNREADABLE = "EMBEDDED_TAGS_UNREADABLE"

    # Catalog Errors
    CATALOG_ERROR = "CATALOG_ERROR"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"

    # Library / Scan Errors
    LIBRARY_NOT_FOUND = "LIBRARY_NOT_FOUND"
    SCAN_NOT_FOUND = "SCAN_NOT_FOUND"
    SCAN_ALREADY_RUNNING = "SCAN_ALREADY_RUNNING"
    SCAN_NOT_RESUMABLE = "SCAN_NOT_RESUMABLE"
    SCAN_CANCELLED = "SCAN_CANCELLED"

    # CLI Errors
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"
    CLI_OUTPUT_ERROR = "CLI_OUTPUT_ERROR"

    # Pipeline Errors
    RESOLVER_ERROR = "RESOLVER_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to keep log serialization safe.

    Attributes:
        file_path: Optional file path associated with the error
        operation: Optional operation name that caused the error
        user_id: Optional user ID (masked in logs)
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    user_id: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict with sensitive fields masked.

        Args:
            mask_keys: Fields to exclude from output. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary with masked fields and a guaranteed additional_data key.
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.file_path is not None and "file_path" not in mask_keys:
            data["file_path"] = self.file_path
        if self.operation is not None and "operation" not in mask_keys:
            data["operation"] = self.operation
        if self.user_id is not None and "user_id" not in mask_keys:
            data["user_id"] = self.user_id

        if self.additional_data is not None and "additional_data" not in mask_keys:
            data["additional_data"] = self.additional_data
        else:
            data["additional_data"] = {}

        return data


ErrorContext = ErrorContextModel


class MediaVaultError(Exception):
    """Base exception class for all MediaVault errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize MediaVaultError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary with code, message, masked context and original_error
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(MediaVaultError):
    """Domain-specific errors.

    Raised when library or scan rules are violated, e.g. an unknown
    library, a scan that cannot be resumed, or an unparsable sidecar.
    """


class InfrastructureError(MediaVaultError):
    """Infrastructure-related errors.

    Raised when interacting with the file system or the catalog database.
    """


class ApplicationError(MediaVaultError):
    """Application-level errors (configuration, command handling)."""


class ScanCancelledError(MediaVaultError):
    """Raised when a scan observes its cancellation token.

    Kept apart from the other error classes so the orchestrator can
    record the scan as Cancelled rather than Failed.
    """

    def __init__(
        self,
        message: str = "Scan was cancelled",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.SCAN_CANCELLED, message, context)


class CliError(ApplicationError):
    """CLI-specific error with an exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


def create_library_not_found_error(library_id: int, operation: str | None = None) -> DomainError:
    """Create a library not found error with context."""
    return DomainError(
        ErrorCode.LIBRARY_NOT_FOUND,
        f"Library not found: {library_id}",
        ErrorContext(operation=operation, additional_data={"library_id": library_id}),
    )


def create_scan_not_found_error(scan_id: int, operation: str | None = None) -> DomainError:
    """Create a scan not found error with context."""
    return DomainError(
        ErrorCode.SCAN_NOT_FOUND,
        f"Scan not found: {scan_id}",
        ErrorContext(operation=operation, additional_data={"scan_id": scan_id}),
    )


def create_catalog_error(
    message: str,
    operation: str | None = None,
    original_error: Exception | None = None,
    additional_data: dict[str, PrimitiveContextValue] | None = None,
) -> InfrastructureError:
    """Create a catalog (database) error with context."""
    return InfrastructureError(
        ErrorCode.CATALOG_ERROR,
        message,
        ErrorContext(operation=operation, additional_data=additional_data),
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
    exit_code: int = 1,
) -> CliError:
    """Create a CLI error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"command": command} if command else None
    )
    return CliError(
        ErrorCode.CLI_UNEXPECTED_ERROR,
        message,
        ErrorContext(operation=operation, additional_data=additional_data),
        original_error,
        command,
        exit_code,
    )


def create_cli_output_error(
    message: str,
    command: str | None = None,
    output_type: str | None = None,
    original_error: Exception | None = None,
) -> CliError:
    """Create a CLI output error with context."""
    additional_data: dict[str, PrimitiveContextValue] = {}
    if command is not None:
        additional_data["command"] = command
    if output_type is not None:
        additional_data["output_type"] = output_type

    return CliError(
        ErrorCode.CLI_OUTPUT_ERROR,
        message,
        ErrorContext(
            operation="cli_output",
            additional_data=additional_data if additional_data else None,
        ),
        original_error,
        command,
        exit_code=1,
    )


def describe_failure(error: BaseException) -> str:
    """Render an exception as the human-readable message stored on a failed scan.

    Args:
        error: Exception that terminated the scan

    Returns:
        "CODE: message" for MediaVault errors, "Type: message" otherwise
    """
    if isinstance(error, MediaVaultError):
        return str(error)
    detail = str(error)
    return f"{type(error).__name__}: {detail}" if detail else type(error).__name__
