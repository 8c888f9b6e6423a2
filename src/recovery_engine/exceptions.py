"""
Custom exceptions for the recovery engine.

The scoring core never raises for missing or noisy data; absence propagates
as missing values. These exceptions are used at the boundaries:
- sample sources that fail to deliver data
- Apple Health export files that cannot be read
- SQLite stores
- invalid configuration (timezone, weights)
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent error reporting."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # Data source errors
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"
    EXPORT_PARSE_ERROR = "EXPORT_PARSE_ERROR"

    # Storage errors
    DATABASE_ERROR = "DATABASE_ERROR"


class RecoveryEngineError(Exception):
    """
    Base exception for all recovery engine errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for display or logging."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Data Source Errors
# ============================================================================

class SampleSourceError(RecoveryEngineError):
    """Raised when a sample source cannot deliver data for a window."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if source:
            error_details["source"] = source
        super().__init__(
            message=message,
            code=ErrorCode.TRANSPORT_FAILURE,
            details=error_details,
        )


class ExportParseError(RecoveryEngineError):
    """Raised when an Apple Health export cannot be read."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if path:
            error_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCode.EXPORT_PARSE_ERROR,
            details=error_details,
        )


# ============================================================================
# Storage Errors
# ============================================================================

class StorageError(RecoveryEngineError):
    """Raised when a SQLite store operation fails."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if operation:
            error_details["operation"] = operation
        super().__init__(
            message=message,
            code=ErrorCode.DATABASE_ERROR,
            details=error_details,
        )


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(RecoveryEngineError):
    """Raised for an unknown timezone or an unusable weight map."""

    def __init__(
        self,
        message: str,
        setting: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if setting:
            error_details["setting"] = setting
        super().__init__(
            message=message,
            code=ErrorCode.CONFIGURATION_ERROR,
            details=error_details,
        )
