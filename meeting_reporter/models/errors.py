"""
Error handling models and exceptions for Meeting Reporter.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List
from datetime import datetime
from enum import Enum


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Categories of errors."""
    NETWORK = "network"
    VALIDATION = "validation"
    PROCESSING = "processing"
    EXTERNAL_API = "external_api"
    MODEL = "model"
    TOOL = "tool"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ErrorDetails(BaseModel):
    """Detailed error information."""
    error_id: str = Field(..., min_length=1)
    category: ErrorCategory
    severity: ErrorSeverity
    message: str = Field(..., min_length=1)
    details: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)
    agent_name: Optional[str] = None
    retry_count: int = Field(default=0, ge=0)
    recoverable: bool = True


class ErrorResponse(BaseModel):
    """Standardized error response."""
    success: bool = False
    error: ErrorDetails
    suggested_actions: List[str] = Field(default_factory=list)


# Custom exceptions
class MeetingReporterError(Exception):
    """Base exception for Meeting Reporter."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.SYSTEM,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM, **kwargs):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = kwargs


class NetworkError(MeetingReporterError):
    """Network-related errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.NETWORK, ErrorSeverity.MEDIUM, **kwargs)


class ModelTransportError(MeetingReporterError):
    """Language model endpoint returned a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, ErrorCategory.MODEL, ErrorSeverity.HIGH, status_code=status_code, **kwargs)
        self.status_code = status_code


class ExternalAPIError(MeetingReporterError):
    """External API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, ErrorCategory.EXTERNAL_API, ErrorSeverity.MEDIUM, status_code=status_code, **kwargs)
        self.status_code = status_code


class CalendarAccessError(ExternalAPIError):
    """Calendar data could not be fetched (missing token, denied access)."""


class ValidationError(MeetingReporterError):
    """Data validation errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.VALIDATION, ErrorSeverity.HIGH, **kwargs)


class ConfigurationError(MeetingReporterError):
    """Invalid or incomplete wiring detected at construction time."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.CONFIGURATION, ErrorSeverity.CRITICAL, **kwargs)


class ProcessingError(MeetingReporterError):
    """Content processing errors."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.PROCESSING, ErrorSeverity.MEDIUM, **kwargs)


class ToolError(MeetingReporterError):
    """Errors raised while dispatching a tool call."""

    def __init__(self, message: str, tool_name: Optional[str] = None, **kwargs):
        super().__init__(message, ErrorCategory.TOOL, ErrorSeverity.MEDIUM, tool_name=tool_name, **kwargs)
        self.tool_name = tool_name


class UnknownToolError(ToolError):
    """No handler is bound to the requested tool name."""


class ArgumentParseError(ToolError):
    """Tool call arguments were not a valid JSON object."""
