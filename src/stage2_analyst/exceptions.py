"""
Custom exceptions for the analyst exchange

Each error carries a `kind` tag and a user-facing message so the caller can
report it without inspecting the exception type.
"""
from typing import Optional


class AnalystError(Exception):
    """Base exception for a failed exchange"""
    kind = "error"
    default_user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or self.default_user_message


class ValidationError(AnalystError):
    """Raised when the question or dataset cannot be used to build a request"""
    kind = "validation"
    default_user_message = "Please upload a CSV file and enter a question."


class ServiceError(AnalystError):
    """Raised when the inference service is unreachable or answers with an error"""
    kind = "service"

    def __init__(self, message: str, user_message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, user_message or f"API Error: {message}")
        self.status_code = status_code


class DecodeError(AnalystError):
    """Raised when the service reply cannot be turned into an analysis"""
    kind = "decode"
    default_user_message = "Failed to get a valid response from the AI. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None, raw_text: Optional[str] = None):
        super().__init__(message, user_message)
        self.raw_text = raw_text


class SessionBusyError(AnalystError):
    """Raised when a session already has an exchange in flight"""
    kind = "busy"
    default_user_message = "A question is already being analyzed. Please wait for it to finish."
