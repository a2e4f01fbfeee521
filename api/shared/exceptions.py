"""Shared exceptions for the car advisor API."""
from typing import Any, Dict, Optional


class AdvisorException(Exception):
    """Base exception for the car advisor API."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AdvisorException):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class NotFoundError(AdvisorException):
    """Raised when a resource is not found."""

    status_code = 404

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, "NOT_FOUND", {"resource": resource, "identifier": identifier})


class StorageError(AdvisorException):
    """Raised when storage operations fail."""

    status_code = 503

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_ERROR", details)


class DatabaseError(AdvisorException):
    """Raised when database operations fail."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "DATABASE_ERROR", details)


class ExternalServiceError(AdvisorException):
    """Raised when external service calls fail."""

    status_code = 502

    def __init__(self, service: str, message: str, details: Optional[Dict[str, Any]] = None):
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, "EXTERNAL_SERVICE_ERROR", details)


class ModelError(ExternalServiceError):
    """Raised when the generative model call fails (timeout, quota, auth, empty reply)."""

    def __init__(self, model: str, reason: str, details: Optional[Dict[str, Any]] = None):
        error_details = {"model": model, "reason": reason}
        if details:
            error_details.update(details)
        super().__init__("model", f"generation failed with '{model}': {reason}", error_details)
        self.error_code = "MODEL_ERROR"
        self.model = model
        self.reason = reason
