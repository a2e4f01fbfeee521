"""Exceptions for the Recommendations feature."""
from api.shared.exceptions import ValidationError


class RecommendationReferenceError(ValidationError):
    """Raised when a new recommendation points at a missing conversation, message or car."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"Referenced {resource.lower()} '{identifier}' does not exist",
            details={"resource": resource, "identifier": identifier},
        )
        self.error_code = "RECOMMENDATION_REFERENCE_ERROR"
