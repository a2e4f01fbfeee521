"""Exceptions for the Cars feature."""
from api.shared.exceptions import NotFoundError


class CarNotFoundError(NotFoundError):
    """Raised when a catalog car does not exist or is inactive."""

    def __init__(self, car_id: str):
        super().__init__("Car", str(car_id))
        self.error_code = "CAR_NOT_FOUND"
