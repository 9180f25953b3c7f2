"""
Centralized exception hierarchy for domain-specific errors.

Services raise these instead of transport-level errors; ``core.api.api_route``
maps each kind to an HTTP status code.
"""


class TripDeskError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(TripDeskError):
    """Exception raised when an argument is malformed (e.g. a bad ObjectId)."""


class ResourceNotFoundError(TripDeskError):
    """Exception raised when a requested resource is not found."""


class DuplicateResourceError(TripDeskError):
    """Exception raised when attempting to create a duplicate resource."""


class InternalError(TripDeskError):
    """Exception raised when the document store fails during a primary operation."""


TripDeskException = TripDeskError
ValidationException = ValidationError
ResourceNotFoundException = ResourceNotFoundError
DuplicateResourceException = DuplicateResourceError
InternalException = InternalError
