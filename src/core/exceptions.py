"""Custom exception classes for the Ecoterra backend.

Managers raise these; routes translate them into HTTP errors.
"""


class EcoterraError(Exception):
    """Base exception for all application errors."""

    pass


class NotFoundError(EcoterraError):
    """Raised when a requested record cannot be found."""

    def __init__(self, resource: str, resource_id: str):
        """Initialize the exception.

        Args:
            resource: Human readable resource name, e.g. "Quiz".
            resource_id: The ID that was looked up.
        """
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class PermissionDeniedError(EcoterraError):
    """Raised when the caller may not act on a record."""

    pass


class ValidationError(EcoterraError):
    """Raised when data validation fails."""

    pass


class UserAlreadyExistsError(EcoterraError):
    """Raised when registering an email that is already taken."""

    pass


class InvalidCredentialsError(EcoterraError):
    """Raised when an email/password pair does not match an active user."""

    pass


class AttemptLimitExceededError(EcoterraError):
    """Raised when a user has used every attempt a quiz allows."""

    def __init__(self, quiz_id: str, max_attempts: int):
        self.quiz_id = quiz_id
        self.max_attempts = max_attempts
        super().__init__("Maximum attempts reached for this quiz")
