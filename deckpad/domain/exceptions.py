class DomainException(Exception):
    pass


class GenerationError(DomainException):
    """The outline service failed or answered with something unusable."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Outline generation failed: {reason}")
        self.reason = reason
        self.status_code = status_code


class AuthRequiredError(DomainException):
    def __init__(self, message: str = "Not signed in") -> None:
        super().__init__(message)


class PersistenceError(DomainException):
    """Saving or loading failed on every available transport."""

    def __init__(self, message: str, transport: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.transport = transport


class LocalStateError(DomainException):
    """Malformed edit or navigation state coming from the editing surface."""


class StoreError(DomainException):
    """Error raised by the direct store, tagged with its SQLSTATE when known."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class RelationMissingError(StoreError):
    def __init__(self, message: str, code: str | None = "42P01") -> None:
        super().__init__(message, code)


class PermissionDeniedError(StoreError):
    def __init__(self, message: str, code: str | None = "42501") -> None:
        super().__init__(message, code)


class PresentationNotFoundException(DomainException):
    def __init__(self, presentation_id: str) -> None:
        super().__init__(f"Presentation with ID {presentation_id} not found")
        self.presentation_id = presentation_id


class UnauthorizedAccessException(DomainException):
    def __init__(
        self, resource: str, user_id: str | None = None, reason: str | None = None
    ) -> None:
        message = f"User {user_id} is not authorized to access {resource}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.resource = resource
        self.user_id = user_id
        self.reason = reason
