"""Service-level errors with a stable message and an HTTP status classification."""


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFound(ServiceError):
    """A referenced user, cohort, or activity does not exist."""

    status_code = 404


class Conflict(ServiceError):
    """A unique field (nickname) is already taken."""

    status_code = 409


class TransactionFailure(ServiceError):
    """A multi-step mutation failed after earlier steps had already committed."""

    status_code = 500


class SearchUnavailable(ServiceError):
    """The document index could not answer a read."""

    status_code = 503
