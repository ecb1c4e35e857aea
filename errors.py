class ServiceError(Exception):
    """Request-local failure surfaced to the caller with a message and HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidOperation(ServiceError):
    """The caller sent something unprocessable (self-subscribe, empty query, bad id)."""

    status_code = 400


class NotFound(ServiceError):
    """A referenced resource does not exist."""

    status_code = 404
