class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = (message or "").strip() or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ServiceUnavailable(AppError):
    status_code = 503
    default_message = "Service unavailable"


class UpstreamError(AppError):
    """The dispute provider failed; carries the provider's message."""

    status_code = 500
    default_message = "Dispute provider request failed"


class InternalError(AppError):
    status_code = 500
