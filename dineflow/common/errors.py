class ServiceError(Exception):
    """Base for errors that map onto an HTTP status and a ``{message}`` body."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    status_code = 400


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class UpstreamError(ServiceError):
    """The image host rejected or failed an upload/destroy call."""

    status_code = 500


class StorageError(ServiceError):
    status_code = 500
