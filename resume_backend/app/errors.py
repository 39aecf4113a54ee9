"""Application error taxonomy.

Every error carries a stable ``kind`` and an HTTP status code. Client errors
are rendered verbatim; server errors are logged and rendered with a generic
message.
"""


class AppError(Exception):
    """Generic application error."""

    kind = "app_error"
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AppClientError(AppError):
    """Error caused by the caller."""

    kind = "client_error"
    status_code = 400


class AppServerError(AppError):
    """Error caused by the server or the underlying store."""

    kind = "server_error"
    status_code = 500


class BadRequestError(AppClientError):
    kind = "bad_request"
    status_code = 400


class UnauthorizedError(AppClientError):
    kind = "unauthorized"
    status_code = 401


class ForbiddenError(AppClientError):
    kind = "forbidden"
    status_code = 403


class NotFoundError(AppClientError):
    kind = "not_found"
    status_code = 404


class ConflictError(AppClientError):
    kind = "conflict"
    status_code = 409


class ServerError(AppServerError):
    kind = "server_error"
    status_code = 500
