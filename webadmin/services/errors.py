"""Service-layer exceptions. Each carries a message and the HTTP status routers map it to."""


class ServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(ServiceError):
    status_code = 400


class UnauthenticatedError(ServiceError):
    status_code = 401


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class InternalError(ServiceError):
    status_code = 500
