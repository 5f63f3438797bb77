"""
API error types raised by the service layer

Route handlers translate these into JSON error responses using the
status code each one carries.
"""


class ServiceError(Exception):
    """Base class for errors a service reports back to the caller"""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Missing or malformed input, or a reference to a record that does not exist"""
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    """Unique constraint violation or delete blocked by dependent records"""
    status_code = 409


class AuthenticationError(ServiceError):
    status_code = 401
