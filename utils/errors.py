"""
utils/errors.py
-----------------
Error taxonomy shared by models, utils and controllers. Every error carries
the HTTP status it maps to at the request boundary.
"""


class AppError(Exception):
    status_code = 500
    message = "Internal Server Error"

    def __init__(self, message=None, **extra):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.extra = extra

    def to_dict(self):
        body = {"success": False, "message": self.message}
        body.update(self.extra)
        return body


class ValidationError(AppError):
    status_code = 400
    message = "Validation failed"


class DuplicateError(AppError):
    status_code = 400
    message = "User with this email or username already exists"


class InvalidCredentials(AppError):
    status_code = 401
    message = "Invalid credentials"


class AccessDenied(AppError):
    status_code = 401
    message = "Account access denied."


class AuthenticationRequired(AppError):
    status_code = 401
    message = "No token, authorization denied"


class Forbidden(AppError):
    status_code = 403
    message = "Access denied"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class InvalidState(AppError):
    status_code = 400
    message = "User has already been processed"


class InternalError(AppError):
    status_code = 500
    message = "Internal Server Error"
