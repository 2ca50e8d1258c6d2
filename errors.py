"""Errors raised by the account, post and storage layers.

Each carries the HTTP status the web layer answers with.
"""


class BlogError(Exception):
    status_code = 400
    message = "Bad request"

    def __init__(self, message: str = ""):
        super().__init__(message or self.message)


class InvalidCredentials(BlogError):
    status_code = 401
    message = "Invalid credentials"


class AdminNotConfigured(BlogError):
    message = "Admin password not set. Run set_admin_password.py to set a hash."


class DuplicateEmail(BlogError):
    message = "Email already exists"


class MissingCredentials(BlogError):
    message = "Email and password required"


class NotFound(BlogError):
    status_code = 404
    message = "Post not found"


class Forbidden(BlogError):
    status_code = 403
    message = "Forbidden"


class StorageFailure(BlogError):
    status_code = 500
    message = "Storage failure"
