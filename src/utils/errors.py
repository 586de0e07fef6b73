from typing import Dict, Optional


class StorefrontError(Exception):
    """Base class for every error raised by the storefront core."""


class InvalidInput(StorefrontError):
    pass


class InvalidIdentity(InvalidInput):
    pass


class InvalidProduct(InvalidInput):
    pass


class NotFound(StorefrontError):
    pass


class ItemNotFound(NotFound):
    pass


class OrderNotFound(NotFound):
    pass


class RemoteUnavailable(StorefrontError):
    """
    The remote JSON store could not be reached or answered with an error.
    status_code is set when the server did answer.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LocalStorageError(StorefrontError):
    pass


class AuthenticationFailed(StorefrontError):
    pass


class PermissionDenied(StorefrontError):
    """The current identity lacks the role an operation requires."""


class ValidationFailed(StorefrontError):
    """Carries every failing field at once, keyed by field name."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__(f"{len(errors)} field(s) failed validation")
        self.errors = dict(errors)
