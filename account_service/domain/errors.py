"""Exception taxonomy raised by the account services and translated at the HTTP boundary."""

from __future__ import annotations

from typing import Optional


class AccountError(Exception):
    """Base class for account-layer failures mapped to the JSON error envelope.

    Each subclass carries the HTTP ``status_code`` it is reported with. The
    ``message`` is safe to show to API consumers.
    """

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code


class DuplicateAccount(AccountError):
    status_code = 400
    default_message = "User already exists"


class InvalidToken(AccountError):
    status_code = 400
    default_message = "Invalid token"


class InvalidCredentials(AccountError):
    status_code = 400
    default_message = "Please provide the correct information"


class PasswordMismatch(AccountError):
    status_code = 400
    default_message = "Password doesn't match with each other"


class DuplicateAddressType(AccountError):
    status_code = 400

    def __init__(self, address_type: str) -> None:
        super().__init__(f"{address_type} address already exists")
        self.address_type = address_type


class NotFound(AccountError):
    status_code = 404
    default_message = "User not found"


class Unauthenticated(AccountError):
    status_code = 401
    default_message = "Please login to continue"


class Forbidden(AccountError):
    status_code = 403
    default_message = "You can not access this resource"


class RateLimited(AccountError):
    status_code = 429
    default_message = "rate limited"

    def __init__(self, retry_after: int = 0) -> None:
        super().__init__()
        self.retry_after = retry_after


class NotificationFailed(AccountError):
    """The notify capability could not deliver a message."""

    status_code = 500
    default_message = "Unable to send email"


class BlobStoreFailure(AccountError):
    """The blob store rejected an upload or destroy call."""

    status_code = 500
    default_message = "Unable to reach the image store"
