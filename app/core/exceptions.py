"""Service-level error taxonomy, rendered as HTTP errors by the API layer."""

from fastapi import status


class ServiceError(Exception):
    """Base for errors raised by services; carries the HTTP status to surface."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    """No credential was presented."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class InvalidToken(ServiceError):
    """Credential is malformed or its signature does not verify."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class ExpiredToken(InvalidToken):
    """Credential has a valid signature but is past its expiry."""

    default_message = "Token expired"


class UserNotFound(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not found"


class MissingToken(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Refresh token required"


class InvalidOrExpiredToken(ServiceError):
    """Refresh token failed signature, type or expiry verification."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid or expired refresh token"


class RevokedToken(ServiceError):
    """
    Refresh token verified but its owner is gone or it is no longer stored.

    This is the refresh path's invalid-token case. It is a separate class because
    InvalidToken is the 401 raised for access tokens, while a revoked refresh token
    is a 403 that the client must not retry.
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Invalid refresh token"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Admin access required"


class AccountNotActive(ServiceError):
    """Credentials are correct but the account status does not permit login."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Account is not active"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflict"


class ValidationFailed(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid data"
