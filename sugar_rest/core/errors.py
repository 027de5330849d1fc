"""Errors raised to callers of the SugarCRM client."""


class SugarRestError(Exception):
    """Base class for every error surfaced by the client."""
    pass


class AuthenticationRequired(SugarRestError):
    """Raised when an API call is made before logging in."""
    pass


class NoRefreshToken(SugarRestError):
    """Raised when a refresh is attempted without a stored refresh token."""
    pass


class TransportError(SugarRestError):
    """Raised when the CRM could not be reached or returned nothing usable."""
    pass


class SessionExpired(SugarRestError):
    """Raised when the refresh token was rejected; a new login is required."""
    pass


class ApiError(SugarRestError):
    """Raised when the CRM rejects a call with a classified error body."""

    def __init__(self, message: str, code: str, status_code: int | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
