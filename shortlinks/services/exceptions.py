"""Exceptions for the shortlink service layer.

This module contains the exception hierarchy for the service layer,
providing domain-specific exceptions that abstract underlying implementation details.
"""


class ServiceError(Exception):
    """Base exception for all service-level errors."""
    pass


class ValidationError(ServiceError):
    """Request input is missing or malformed."""
    pass


class AuthError(ServiceError):
    """Base exception for signature and secret failures."""
    pass


class SecretNotConfiguredError(AuthError):
    """The server holds no secret, so signed writes are refused."""
    pass


class SignatureMissingError(AuthError):
    """The caller did not supply a signature."""
    pass


class SignatureInvalidError(AuthError):
    """The supplied signature does not match the payload."""
    pass


class ShortlinkError(ServiceError):
    """Base exception for shortlink lifecycle errors."""
    pass


class ShortlinkNotFoundError(ShortlinkError):
    """No tier holds the requested token."""
    pass


class ShortlinkExpiredError(ShortlinkError):
    """The token exists but its expiry has passed."""
    pass


class ShortlinkGoneError(ShortlinkError):
    """The token was already consumed under the single-use policy."""
    pass


class StorageUnavailableError(ShortlinkError):
    """Every configured storage tier refused the write."""
    pass


class TokenGenerationError(ShortlinkError):
    """Failed to generate a token that no tier already holds."""
    pass


class RelayFailure(ServiceError):
    """Dispatch of an analytics event failed. Logged, never surfaced."""
    pass


class IngestError(ServiceError):
    """Persisting an ingested event or mapping failed."""
    pass


class CleanupError(ServiceError):
    """Error occurred while sweeping stale entries."""
    pass
