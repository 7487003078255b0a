"""Exception hierarchy for token import, signing and key handling."""

from __future__ import annotations


class TokenError(Exception):
    """Base class for every error raised by this package."""


class MalformedTokenError(TokenError):
    """Raised when a compact serialization string cannot be imported."""


class InvalidArgumentError(TokenError, ValueError):
    """Raised for out-of-range algorithms, missing keys or a missing token."""


class KeyMaterialError(TokenError):
    """Raised when a key document cannot be turned into a usable key."""


class MissingKeyFieldError(KeyMaterialError):
    """A required JWK field is absent or not a string."""

    def __init__(self, field: str) -> None:
        super().__init__(f"JWK is missing required field {field!r}.")
        self.field = field


class UnsupportedKeyTypeError(KeyMaterialError):
    """The JWK ``kty`` is unknown or does not fit the algorithm."""


class UnsupportedCurveError(KeyMaterialError):
    """The JWK ``crv`` names a curve outside P-256/P-384/P-521."""


class KeyDecodeError(KeyMaterialError):
    """A JWK coordinate is not valid base64url."""


class KeyMismatchError(KeyMaterialError):
    """The key does not belong to the family or curve the algorithm needs."""


class ProviderError(TokenError):
    """Raised when the cryptographic provider rejects an operation."""


class SignatureOverflowError(ProviderError):
    """Provider output exceeded the fixed signature or hash capacity."""
