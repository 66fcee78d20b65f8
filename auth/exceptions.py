"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class TokenError(AuthError):
    """Base class for bearer token verification failures.

    Callers branch on the concrete subclass, not on this base.
    """


class InvalidTokenError(TokenError):
    """Token is malformed, unsigned, or signed with a different secret."""


class ExpiredTokenError(TokenError):
    """Token signature is valid but its exp claim is in the past."""


class NotYetValidError(TokenError):
    """Token signature is valid but its nbf claim is in the future."""


class DecryptionError(AuthError):
    """
    Encrypted payload could not be decrypted.

    Raised for wrong key, tampered ciphertext, or a structurally invalid payload.
    """


class ValidationError(AuthError, ValueError):
    """Argument outside its allowed range (e.g. OTP length)."""


class DuplicateKeyError(AuthError):
    """
    Insert collided with a unique constraint.

    Distinct from validation errors: the input was well-formed but the
    value is already taken.
    """

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for {field}: {value!r}")


class InvalidIdentifierError(AuthError, ValueError):
    """Identifier is not a well-formed seller id."""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for {field}: {value!r}")


class MissingConfigurationError(Exception):
    """Required environment variables are absent. The process must not start."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing environment variables: {', '.join(missing)}")
