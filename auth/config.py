"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Secrets have no defaults: they come from the environment via
    clients.env_config. Durations are in their natural units (minutes for
    short-lived tokens, days for long-lived ones).
    """

    # Signing and encryption secrets
    access_token_secret: str = Field(..., min_length=1, repr=False)
    refresh_token_secret: str = Field(..., min_length=1, repr=False)
    activation_secret: str = Field(..., min_length=1, repr=False)
    crypto_secret: str = Field(..., min_length=1, repr=False)

    # Token lifetimes
    access_token_expire_minutes: int = Field(
        default=5,
        description="Access token lifetime",
        ge=1,
        le=1440,
    )
    refresh_token_expire_days: int = Field(
        default=3,
        description="Refresh token lifetime",
        ge=1,
        le=90,
    )
    activation_expire_minutes: int = Field(
        default=10,
        description="How long an activation token (and its OTP) stays valid",
        ge=1,
        le=60,
    )
    otp_length: int = Field(
        default=6,
        description="Number of digits in the verification code",
        ge=6,
        le=10,
    )

    # Session cache
    session_ttl_days: int = Field(
        default=7,
        description="TTL applied to every session cache write",
        ge=1,
        le=90,
    )

    # Cookies
    signin_access_cookie_hours: int = Field(
        default=24,
        description="Lifetime of the access-token cookie set at signin",
        ge=1,
        le=720,
    )
    is_production: bool = Field(
        default=False,
        description="Secure, SameSite=None cookies when true",
    )

    # Password hashing
    bcrypt_rounds: int = Field(
        default=12,
        description="bcrypt cost factor",
        ge=4,
        le=31,
    )

    # Application
    app_name: str = Field(
        default="Seller Center",
        description="Application name for emails",
    )

    @property
    def session_ttl_seconds(self) -> int:
        return self.session_ttl_days * 24 * 3600
