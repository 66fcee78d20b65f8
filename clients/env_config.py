"""
Process configuration from environment variables.

Values come from the process environment, with a .env file filling in
anything unset (python-dotenv). Fails fast: every required variable must be
present and non-empty, otherwise MissingConfigurationError lists all of the
missing names at once.
"""

import logging
import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from auth.config import AuthConfig
from auth.exceptions import MissingConfigurationError

logger = logging.getLogger(__name__)

REQUIRED_VARIABLES = (
    "PORT",
    "APP_ENV",
    "DATABASE_LOCAL",
    "DATABASE_ONLINE",
    "DATABASE_PASSWORD_ONLINE",
    "ACTIVATION_SECRET",
    "CRYPTO_SECRET",
    "EMAIL_GATEWAY_URL",
    "EMAIL_API_KEY",
    "EMAIL_HMAC_SECRET",
    "EMAIL_FROM",
    "ACCESS_TOKEN",
    "REFRESH_TOKEN",
    "ACCESS_TOKEN_EXPIRE",
    "REFRESH_TOKEN_EXPIRE",
    "REDIS_URL",
)

DB_PASSWORD_PLACEHOLDER = "<db_password>"


class Settings(BaseModel):
    """Validated process configuration."""

    port: int = Field(..., ge=1, le=65535)
    app_env: str = Field(..., pattern="^(development|production)$")
    database_local: str = Field(..., repr=False)
    database_online: str = Field(..., repr=False)
    database_password_online: str = Field(..., repr=False)
    activation_secret: str = Field(..., repr=False)
    crypto_secret: str = Field(..., repr=False)
    email_gateway_url: str
    email_api_key: str = Field(..., repr=False)
    email_hmac_secret: str = Field(..., repr=False)
    email_from: str
    access_token: str = Field(..., repr=False)
    refresh_token: str = Field(..., repr=False)
    access_token_expire: int = Field(..., ge=1)
    refresh_token_expire: int = Field(..., ge=1)
    redis_url: str = Field(..., repr=False)

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def database_url(self) -> str:
        """Online URL with the password substituted in production, local URL otherwise."""
        if self.is_production:
            return self.database_online.replace(DB_PASSWORD_PLACEHOLDER, self.database_password_online)
        return self.database_local

    def auth_config(self, **overrides) -> AuthConfig:
        """Build the AuthConfig for this environment."""
        values = {
            "access_token_secret": self.access_token,
            "refresh_token_secret": self.refresh_token,
            "activation_secret": self.activation_secret,
            "crypto_secret": self.crypto_secret,
            "access_token_expire_minutes": self.access_token_expire,
            "refresh_token_expire_days": self.refresh_token_expire,
            "is_production": self.is_production,
        }
        values.update(overrides)
        return AuthConfig(**values)


def load_settings(environ: Mapping[str, str] | None = None, env_file: Path | None = None) -> Settings:
    """
    Read and validate configuration.

    Args:
        environ: Mapping to read from (defaults to os.environ after loading .env)
        env_file: Optional .env path; ignored when environ is given

    Raises:
        MissingConfigurationError: If any required variable is absent or empty
        pydantic.ValidationError: If a value has the wrong shape (e.g. PORT=abc)
    """
    if environ is None:
        load_dotenv(env_file or Path.cwd() / ".env")
        environ = os.environ

    missing = [name for name in REQUIRED_VARIABLES if not environ.get(name)]
    if missing:
        logger.error(f"Missing environment variables: {', '.join(missing)}")
        raise MissingConfigurationError(missing)

    return Settings(**{name.lower(): environ[name] for name in REQUIRED_VARIABLES})
