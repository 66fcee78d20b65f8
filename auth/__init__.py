"""Seller authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    TokenError,
    InvalidTokenError,
    ExpiredTokenError,
    NotYetValidError,
    DecryptionError,
    ValidationError,
    DuplicateKeyError,
    InvalidIdentifierError,
    MissingConfigurationError,
)
from auth.types import (
    Seller,
    SellerRole,
    SellerCredentials,
    EncryptedPayload,
    OtpResult,
    IssuedSession,
    SignupRequest,
    ActivationRequest,
    SigninRequest,
    is_valid_email,
)
from auth.config import AuthConfig
from auth.tokens import TokenSigner
from auth.crypto import CryptoService
from auth.database import SellerDatabase
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.session import SessionManager
from auth.cookies import CookiePolicy
from auth.service import AuthService, RequestContext, SignupResult
from auth.dependencies import SellerGuard
from auth.api import create_seller_auth_router
