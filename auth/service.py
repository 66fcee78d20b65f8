"""Authentication service - orchestrates the seller signup/signin lifecycle.

Anonymous -> PendingActivation (activation token issued, nothing stored)
-> Verified (seller row created) -> SessionActive (tokens + cached snapshot)
-> LoggedOut (snapshot deleted, cookies cleared).
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable

import psycopg2

from api.base import ErrorCodes
from api.exceptions import BadRequestError, ForbiddenError, InternalError, UnauthorizedError
from auth.config import AuthConfig
from auth.crypto import CryptoService, capitalize
from auth.database import SellerDatabase, normalize_email
from auth.exceptions import DecryptionError, ExpiredTokenError, InvalidIdentifierError, TokenError
from auth.passwords import verify_password
from auth.security_logger import SecurityEvent, SecurityLogger
from auth.session import SessionManager
from auth.tokens import TokenSigner
from auth.types import IssuedSession, Seller, SellerRole, is_valid_email
from clients.email_client import EmailGatewayClient, EmailGatewayError

logger = logging.getLogger(__name__)

LOGIN_REQUIRED_MESSAGE = "Please login to access this resource"
BAD_CREDENTIALS_MESSAGE = "Incorrect email or password. Please check your credentials and try again."


@dataclass
class RequestContext:
    """Client details recorded with security events."""

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class SignupResult:
    """Activation token handed back to the registrant."""

    token: str
    message: str


class AuthService:
    """Orchestrates seller authentication.

    Handles:
    - Signup (OTP email + activation token, nothing persisted)
    - Activation (OTP check, seller creation)
    - Signin and session issuance
    - Access-token refresh from the session cache
    - Logout
    - Access-token authentication and role checks
    """

    def __init__(
        self,
        config: AuthConfig,
        seller_db: SellerDatabase,
        session_manager: SessionManager,
        crypto: CryptoService,
        tokens: TokenSigner,
        email_client: EmailGatewayClient,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._seller_db = seller_db
        self._session_manager = session_manager
        self._crypto = crypto
        self._tokens = tokens
        self._email_client = email_client
        self._security_logger = security_logger

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _sign_access_token(self, seller: Seller) -> str:
        return self._tokens.sign(
            {"id": str(seller.id)},
            self._config.access_token_secret,
            timedelta(minutes=self._config.access_token_expire_minutes),
        )

    def _sign_refresh_token(self, seller: Seller) -> str:
        return self._tokens.sign(
            {"id": str(seller.id)},
            self._config.refresh_token_secret,
            timedelta(days=self._config.refresh_token_expire_days),
        )

    # ------------------------------------------------------------------
    # Signup / activation
    # ------------------------------------------------------------------

    def signup(
        self,
        fname: str | None,
        lname: str | None,
        email: str | None,
        password: str | None,
        context: RequestContext | None = None,
    ) -> SignupResult:
        """Start registration: email an OTP and return the activation token.

        Nothing is written to the sellers table; the activation token carries
        the pending record.

        Raises:
            BadRequestError: Missing fields, malformed email, or email already
                registered.
            InternalError: Verification email could not be sent.
        """
        context = context or RequestContext()

        if not fname or not lname or not email or not password:
            raise BadRequestError(
                "Please provide values for all required fields: first name, last name, email, and password."
            )

        email = normalize_email(email)
        if not is_valid_email(email):
            self._security_logger.log(
                SecurityEvent.SIGNUP_REJECTED,
                email=email,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                details={"reason": "invalid_email"},
            )
            raise BadRequestError("Please provide a valid email address.")

        if self._seller_db.get_seller_by_email(email) is not None:
            self._security_logger.log(
                SecurityEvent.SIGNUP_REJECTED,
                email=email,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                details={"reason": "email_taken"},
            )
            raise BadRequestError("Email is already taken. Please use a different email address.")

        pending = {
            "fname": fname,
            "lname": lname,
            "email": email,
            "password": self._crypto.encrypt(password, self._config.crypto_secret).model_dump(by_alias=True),
        }
        verification = self._crypto.generate_otp(
            pending,
            self._config.activation_secret,
            expires_in=timedelta(minutes=self._config.activation_expire_minutes),
            otp_length=self._config.otp_length,
        )

        self._security_logger.log(
            SecurityEvent.SIGNUP_REQUESTED,
            email=email,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

        try:
            self._email_client.send_verification_code(
                email=email,
                name=capitalize(fname),
                otp=verification.otp,
                app_name=self._config.app_name,
            )
        except EmailGatewayError as e:
            logger.error(f"Verification email to {email} failed: {e}")
            self._security_logger.log(
                SecurityEvent.VERIFICATION_EMAIL_FAILED,
                email=email,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )
            raise InternalError("There was an error sending the email. Please try again later!")

        # OTP already sent: an audit failure here is logged, not raised.
        try:
            self._security_logger.log(
                SecurityEvent.VERIFICATION_EMAIL_SENT,
                email=email,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )
        except psycopg2.Error as e:
            logger.error(f"Could not record verification email to {email}: {e}")

        return SignupResult(
            token=verification.token,
            message="Verification code sent successfully to your email.",
        )

    def activate(
        self,
        activation_token: str | None,
        otp: str | int | None,
        context: RequestContext | None = None,
    ) -> Seller:
        """Check the OTP against the activation token and create the seller.

        Raises:
            BadRequestError: Missing fields, invalid/expired token, OTP
                mismatch, or email registered in the meantime.
            DuplicateKeyError: Another activation for the same email won
                the insert race.
        """
        context = context or RequestContext()

        if otp is None or otp == "":
            raise BadRequestError(
                "Please enter the verification code sent to your email to complete the activation process."
            )
        if not activation_token:
            raise BadRequestError(
                "It seems your activation link is missing or invalid. "
                "Please try again or request a new activation email."
            )

        try:
            claims = self._tokens.verify(activation_token, self._config.activation_secret)
        except ExpiredTokenError:
            self._log_activation_failure(context, "token_expired")
            raise BadRequestError(
                "Your activation code has expired. Please sign up again to receive a new code."
            )
        except TokenError:
            self._log_activation_failure(context, "token_invalid")
            raise BadRequestError(
                "Your activation link has expired or is invalid. "
                "Please try again or request a new activation email."
            )

        try:
            pending = claims["payload"]
            expected_otp = int(self._crypto.decrypt_otp(claims["encryptedOtp"]))
        except (KeyError, TypeError, ValueError, DecryptionError):
            self._log_activation_failure(context, "token_payload_invalid")
            raise BadRequestError(
                "Your activation link has expired or is invalid. "
                "Please try again or request a new activation email."
            )

        if _coerce_otp(otp) != expected_otp:
            email = pending.get("email") if isinstance(pending, dict) else None
            self._log_activation_failure(context, "otp_mismatch", email=email)
            raise BadRequestError(
                "The OTP you entered is incorrect. Please double-check the OTP and try again."
            )

        try:
            fname = pending["fname"]
            lname = pending["lname"]
            email = pending["email"]
            password = self._crypto.decrypt(pending["password"], self._config.crypto_secret)
        except (KeyError, TypeError, DecryptionError):
            self._log_activation_failure(context, "token_payload_invalid")
            raise BadRequestError(
                "Your activation link has expired or is invalid. "
                "Please try again or request a new activation email."
            )

        if self._seller_db.get_seller_by_email(email) is not None:
            self._log_activation_failure(context, "email_taken", email=email)
            raise BadRequestError("Email is already registered. Please use a different email address.")

        seller = self._seller_db.create_seller(
            fname=capitalize(fname),
            lname=capitalize(lname),
            email=email,
            password=password,
            is_verified=True,
        )

        self._security_logger.log(
            SecurityEvent.SELLER_ACTIVATED,
            email=seller.email,
            seller_id=seller.id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
        logger.info(f"Seller {seller.id} activated")

        return seller

    def _log_activation_failure(self, context: RequestContext, reason: str, email: str | None = None) -> None:
        self._security_logger.log(
            SecurityEvent.ACTIVATION_FAILED,
            email=email,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            details={"reason": reason},
        )

    # ------------------------------------------------------------------
    # Signin / session
    # ------------------------------------------------------------------

    def signin(
        self,
        email: str | None,
        password: str | None,
        context: RequestContext | None = None,
    ) -> IssuedSession:
        """Verify credentials and issue a session.

        Unknown email and wrong password produce the same error.

        Raises:
            BadRequestError: Missing fields.
            UnauthorizedError: Bad credentials.
        """
        context = context or RequestContext()

        if not email or not password:
            raise BadRequestError("Please provide your email and password.")

        email = normalize_email(email)
        credentials = self._seller_db.get_credentials_by_email(email)
        password_hash = credentials.password_hash if credentials else None

        if not verify_password(password, password_hash, rounds=self._config.bcrypt_rounds):
            self._security_logger.log(
                SecurityEvent.SIGNIN_FAILED,
                email=email,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )
            logger.info(f"Failed signin for {email}")
            raise UnauthorizedError(BAD_CREDENTIALS_MESSAGE, code=ErrorCodes.INVALID_CREDENTIALS)

        self._security_logger.log(
            SecurityEvent.SIGNIN_SUCCEEDED,
            email=email,
            seller_id=credentials.seller.id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

        return self.issue_session(credentials.seller, context)

    def issue_session(self, seller: Seller, context: RequestContext | None = None) -> IssuedSession:
        """Sign access/refresh tokens and write the session snapshot.

        Overwrites any existing snapshot: a fresh signin always wins.
        """
        context = context or RequestContext()

        access_token = self._sign_access_token(seller)
        refresh_token = self._sign_refresh_token(seller)
        self._session_manager.store_session(seller)
        logger.info(f"Session issued for seller {seller.id}")

        self._security_logger.log(
            SecurityEvent.SESSION_CREATED,
            email=seller.email,
            seller_id=seller.id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

        return IssuedSession(seller=seller, access_token=access_token, refresh_token=refresh_token)

    def refresh_access_token(
        self,
        refresh_token: str | None,
        context: RequestContext | None = None,
    ) -> IssuedSession:
        """Mint a new token pair from the refresh token and the cached session.

        Reads only the session cache. The snapshot is re-written with the
        session TTL only if absent, so a concurrent refresh keeps the first
        writer's value.

        Raises:
            BadRequestError: Missing/invalid/expired refresh token or no session.
        """
        context = context or RequestContext()

        if not refresh_token:
            raise BadRequestError("Refresh token not found. Please log in to access this resource.")

        try:
            claims = self._tokens.verify(refresh_token, self._config.refresh_token_secret)
        except ExpiredTokenError:
            raise BadRequestError("Your refresh token has expired. Please log in again to obtain a new token.")
        except TokenError:
            raise BadRequestError(
                "Your refresh token is invalid or has expired. Please log in again to obtain a new token."
            )

        seller_id = claims.get("id")
        seller = self._session_manager.get_session(seller_id) if seller_id else None
        if seller is None:
            raise BadRequestError("User session not found. Please log in again to restore your session.")

        access_token = self._sign_access_token(seller)
        new_refresh_token = self._sign_refresh_token(seller)
        self._session_manager.store_session(seller, only_if_absent=True)
        logger.info(f"Access token refreshed for seller {seller.id}")

        self._security_logger.log(
            SecurityEvent.SESSION_REFRESHED,
            email=seller.email,
            seller_id=seller.id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

        return IssuedSession(seller=seller, access_token=access_token, refresh_token=new_refresh_token)

    def logout(self, seller: Seller | None, context: RequestContext | None = None) -> None:
        """Delete the seller's session snapshot.

        Raises:
            BadRequestError: No authenticated seller.
        """
        context = context or RequestContext()

        if seller is None:
            raise BadRequestError(LOGIN_REQUIRED_MESSAGE)

        self._session_manager.revoke_session(seller.id)
        logger.info(f"Seller {seller.id} logged out")

        self._security_logger.log(
            SecurityEvent.SESSION_REVOKED,
            email=seller.email,
            seller_id=seller.id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )

    # ------------------------------------------------------------------
    # Request authentication
    # ------------------------------------------------------------------

    def authenticate(self, access_token: str | None) -> Seller:
        """Resolve an access token to the seller in the persistent store.

        Raises:
            BadRequestError: Token missing, unverifiable, or seller unknown.
        """
        if not access_token:
            raise BadRequestError(LOGIN_REQUIRED_MESSAGE)

        try:
            claims = self._tokens.verify(access_token, self._config.access_token_secret)
        except ExpiredTokenError:
            raise BadRequestError(f"Your access token has expired. {LOGIN_REQUIRED_MESSAGE}")
        except TokenError:
            raise BadRequestError(f"Access token is not valid. {LOGIN_REQUIRED_MESSAGE}")

        try:
            seller = self._seller_db.get_seller_by_id(claims.get("id", ""))
        except InvalidIdentifierError:
            seller = None

        if seller is None:
            raise BadRequestError(LOGIN_REQUIRED_MESSAGE)

        return seller

    def check_role(
        self,
        seller: Seller,
        roles: Iterable[SellerRole],
        context: RequestContext | None = None,
    ) -> None:
        """
        Raises:
            ForbiddenError: Seller's role is not among roles.
        """
        if seller.role not in set(roles):
            context = context or RequestContext()
            self._security_logger.log(
                SecurityEvent.ACCESS_DENIED,
                email=seller.email,
                seller_id=seller.id,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                details={"role": seller.role.value},
            )
            raise ForbiddenError("You do not have permission to perform this action")

    def get_seller_info(self, seller: Seller | None) -> Seller:
        """Return the seller profile, preferring the session cache.

        On a cache miss the persistent record is read and cached (only if
        absent) with the session TTL.

        Raises:
            BadRequestError: No authenticated seller, or seller no longer exists.
        """
        if seller is None:
            raise BadRequestError(
                "You need to be logged in to access your account information. Please log in and try again."
            )

        cached = self._session_manager.get_session(seller.id)
        if cached is not None:
            return cached

        stored = self._seller_db.get_seller_by_id(seller.id)
        if stored is None:
            raise BadRequestError("No user found. Please log in again to access your account.")

        self._session_manager.store_session(stored, only_if_absent=True)
        return stored


def _coerce_otp(value: str | int) -> int | None:
    """Submitted OTP as an integer; None when it is not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None
