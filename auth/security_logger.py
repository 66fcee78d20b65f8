"""Security event logging for the seller auth audit trail.

Append-only log to the security_events table. Never receives passwords,
OTPs, or tokens.
"""

from enum import Enum
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

SECURITY_EVENTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS security_events (
    id BIGSERIAL PRIMARY KEY,
    event_type TEXT NOT NULL,
    email TEXT,
    seller_id UUID,
    ip_address TEXT,
    user_agent TEXT,
    details JSONB,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


class SecurityEvent(Enum):
    """Auth security event types."""

    SIGNUP_REQUESTED = "signup_requested"
    SIGNUP_REJECTED = "signup_rejected"
    VERIFICATION_EMAIL_SENT = "verification_email_sent"
    VERIFICATION_EMAIL_FAILED = "verification_email_failed"
    ACTIVATION_FAILED = "activation_failed"
    SELLER_ACTIVATED = "seller_activated"
    SIGNIN_SUCCEEDED = "signin_succeeded"
    SIGNIN_FAILED = "signin_failed"
    SESSION_CREATED = "session_created"
    SESSION_REFRESHED = "session_refreshed"
    SESSION_REVOKED = "session_revoked"
    ACCESS_DENIED = "access_denied"


class SecurityLogger:
    """Append-only security event logger."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def create_schema(self) -> None:
        """Create the security_events table if missing."""
        self._db.execute(SECURITY_EVENTS_SCHEMA)

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        seller_id: UUID | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log security event to database."""
        self._db.execute_returning(
            """INSERT INTO security_events
               (event_type, email, seller_id, ip_address, user_agent, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                email,
                str(seller_id) if seller_id else None,
                ip_address,
                user_agent,
                Json(details) if details else None,
                now_utc(),
            ),
        )
