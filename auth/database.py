"""Persistent seller store.

The sellers table is canonical for identity. Emails are stored lower-cased
and trimmed; the unique index on email is the last line of defence against
two activations racing for the same address.
"""

import logging
from uuid import UUID

import psycopg2.errors

from clients.postgres_client import PostgresClient
from auth.exceptions import DuplicateKeyError, InvalidIdentifierError
from auth.passwords import hash_password
from auth.types import Avatar, Seller, SellerCredentials, SellerRole

logger = logging.getLogger(__name__)

SELLERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS sellers (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    email TEXT NOT NULL,
    fname TEXT NOT NULL,
    lname TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'seller' CHECK (role IN ('seller', 'admin')),
    password_hash TEXT,
    is_verified BOOLEAN NOT NULL DEFAULT false,
    is_social BOOLEAN NOT NULL DEFAULT false,
    avatar_public_id TEXT,
    avatar_url TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE UNIQUE INDEX IF NOT EXISTS sellers_email_key ON sellers (email);
"""

# Every read lists its columns; password_hash only appears in the credentials query.
_SELLER_COLUMNS = """id, email, fname, lname, role, is_verified, is_social,
                     avatar_public_id, avatar_url, created_at, updated_at"""


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_seller_id(seller_id: UUID | str) -> UUID:
    """
    Coerce a seller id to UUID.

    Raises:
        InvalidIdentifierError: If the value is not a well-formed UUID.
    """
    if isinstance(seller_id, UUID):
        return seller_id
    try:
        return UUID(str(seller_id))
    except ValueError:
        raise InvalidIdentifierError("id", seller_id)


def _row_to_seller(row: dict) -> Seller:
    return Seller(
        id=UUID(row["id"]) if isinstance(row["id"], str) else row["id"],
        email=row["email"],
        fname=row["fname"],
        lname=row["lname"],
        role=SellerRole(row["role"]),
        is_verified=row["is_verified"],
        is_social=row["is_social"],
        avatar=Avatar(public_id=row["avatar_public_id"], url=row["avatar_url"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SellerDatabase:
    """Database operations for seller identities."""

    def __init__(self, postgres: PostgresClient, bcrypt_rounds: int = 12):
        self._db = postgres
        self._bcrypt_rounds = bcrypt_rounds

    def create_schema(self) -> None:
        """Create the sellers table and email index if missing."""
        self._db.execute(SELLERS_SCHEMA)

    def get_seller_by_email(self, email: str) -> Seller | None:
        """Find seller by email (case-insensitive). Password is never selected."""
        row = self._db.execute_single(
            f"SELECT {_SELLER_COLUMNS} FROM sellers WHERE email = %s",
            (normalize_email(email),),
        )
        if row is None:
            return None
        return _row_to_seller(row)

    def get_seller_by_id(self, seller_id: UUID | str) -> Seller | None:
        """
        Find seller by ID.

        Raises:
            InvalidIdentifierError: If seller_id is not a UUID.
        """
        row = self._db.execute_single(
            f"SELECT {_SELLER_COLUMNS} FROM sellers WHERE id = %s",
            (parse_seller_id(seller_id),),
        )
        if row is None:
            return None
        return _row_to_seller(row)

    def get_credentials_by_email(self, email: str) -> SellerCredentials | None:
        """Find seller by email including the password hash (signin only)."""
        row = self._db.execute_single(
            f"SELECT {_SELLER_COLUMNS}, password_hash FROM sellers WHERE email = %s",
            (normalize_email(email),),
        )
        if row is None or row["password_hash"] is None:
            return None
        return SellerCredentials(seller=_row_to_seller(row), password_hash=row["password_hash"])

    def create_seller(
        self,
        fname: str,
        lname: str,
        email: str,
        password: str,
        is_verified: bool = False,
        role: SellerRole = SellerRole.SELLER,
    ) -> Seller:
        """
        Insert a seller, hashing the plaintext password first.

        Raises:
            DuplicateKeyError: If the email is already registered.
        """
        email = normalize_email(email)
        try:
            rows = self._db.execute_returning(
                f"""INSERT INTO sellers (email, fname, lname, role, password_hash, is_verified)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING {_SELLER_COLUMNS}""",
                (
                    email,
                    fname.strip(),
                    lname.strip(),
                    role.value,
                    hash_password(password, self._bcrypt_rounds),
                    is_verified,
                ),
            )
        except psycopg2.errors.UniqueViolation:
            logger.warning(f"Duplicate seller insert for {email}")
            raise DuplicateKeyError("email", email)

        return _row_to_seller(rows[0])
