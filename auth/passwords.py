"""Password hashing with bcrypt."""

import logging
from functools import lru_cache

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases raise instead of
# truncating, so truncate explicitly on both hash and verify.
_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> bytes:
    """Hash compared against when the email is unknown, at the same cost as real hashes."""
    return bcrypt.hashpw(b"dummy-password-for-timing", bcrypt.gensalt(rounds=rounds))


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of plain."""
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str | None, rounds: int = 12) -> bool:
    """
    Return True if plain matches hashed.

    A None hash (unknown seller, or a social-login account with no password)
    is checked against a dummy hash of the given cost and always returns
    False, so signin does the same work whether or not the account exists.
    """
    if hashed is None:
        bcrypt.checkpw(_encode(plain), _dummy_hash(rounds))
        return False
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False
