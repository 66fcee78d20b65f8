"""Bearer token signing and verification.

HS256 JWTs via PyJWT. Access, refresh, and activation tokens each use their
own secret, so a token of one kind never verifies as another.
"""

import re
from datetime import timedelta
from typing import Any

import jwt

from auth.exceptions import ExpiredTokenError, InvalidTokenError, NotYetValidError
from utils.timezone import now_utc

ALGORITHM = "HS256"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd])\s*$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_expiry(value: timedelta | int | str) -> timedelta:
    """
    Normalize an expiry to a timedelta.

    Accepts a timedelta, integer seconds, or a string such as "30s", "5m",
    "12h", "3d". A bare numeric string is read as seconds.

    Raises:
        ValueError: If the value cannot be interpreted or is not positive.
    """
    if isinstance(value, timedelta):
        delta = value
    elif isinstance(value, bool):
        raise ValueError(f"Invalid expiry: {value!r}")
    elif isinstance(value, int):
        delta = timedelta(seconds=value)
    elif isinstance(value, str):
        if value.strip().isdigit():
            delta = timedelta(seconds=int(value))
        else:
            match = _DURATION_PATTERN.match(value)
            if match is None:
                raise ValueError(f"Invalid expiry: {value!r}")
            amount, unit = match.groups()
            delta = timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])
    else:
        raise ValueError(f"Invalid expiry: {value!r}")

    if delta <= timedelta(0):
        raise ValueError(f"Expiry must be positive: {value!r}")
    return delta


class TokenSigner:
    """
    Stateless JWT signer.

    Usage:
        signer = TokenSigner()
        token = signer.sign({"id": str(seller.id)}, secret, "5m")
        claims = signer.verify(token, secret)
    """

    def sign(
        self,
        payload: dict[str, Any],
        secret: str,
        expires_in: timedelta | int | str,
        not_before: timedelta | None = None,
    ) -> str:
        """
        Sign payload with an expiry.

        Args:
            payload: JSON-serializable claims
            secret: HMAC secret for this token kind
            expires_in: Lifetime (see parse_expiry)
            not_before: Optional delay before the token becomes valid
        """
        now = now_utc()
        claims = dict(payload)
        claims["iat"] = now
        claims["exp"] = now + parse_expiry(expires_in)
        if not_before is not None:
            claims["nbf"] = now + not_before
        return jwt.encode(claims, secret, algorithm=ALGORITHM)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """
        Verify signature and time claims, return the claims.

        Raises:
            ExpiredTokenError: exp is in the past
            NotYetValidError: nbf is in the future
            InvalidTokenError: anything else (malformed, wrong secret, unsigned)
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except jwt.ImmatureSignatureError as e:
            raise NotYetValidError("Token is not yet valid") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e
