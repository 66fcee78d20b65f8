"""Seller session cache.

Sessions are stored in Valkey as JSON snapshots of the Seller record (never
including the password), keyed by seller id, with the same TTL on every
write.

Consistency contract: the snapshot is a cache of the sellers table, not a
second source of truth. It is taken at signin (or on a cache miss) and is not
updated when the persistent record changes, so readers may see a stale
snapshot for up to the session TTL. Token refresh deliberately reads only
the cache: a missing snapshot means the session is over.
"""

import logging
from uuid import UUID

from pydantic import ValidationError

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Seller

logger = logging.getLogger(__name__)


class SessionManager:
    """Seller session snapshot lifecycle in Valkey."""

    KEY_PREFIX = "seller_session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, seller_id: UUID | str) -> str:
        """Generate Valkey key for a seller's session."""
        return f"{self.KEY_PREFIX}{seller_id}"

    def store_session(self, seller: Seller, only_if_absent: bool = False) -> bool:
        """Write the seller snapshot with the configured TTL.

        With only_if_absent, an existing snapshot wins (first writer wins
        when two refreshes race).

        Returns:
            True if this call wrote the snapshot.
        """
        written = self._valkey.set_json(
            self._key(seller.id),
            seller.model_dump(mode="json"),
            expire_seconds=self._config.session_ttl_seconds,
            only_if_absent=only_if_absent,
        )
        if not written:
            logger.debug(f"Session for seller {seller.id} already present, kept existing snapshot")
        return written

    def get_session(self, seller_id: UUID | str) -> Seller | None:
        """Return the cached snapshot, or None if absent or unreadable."""
        try:
            data = self._valkey.get_json(self._key(seller_id))
        except ValueError:
            logger.warning(f"Discarding corrupt session for seller {seller_id}")
            self._valkey.delete(self._key(seller_id))
            return None

        if data is None:
            return None

        try:
            return Seller.model_validate(data)
        except ValidationError:
            logger.warning(f"Discarding malformed session for seller {seller_id}")
            self._valkey.delete(self._key(seller_id))
            return None

    def revoke_session(self, seller_id: UUID | str) -> None:
        """Delete the snapshot (logout).

        Safe to call when no session exists.
        """
        self._valkey.delete(self._key(seller_id))
