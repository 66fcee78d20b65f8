"""Tests for SessionManager - seller session snapshots in Valkey."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from auth.types import Seller


@pytest.fixture
def seller() -> Seller:
    now = datetime.now(timezone.utc)
    return Seller(
        id=uuid4(),
        email="seller@example.com",
        fname="Ada",
        lname="Lovelace",
        is_verified=True,
        created_at=now,
        updated_at=now,
    )


def _key(session_manager, seller) -> str:
    return f"{session_manager.KEY_PREFIX}{seller.id}"


class TestStoreSession:

    def test_stores_snapshot_with_ttl(self, session_manager, seller, fake_redis, auth_config):
        assert session_manager.store_session(seller) is True

        key = _key(session_manager, seller)
        assert key in fake_redis.store
        assert fake_redis.expiry[key] == auth_config.session_ttl_seconds

    def test_overwrites_by_default(self, session_manager, seller):
        session_manager.store_session(seller.model_copy(update={"fname": "Old"}))
        session_manager.store_session(seller)

        assert session_manager.get_session(seller.id).fname == "Ada"

    def test_only_if_absent_keeps_first_writer(self, session_manager, seller):
        session_manager.store_session(seller)

        written = session_manager.store_session(seller.model_copy(update={"fname": "Late"}), only_if_absent=True)

        assert written is False
        assert session_manager.get_session(seller.id).fname == "Ada"

    def test_only_if_absent_writes_when_missing(self, session_manager, seller, fake_redis, auth_config):
        assert session_manager.store_session(seller, only_if_absent=True) is True
        assert fake_redis.expiry[_key(session_manager, seller)] == auth_config.session_ttl_seconds


class TestGetSession:

    def test_returns_snapshot(self, session_manager, seller):
        session_manager.store_session(seller)

        assert session_manager.get_session(str(seller.id)) == seller

    def test_missing_returns_none(self, session_manager):
        assert session_manager.get_session(uuid4()) is None

    def test_corrupt_entry_discarded(self, session_manager, seller, fake_redis):
        fake_redis.store[_key(session_manager, seller)] = "{not json"

        assert session_manager.get_session(seller.id) is None
        assert _key(session_manager, seller) not in fake_redis.store

    def test_malformed_entry_discarded(self, session_manager, seller, fake_redis):
        fake_redis.store[_key(session_manager, seller)] = '{"id": "x"}'

        assert session_manager.get_session(seller.id) is None
        assert _key(session_manager, seller) not in fake_redis.store


class TestRevokeSession:

    def test_deletes_snapshot(self, session_manager, seller):
        session_manager.store_session(seller)

        session_manager.revoke_session(seller.id)

        assert session_manager.get_session(seller.id) is None

    def test_missing_session_is_fine(self, session_manager):
        session_manager.revoke_session(uuid4())
