"""Tests for ValkeyClient - Redis-compatible session cache store."""

import pytest
import redis

from clients.valkey_client import ValkeyClient


class TestValkeyClientInit:
    """Connection initialization."""

    def test_connects_with_valid_url(self, valkey):
        """Valid URL creates working connection."""
        assert valkey.ping() is True

    def test_unreachable_server_fails_fast(self, monkeypatch):
        """Connection failure surfaces at construction."""

        class Unreachable:
            def ping(self):
                raise redis.ConnectionError("refused")

        monkeypatch.setattr("redis.from_url", lambda url, **kwargs: Unreachable())

        with pytest.raises(redis.ConnectionError):
            ValkeyClient("redis://localhost:1/0")


class TestBasicOperations:
    """Get/set/delete operations."""

    def test_set_and_get(self, valkey):
        """Set then get returns same value."""
        assert valkey.set("test:basic", "hello") is True
        assert valkey.get("test:basic") == "hello"

    def test_get_missing_returns_none(self, valkey):
        """Get on non-existent key returns None (not error)."""
        assert valkey.get("test:nonexistent") is None

    def test_delete_returns_true_when_existed(self, valkey):
        valkey.set("test:delete", "value")
        assert valkey.delete("test:delete") is True

    def test_delete_returns_false_when_missing(self, valkey):
        assert valkey.delete("test:nonexistent") is False

    def test_delete_removes_key(self, valkey, fake_redis):
        valkey.set("test:delete", "value")
        valkey.delete("test:delete")
        assert "test:delete" not in fake_redis.store


class TestOnlyIfAbsent:
    """SET NX semantics."""

    def test_writes_when_absent(self, valkey):
        assert valkey.set("test:nx", "first", only_if_absent=True) is True
        assert valkey.get("test:nx") == "first"

    def test_existing_value_wins(self, valkey):
        valkey.set("test:nx", "first")

        assert valkey.set("test:nx", "second", only_if_absent=True) is False
        assert valkey.get("test:nx") == "first"

    def test_plain_set_overwrites(self, valkey):
        valkey.set("test:nx", "first")

        assert valkey.set("test:nx", "second") is True
        assert valkey.get("test:nx") == "second"


class TestExpiration:
    """Expiry is passed through to SET EX."""

    def test_expire_seconds_sent_as_ex(self, valkey, fake_redis):
        valkey.set("test:ttl", "value", expire_seconds=100)
        assert fake_redis.expiry["test:ttl"] == 100

    def test_no_expiry_by_default(self, valkey, fake_redis):
        valkey.set("test:noexpiry", "value")
        assert "test:noexpiry" not in fake_redis.expiry


class TestJsonHelpers:
    """JSON serialization helpers."""

    def test_json_values_survive_storage(self, valkey, fake_redis):
        data = {"id": "123", "roles": ["seller"], "is_verified": True}
        valkey.set_json("test:json", data, expire_seconds=60)

        assert valkey.get_json("test:json") == data
        assert fake_redis.expiry["test:json"] == 60

    def test_set_json_only_if_absent(self, valkey):
        valkey.set_json("test:json", {"v": 1})

        assert valkey.set_json("test:json", {"v": 2}, only_if_absent=True) is False
        assert valkey.get_json("test:json") == {"v": 1}

    def test_get_json_missing_returns_none(self, valkey):
        assert valkey.get_json("test:nonexistent:json") is None

    def test_get_json_invalid_raises(self, valkey):
        valkey.set("test:notjson", "not valid json {")
        with pytest.raises(ValueError):
            valkey.get_json("test:notjson")


class TestClose:

    def test_close_closes_connection(self, valkey, fake_redis):
        valkey.close()
        assert fake_redis.closed is True
