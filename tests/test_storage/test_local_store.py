"""Tests for the quota-limited local key-value store."""

import pytest

from smartschool.database.connection import DatabaseConnection
from smartschool.storage.local_store import (
    LocalStore,
    StorageQuotaError,
    entry_size,
)


@pytest.fixture
def small_store(tmp_path):
    """A store that holds only 200 bytes (100 characters)."""
    return LocalStore(DatabaseConnection(tmp_path / "small.db"),
                      quota_bytes=200)


class TestBasicOperations:
    def test_get_missing_returns_none(self, local):
        assert local.get("sms_students") is None

    def test_set_then_get(self, local):
        local.set("sms_students", "[]")
        assert local.get("sms_students") == "[]"

    def test_set_overwrites(self, local):
        local.set("sms_schoolName", "Old")
        local.set("sms_schoolName", "New")
        assert local.get("sms_schoolName") == "New"
        assert local.keys() == ["sms_schoolName"]

    def test_remove(self, local):
        local.set("sms_auth_user", "{}")
        local.remove("sms_auth_user")
        assert local.get("sms_auth_user") is None

    def test_remove_missing_is_noop(self, local):
        local.remove("never_set")

    def test_clear(self, local):
        local.set("a", "1")
        local.set("b", "2")
        local.clear()
        assert local.keys() == []

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "persist.db"
        LocalStore(DatabaseConnection(path)).set("k", "v")
        assert LocalStore(DatabaseConnection(path)).get("k") == "v"


class TestUsage:
    def test_entry_size_counts_two_bytes_per_char(self):
        assert entry_size("ab", "cde") == 10

    def test_entry_size_counts_surrogate_pairs(self):
        # "😀" is one code point but two UTF-16 code units
        assert entry_size("k", "😀") == 6
        assert entry_size("k", "é") == 4

    def test_usage_counts_emoji_as_two_units(self, local):
        local.set("sms_schoolMotto", "Go 🚀")
        assert local.usage_bytes() == (15 + 5) * 2

    def test_usage_sums_entries(self, local):
        local.set("ab", "cde")
        local.set("x", "y")
        assert local.usage_bytes() == 14

    def test_usage_megabytes_rounds(self, local):
        assert local.usage_megabytes() == 0.0


class TestQuota:
    def test_write_within_quota(self, small_store):
        small_store.set("k", "v" * 90)
        assert small_store.get("k") == "v" * 90

    def test_write_over_quota_raises(self, small_store):
        with pytest.raises(StorageQuotaError):
            small_store.set("k", "v" * 100)

    def test_failed_write_keeps_previous_value(self, small_store):
        small_store.set("k", "small")
        with pytest.raises(StorageQuotaError):
            small_store.set("k", "v" * 100)
        assert small_store.get("k") == "small"

    def test_replacing_key_does_not_double_count(self, small_store):
        small_store.set("k", "v" * 90)
        # Same size again fits because the old value is replaced
        small_store.set("k", "w" * 90)
        assert small_store.get("k") == "w" * 90

    def test_quota_counts_other_keys(self, small_store):
        small_store.set("a", "x" * 60)
        with pytest.raises(StorageQuotaError):
            small_store.set("b", "y" * 60)
