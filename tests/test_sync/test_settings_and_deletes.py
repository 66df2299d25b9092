"""Tests for branding settings saves and delete propagation."""

import json

import pytest

from smartschool.storage.local_store import StorageQuotaError
from smartschool.storage.remote_store import RemoteStoreError
from smartschool.sync.state_store import StateStore
from smartschool.utils.constants import (
    CLEAR_ALL_SENTINEL,
    SETTINGS_SAVE_FAILED_MESSAGE,
    STORAGE_FULL_MESSAGE,
)

BRANDING = ("Kabwe Secondary", "Excellence Always", "+260 955 000111",
            "data:image/png;base64,AAAA")


@pytest.fixture
def store(local, remote, fixed_clock):
    return StateStore(local, remote, clock=fixed_clock)


class TestSaveSettings:
    def test_saves_locally_and_remotely(self, local, remote, store):
        assert store.save_settings(*BRANDING) is True

        assert store.branding() == {
            "schoolName": "Kabwe Secondary",
            "schoolMotto": "Excellence Always",
            "schoolContact": "+260 955 000111",
            "schoolLogo": "data:image/png;base64,AAAA",
        }
        assert local.get("sms_schoolName") == "Kabwe Secondary"
        assert local.get("sms_schoolLogo") == "data:image/png;base64,AAAA"

        (call,) = remote.calls_named("upsert")
        assert call[1] == "settings"
        assert call[3] == "key"
        assert {row["key"] for row in call[2]} == {
            "schoolName", "schoolMotto", "schoolContact", "schoolLogo"
        }

    def test_sets_last_synced(self, store):
        store.save_settings(*BRANDING)
        assert store.status.last_synced == "14:30:05"

    def test_allowed_before_first_fetch(self, remote, store):
        assert store.status.is_first_load is True
        assert store.save_settings(*BRANDING) is True
        assert len(remote.calls_named("upsert")) == 1

    def test_remote_failure_reports_error(self, remote, store):
        remote.fail_writes = True
        assert store.save_settings(*BRANDING) is False
        assert store.status.sync_error == SETTINGS_SAVE_FAILED_MESSAGE
        assert store.branding()["schoolName"] == "Kabwe Secondary"

    def test_not_configured_reports_error(self, local, fixed_clock):
        store = StateStore(local, None, clock=fixed_clock)
        assert store.save_settings(*BRANDING) is False
        assert store.status.sync_error == SETTINGS_SAVE_FAILED_MESSAGE
        assert local.get("sms_schoolMotto") == "Excellence Always"

    def test_local_quota_still_pushes(self, local, remote, store,
                                      monkeypatch):
        def full(key, value):
            raise StorageQuotaError("full")
        monkeypatch.setattr(local, "set", full)

        assert store.save_settings(*BRANDING) is True
        assert store.status.sync_error == STORAGE_FULL_MESSAGE
        assert len(remote.calls_named("upsert")) == 1

    def test_saved_branding_survives_restart(self, local, remote, store):
        store.save_settings(*BRANDING)
        reloaded = StateStore(local, remote)
        assert reloaded.branding()["schoolContact"] == "+260 955 000111"

    def test_notifies_settings_channel(self, store):
        seen = []
        store.subscribe(seen.append)
        store.save_settings(*BRANDING)
        assert seen == ["settings"]


class TestDeletes:
    @pytest.fixture
    def ready(self, remote, store, make_students):
        remote.tables["students"] = make_students("S", 3)
        remote.tables["teachers"] = [{"id": "T1"}, {"id": "T2"}]
        store.fetch_cycle()
        return store

    def test_student_delete_reaches_remote(self, remote, ready):
        ready.delete_record("students", "S2")
        ready.flush()
        assert ("delete", "students", "id", "S2") in remote.calls
        assert [s["id"] for s in ready.get("students")] == ["S1", "S3"]
        assert [s["id"] for s in remote.tables["students"]] == ["S1", "S3"]

    def test_remote_delete_happens_before_local_removal(self, local, remote,
                                                        ready):
        remote.fail_writes = True
        with pytest.raises(RemoteStoreError):
            ready.delete_record("students", "S2")
        assert [s["id"] for s in ready.get("students")] == ["S1", "S2", "S3"]
        cached = json.loads(local.get("sms_students"))
        assert [s["id"] for s in cached] == ["S1", "S2", "S3"]

    def test_other_collections_delete_locally_only(self, remote, ready):
        ready.delete_record("teachers", "T1")
        assert remote.calls_named("delete") == []
        assert ready.get("teachers") == [{"id": "T2"}]

    def test_local_only_delete_reappears_after_fetch(self, remote, ready):
        ready.delete_record("teachers", "T1")
        ready.flush()
        ready.fetch_cycle()
        assert [t["id"] for t in ready.get("teachers")] == ["T1", "T2"]

    def test_propagate_all_deletes(self, local, remote, fixed_clock):
        remote.tables["teachers"] = [{"id": "T1"}, {"id": "T2"}]
        store = StateStore(local, remote, clock=fixed_clock,
                           propagate_all_deletes=True)
        store.fetch_cycle()
        store.delete_record("teachers", "T1")
        store.flush()
        assert ("delete", "teachers", "id", "T1") in remote.calls
        store.fetch_cycle()
        assert store.get("teachers") == [{"id": "T2"}]

    def test_local_only_collection_never_deletes_remotely(
            self, local, remote, fixed_clock):
        local.set("sms_resources", json.dumps([{"id": "R1"}]))
        store = StateStore(local, remote, clock=fixed_clock,
                           propagate_all_deletes=True)
        store.fetch_cycle()
        store.delete_record("resources", "R1")
        assert remote.calls_named("delete") == []
        assert store.get("resources") == []

    def test_clear_students_uses_sentinel(self, local, remote, ready):
        ready.clear_collection("students")
        assert ("delete_all_except", "students", "id",
                CLEAR_ALL_SENTINEL) in remote.calls
        assert ready.get("students") == []
        assert remote.tables["students"] == []
        assert json.loads(local.get("sms_students")) == []

    def test_clear_failure_keeps_local(self, remote, ready):
        remote.fail_writes = True
        with pytest.raises(RemoteStoreError):
            ready.clear_collection("students")
        assert len(ready.get("students")) == 3

    def test_delete_without_remote(self, local, make_students):
        local.set("sms_students", json.dumps(make_students("S", 2)))
        store = StateStore(local, None)
        store.delete_record("students", "S1")
        assert [s["id"] for s in store.get("students")] == ["S2"]
