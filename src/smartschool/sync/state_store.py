"""StateStore — offline-first synchronization of every school collection.

The store owns the authoritative in-memory copy of each tracked
collection and reconciles it two ways:

1. Fetch cycle: read every remote table concurrently and, only if all
   reads succeed, overwrite the in-memory collections according to each
   collection's policy (see ``sync.policies``).
2. Write-through: every local mutation replaces the whole collection,
   persists it to the local store, and queues an upsert of it to the
   remote table on a single background push worker.

Lifecycle is ``LOADING -> READY``. Outbound writes are only issued once
the first fetch cycle has succeeded, so the startup population from the
local store is never echoed back to the remote store.

Stale-result policy: each collection has a generation counter bumped by
every local mutation, and each fetch cycle has a sequence number. A
collection mutated while a cycle was in flight keeps its local value,
and a cycle finishing after a newer cycle already applied is discarded.
"""

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable

from smartschool.database.models import SettingRecord
from smartschool.storage.local_store import (
    LocalStore,
    StorageError,
    StorageQuotaError,
)
from smartschool.storage.remote_store import RemoteStore, RemoteStoreError
from smartschool.sync.policies import COLLECTIONS, CollectionPolicy
from smartschool.utils.constants import (
    BRANDING_FIELDS,
    CLEAR_ALL_SENTINEL,
    FETCH_FAILED_MESSAGE,
    SETTINGS_SAVE_FAILED_MESSAGE,
    SETTINGS_TABLE,
    STORAGE_FULL_MESSAGE,
)
from smartschool.utils.formatters import format_sync_time

logger = logging.getLogger(__name__)

SETTINGS_CHANNEL = "settings"


class SyncError(Exception):
    """Base exception for sync operations."""


class UnknownCollectionError(SyncError):
    """The named collection is not tracked by the store."""


class RecordNotFoundError(SyncError):
    """No record with the given id exists in the collection."""


class SyncPhase(Enum):
    LOADING = "loading"
    READY = "ready"


@dataclass
class SyncStatus:
    is_syncing: bool = False
    last_synced: str | None = None
    sync_error: str | None = None
    phase: SyncPhase = SyncPhase.LOADING

    @property
    def is_first_load(self) -> bool:
        return self.phase is SyncPhase.LOADING


class StateStore:
    """In-memory collections mirrored to a local and a remote store."""

    def __init__(self, local: LocalStore, remote: RemoteStore | None,
                 policies: Iterable[CollectionPolicy] = COLLECTIONS,
                 clock: Callable[[], datetime] = datetime.now,
                 propagate_all_deletes: bool = False):
        self.local = local
        self.remote = remote
        self.policies = {policy.name: policy for policy in policies}
        self.propagate_all_deletes = propagate_all_deletes
        self._clock = clock
        self._lock = threading.RLock()
        self._status = SyncStatus()
        self._collections: dict[str, list[dict]] = {}
        self._generations: dict[str, int] = {}
        self._branding: dict[str, str] = {}
        self._cycle_seq = 0
        self._applied_cycle = 0
        self._in_flight = 0
        self._subscribers: list[Callable[[str], None]] = []
        # One worker keeps remote pushes in mutation order
        self._push_pool = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="remote-push"
        )
        self._load_initial()

    @property
    def is_configured(self) -> bool:
        return self.remote is not None

    # ── Initialization ──────────────────────────────────────────

    def _load_initial(self):
        """Populate every collection and branding field from local storage."""
        for name, policy in self.policies.items():
            self._collections[name] = self._read_collection(policy)
            self._generations[name] = 0
        for field_name, (key, default) in BRANDING_FIELDS.items():
            self._branding[field_name] = self.local.get(key) or default

    def _read_collection(self, policy: CollectionPolicy) -> list[dict]:
        raw = self.local.get(policy.local_key)
        if raw is None:
            return policy.default()
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning(
                "Discarding unparsable local value for %s", policy.local_key
            )
            return policy.default()
        if not isinstance(value, list):
            logger.warning(
                "Discarding non-list local value for %s", policy.local_key
            )
            return policy.default()
        return value

    # ── Read access ─────────────────────────────────────────────

    @property
    def status(self) -> SyncStatus:
        with self._lock:
            return replace(self._status)

    @property
    def phase(self) -> SyncPhase:
        return self.status.phase

    def get(self, name: str) -> list[dict]:
        """A shallow copy of the named collection."""
        self._policy(name)
        with self._lock:
            return list(self._collections[name])

    def find(self, name: str, record_id: str) -> dict | None:
        for record in self.get(name):
            if record.get("id") == record_id:
                return record
        return None

    def branding(self) -> dict[str, str]:
        with self._lock:
            return dict(self._branding)

    def subscribe(self, callback: Callable[[str], None]) -> Callable[[], None]:
        """Call ``callback(name)`` after each change; returns an unsubscribe."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    # ── Fetch cycle ─────────────────────────────────────────────

    def fetch_cycle(self) -> bool:
        """Pull every remote table and apply the results all-or-nothing.

        Returns True when the cycle succeeded (even if its results were
        discarded as stale), False when any read failed.
        """
        with self._lock:
            self._cycle_seq += 1
            cycle = self._cycle_seq
            self._in_flight += 1
            self._status.is_syncing = True
            self._status.sync_error = None
            started_generations = dict(self._generations)

        changed: list[str] = []
        try:
            results, settings_rows = self._fetch_all()
            with self._lock:
                if cycle < self._applied_cycle:
                    logger.info(
                        "Discarding results of fetch cycle %d; cycle %d "
                        "already applied", cycle, self._applied_cycle,
                    )
                    return True
                # An older cycle may have failed while this one was reading
                self._status.sync_error = None
                changed = self._apply_results(
                    results, settings_rows, started_generations
                )
                self._applied_cycle = cycle
                self._status.last_synced = format_sync_time(self._clock())
                if self._status.phase is SyncPhase.LOADING:
                    logger.info("First fetch complete; outbound sync enabled")
                self._status.phase = SyncPhase.READY
            logger.info(
                "Fetch cycle %d complete (%d collections updated)",
                cycle, len(changed),
            )
            return True
        except SyncError as e:
            with self._lock:
                if cycle < self._applied_cycle:
                    logger.warning(
                        f"Ignoring failure of stale fetch cycle {cycle}: {e}"
                    )
                    return False
                logger.error(f"Cloud sync failed: {e}")
                self._status.sync_error = str(e) or FETCH_FAILED_MESSAGE
            return False
        finally:
            with self._lock:
                self._in_flight -= 1
                self._status.is_syncing = self._in_flight > 0
            for name in changed:
                self._notify(name)

    refresh = fetch_cycle

    def _fetch_all(self) -> tuple[dict[str, list], list]:
        """Read every synced table concurrently; raise on the first failure."""
        if self.remote is None:
            raise SyncError("Cloud sync is not configured.")

        synced = [p for p in self.policies.values() if p.is_synced]
        jobs = [
            (p.name, p.remote_table, p.order_by, p.order_descending)
            for p in synced
        ]
        jobs.append((SETTINGS_CHANNEL, SETTINGS_TABLE, None, False))

        with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
            futures = [
                (name, pool.submit(self.remote.select, table,
                                   order_by=order_by, descending=desc))
                for name, table, order_by, desc in jobs
            ]

        results = {}
        for name, future in futures:
            error = future.exception()
            if error is not None:
                message = getattr(error, "message", None) or str(error)
                raise SyncError(message or FETCH_FAILED_MESSAGE) from error
            results[name] = future.result()

        settings_rows = results.pop(SETTINGS_CHANNEL)
        return results, settings_rows

    def _apply_results(self, results: dict[str, list], settings_rows: list,
                       started_generations: dict[str, int]) -> list[str]:
        """Overwrite collections per policy. Caller holds the lock."""
        changed = []
        for name, fetched in results.items():
            policy = self.policies[name]
            if not policy.should_apply(fetched):
                continue
            if self._generations[name] != started_generations.get(name):
                logger.info(
                    "Keeping local %s: modified during fetch cycle", name
                )
                continue
            self._collections[name] = list(fetched)
            self._persist_local(policy.local_key, fetched)
            changed.append(name)

        if self._apply_settings_rows(settings_rows):
            changed.append(SETTINGS_CHANNEL)
        return changed

    def _apply_settings_rows(self, rows: list) -> bool:
        """Map ``{key, value}`` rows onto branding fields independently."""
        updated = False
        for row in rows or []:
            setting = SettingRecord.from_dict(row)
            if setting.key not in BRANDING_FIELDS:
                continue
            value = "" if setting.value is None else str(setting.value)
            self._branding[setting.key] = value
            self._write_local(BRANDING_FIELDS[setting.key][0], value)
            updated = True
        return updated

    # ── Write-through ───────────────────────────────────────────

    def mutate(self, name: str, records: Iterable[dict]) -> Future | None:
        """Replace a collection wholesale and mirror it locally and remotely.

        Returns once the local copy is persisted. The remote upsert runs on
        the push worker; the returned future resolves to True when it
        succeeded. None means no push was queued.
        """
        policy = self._policy(name)
        records = list(records)
        with self._lock:
            self._collections[name] = records
            self._generations[name] += 1
            ready = self._status.phase is SyncPhase.READY

        self._persist_local(policy.local_key, records)
        pending = self._push_remote(policy, records, ready)
        self._notify(name)
        return pending

    def _persist_local(self, key: str, records: list):
        self._write_local(key, json.dumps(records))

    def _write_local(self, key: str, value: str):
        """Best-effort local write; the remote store is the durable copy."""
        try:
            self.local.set(key, value)
        except StorageQuotaError:
            logger.warning(
                "Local storage limit reached writing %s; "
                "prioritizing cloud sync", key,
            )
            with self._lock:
                self._status.sync_error = STORAGE_FULL_MESSAGE
        except StorageError as e:
            logger.error(f"Local write failed for {key}: {e}")

    def _push_remote(self, policy: CollectionPolicy, records: list,
                     ready: bool) -> Future | None:
        if not ready or not records or not policy.is_synced:
            return None
        if self.remote is None:
            return None
        return self._push_pool.submit(self._upsert, policy, records)

    def _upsert(self, policy: CollectionPolicy, records: list) -> bool:
        try:
            self.remote.upsert(policy.remote_table, records, on_conflict="id")
        except RemoteStoreError as e:
            logger.error(f"Failed to sync {policy.remote_table}: {e}")
            return False
        return True

    def flush(self, timeout: float | None = None):
        """Block until every queued remote push has finished."""
        self._push_pool.submit(lambda: None).result(timeout)

    def close(self):
        """Finish queued pushes and stop the push worker."""
        self._push_pool.shutdown(wait=True)

    # ── Record helpers ──────────────────────────────────────────

    def add_record(self, name: str, record: dict) -> Future | None:
        record_id = record.get("id")
        if not record_id:
            raise ValueError("Records must carry a non-empty 'id'")
        current = self.get(name)
        if any(r.get("id") == record_id for r in current):
            raise ValueError(f"{name} already contains id {record_id!r}")
        return self.mutate(name, current + [record])

    def update_record(self, name: str, record: dict) -> Future | None:
        current = self.get(name)
        for i, existing in enumerate(current):
            if existing.get("id") == record.get("id"):
                current[i] = record
                return self.mutate(name, current)
        raise RecordNotFoundError(
            f"No record {record.get('id')!r} in {name}"
        )

    def upsert_record(self, name: str, record: dict) -> Future | None:
        if self.find(name, record.get("id")) is None:
            return self.add_record(name, record)
        return self.update_record(name, record)

    def delete_record(self, name: str, record_id: str) -> Future | None:
        """Remove a record locally, deleting it remotely first when the
        collection's delete policy says so.

        Raises RemoteStoreError (and leaves the collection intact) if the
        remote delete fails.
        """
        policy = self._policy(name)
        if self._deletes_remotely(policy):
            self.remote.delete(policy.remote_table, "id", record_id)
        remaining = [r for r in self.get(name) if r.get("id") != record_id]
        return self.mutate(name, remaining)

    def clear_collection(self, name: str) -> Future | None:
        """Bulk wipe: remote delete-all first for remote-delete collections."""
        policy = self._policy(name)
        if self._deletes_remotely(policy):
            self.remote.delete_all_except(
                policy.remote_table, "id", CLEAR_ALL_SENTINEL
            )
        return self.mutate(name, [])

    def _deletes_remotely(self, policy: CollectionPolicy) -> bool:
        if self.remote is None or not policy.is_synced:
            return False
        return policy.remote_delete or self.propagate_all_deletes

    # ── Settings ────────────────────────────────────────────────

    def save_settings(self, name: str, motto: str, contact: str,
                      logo: str) -> bool:
        """Save branding locally, then upsert the four rows remotely."""
        values = {
            "schoolName": name,
            "schoolMotto": motto,
            "schoolContact": contact,
            "schoolLogo": logo,
        }
        with self._lock:
            self._branding.update(values)
        for field_name, value in values.items():
            self._write_local(BRANDING_FIELDS[field_name][0], value)
        self._notify(SETTINGS_CHANNEL)

        rows = [SettingRecord(k, v).to_dict() for k, v in values.items()]
        try:
            if self.remote is None:
                raise RemoteStoreError("Cloud sync is not configured.",
                                       table=SETTINGS_TABLE)
            self.remote.upsert(SETTINGS_TABLE, rows, on_conflict="key")
        except RemoteStoreError as e:
            logger.error(f"Manual branding sync failed: {e}")
            with self._lock:
                self._status.sync_error = SETTINGS_SAVE_FAILED_MESSAGE
            return False

        with self._lock:
            self._status.last_synced = format_sync_time(self._clock())
        return True

    # ── Internals ───────────────────────────────────────────────

    def _policy(self, name: str) -> CollectionPolicy:
        try:
            return self.policies[name]
        except KeyError:
            raise UnknownCollectionError(
                f"Unknown collection: {name}"
            ) from None

    def _notify(self, name: str):
        for callback in list(self._subscribers):
            try:
                callback(name)
            except Exception:
                logger.exception(f"Change subscriber failed for {name}")
