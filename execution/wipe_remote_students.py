"""Bulk wipe: clear the student registry from the cloud and local store."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from smartschool.config import Config
from smartschool.storage.local_store import LocalStore
from smartschool.storage.remote_store import RemoteStore, RemoteStoreError
from smartschool.sync.state_store import StateStore


def main():
    if "--yes" not in sys.argv:
        print("Usage: python wipe_remote_students.py --yes")
        print("Deletes every student row from the cloud and local store.")
        sys.exit(1)

    if not Config.is_remote_configured():
        print("SUPABASE_URL / SUPABASE_KEY are not set.")
        sys.exit(1)

    remote = RemoteStore.from_config()
    store = StateStore(LocalStore.from_config(), remote)
    count = len(store.get("students"))
    try:
        store.clear_collection("students")
    except RemoteStoreError as e:
        print(f"Registry could not be cleared from cloud: {e}")
        sys.exit(1)
    finally:
        store.close()
        remote.close()

    print(f"Cleared student registry ({count} cached locally)")


if __name__ == "__main__":
    main()
