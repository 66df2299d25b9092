"""Dump every key of the local store to a timestamped JSON file."""

import json
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from smartschool.config import Config
from smartschool.storage.local_store import LocalStore


def export_local_store(store: LocalStore, export_dir: Path) -> Path:
    """Write ``{key: parsed value}`` for every key; returns the file path."""
    export_dir.mkdir(parents=True, exist_ok=True)
    snapshot = {}
    for key in store.keys():
        raw = store.get(key)
        try:
            snapshot[key] = json.loads(raw)
        except (TypeError, ValueError):
            snapshot[key] = raw

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    target = export_dir / f"local_store_{timestamp}.json"
    target.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
    return target


def main():
    export_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Config.EXPORT_PATH
    store = LocalStore.from_config()
    target = export_local_store(store, export_dir)
    print(f"Exported {len(store.keys())} keys "
          f"({store.usage_megabytes()} MB) to {target}")


if __name__ == "__main__":
    main()
