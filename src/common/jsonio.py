import json
import os
from pathlib import Path
from typing import Any


def atomic_write_json(path: str | Path, data: Any) -> Path:
    """Write ``data`` as pretty JSON, replacing ``path`` in one step.

    The payload goes to a hidden sibling file first and is fsynced, so readers
    never see a half-written target.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = target.with_name(f".{target.name}.tmp")
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
        handle.flush()
        os.fsync(handle.fileno())
    try:
        os.replace(tmp_path, target)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
    return target
