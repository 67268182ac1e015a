from datetime import datetime, timezone
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict

import yaml


def utc_now() -> str:
    """Return an ISO 8601 timestamp with Z suffix."""
    return datetime.now(timezone.utc).isoformat()


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def load_yaml(path: Path) -> Any:
    if not path.exists():
        return {}
    text = path.read_text()
    if not text.strip():
        return {}
    return yaml.safe_load(text) or {}


def dump_yaml(data: Dict[str, Any], path: Path) -> None:
    ensure_dir(path.parent)
    path.write_text(yaml.safe_dump(data, sort_keys=False))


@contextmanager
def file_lock(lock_path: Path):
    """Advisory lock using fcntl (best-effort)."""
    ensure_dir(lock_path.parent)
    import fcntl

    with lock_path.open("w") as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
