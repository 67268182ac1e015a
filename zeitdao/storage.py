from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

import structlog

from . import config
from .adapters.ledger_adapter import LedgerExecutor, load_ledger, save_ledger
from .charter import Charter
from .db import upsert_snapshot
from .engine import GovernanceEngine
from .utils import dump_yaml, ensure_dir, file_lock, load_yaml, utc_now

logger = structlog.get_logger(__name__)


class EngineNotInitialized(FileNotFoundError):
    pass


def engine_exists(path: Optional[Path] = None) -> bool:
    return (path or config.ENGINE_FILE).exists()


def create_engine(charter: Charter) -> GovernanceEngine:
    engine = GovernanceEngine(charter.identity, charter.members, charter.quorum)
    save_engine(engine)
    return engine


def load_engine(path: Optional[Path] = None) -> GovernanceEngine:
    engine_path = path or config.ENGINE_FILE
    data = load_yaml(engine_path)
    if not data:
        raise EngineNotInitialized(f"No engine state at {engine_path}; run `zeitdao init` first")
    return GovernanceEngine.from_dict(data)


def save_engine(engine: GovernanceEngine, path: Optional[Path] = None) -> None:
    ensure_dir(config.STATE_DIR)
    snapshot = engine.to_dict()
    snapshot["updated_at"] = utc_now()
    dump_yaml(snapshot, path or config.ENGINE_FILE)
    try:
        upsert_snapshot(engine.identity, snapshot)
    except Exception as exc:
        # YAML remains source of truth
        logger.warning("snapshot_mirror_failed", error=str(exc))


@contextmanager
def transaction() -> Iterator[Tuple[GovernanceEngine, LedgerExecutor]]:
    """Load engine and ledger under one lock, and persist both only if the
    block completes without raising."""
    with file_lock(config.LOCK_DIR / "engine.lock"):
        engine = load_engine()
        ledger = load_ledger()
        ledger.advance()
        yield engine, ledger
        save_engine(engine)
        save_ledger(ledger)
