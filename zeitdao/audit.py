import json
from typing import Any, Dict, Iterable, Optional

import structlog

from . import config
from .db import insert_event
from .engine import GovernanceEvent
from .utils import ensure_dir, utc_now, file_lock

logger = structlog.get_logger(__name__)


def record_event(event_type: str, proposal_index: Optional[int], actor: str, data: Dict[str, Any]) -> None:
    ensure_dir(config.AUDIT_LOG_FILE.parent)
    entry = {
        "timestamp": utc_now(),
        "event": event_type,
        "proposal_index": proposal_index,
        "actor": actor,
        "data": data,
    }
    lock_path = config.LOCK_DIR / "audit.log.lock"
    with file_lock(lock_path):
        with config.AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False))
            f.write("\n")
    # Best-effort SQLite write; failures should not block
    try:
        insert_event(entry["timestamp"], event_type, proposal_index, actor, data)
    except Exception as exc:
        logger.warning("audit_mirror_failed", event_type=event_type, error=str(exc))


def record_engine_events(events: Iterable[GovernanceEvent]) -> None:
    for ev in events:
        record_event(ev.event, ev.index, ev.actor, dict(ev.data, block=ev.block_number))
