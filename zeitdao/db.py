import json
import sqlite3
from typing import Any, Dict

from . import config
from .utils import ensure_dir, file_lock


def _connect() -> sqlite3.Connection:
    ensure_dir(config.DB_FILE.parent)
    conn = sqlite3.connect(config.DB_FILE)
    conn.execute("pragma journal_mode=WAL;")
    conn.execute("pragma foreign_keys=ON;")
    return conn


def init_db() -> None:
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            conn.execute(
                """
                create table if not exists events (
                    id integer primary key autoincrement,
                    ts text not null,
                    event text not null,
                    proposal_index integer,
                    actor text,
                    data text
                );
                """
            )
            conn.execute(
                """
                create table if not exists snapshots (
                    identity text primary key,
                    members text,
                    quorum integer,
                    proposal_count integer,
                    snapshot text,
                    updated_at text
                );
                """
            )
            conn.commit()
        finally:
            conn.close()


def insert_event(ts: str, event: str, proposal_index: int, actor: str, data: Dict[str, Any]) -> None:
    init_db()
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            conn.execute(
                "insert into events (ts, event, proposal_index, actor, data) values (?, ?, ?, ?, ?)",
                (ts, event, proposal_index, actor, json.dumps(data, ensure_ascii=False)),
            )
            conn.commit()
        finally:
            conn.close()


def upsert_snapshot(identity: str, snapshot: Dict[str, Any]) -> None:
    """Mirror the engine snapshot (YAML remains source-of-truth)."""
    init_db()
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            conn.execute(
                """
                insert into snapshots
                    (identity, members, quorum, proposal_count, snapshot, updated_at)
                values
                    (:identity, :members, :quorum, :proposal_count, :snapshot, :updated_at)
                on conflict(identity) do update set
                    members=excluded.members,
                    quorum=excluded.quorum,
                    proposal_count=excluded.proposal_count,
                    snapshot=excluded.snapshot,
                    updated_at=excluded.updated_at;
                """,
                {
                    "identity": identity,
                    "members": json.dumps(snapshot.get("members", []), ensure_ascii=False),
                    "quorum": snapshot.get("quorum"),
                    "proposal_count": len(snapshot.get("proposals", [])),
                    "snapshot": json.dumps(snapshot, ensure_ascii=False),
                    "updated_at": snapshot.get("updated_at"),
                },
            )
            conn.commit()
        finally:
            conn.close()


def list_events(limit: int = 50) -> list[Dict[str, Any]]:
    init_db()
    with file_lock(config.LOCK_DIR / "db.lock"):
        conn = _connect()
        try:
            cur = conn.execute(
                "select ts, event, proposal_index, actor, data from events order by id desc limit ?",
                (limit,),
            )
            rows = cur.fetchall()
        finally:
            conn.close()
    events = []
    for ts, event, index, actor, data in rows:
        try:
            payload = json.loads(data) if data else {}
        except ValueError:
            payload = {"raw": data}
        events.append(
            {"timestamp": ts, "event": event, "proposal_index": index, "actor": actor, "data": payload}
        )
    return events
