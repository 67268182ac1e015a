from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import config
from .errors import InvalidCharter
from .utils import load_yaml


@dataclass
class Charter:
    identity: str
    members: List[str]
    quorum: int


def parse_charter(data: Dict[str, Any]) -> Charter:
    if not isinstance(data, dict):
        raise ValueError("Charter must be a mapping")
    identity = data.get("identity")
    if not identity:
        raise ValueError("Charter must name the engine identity")
    members = [str(m) for m in data.get("members") or []]
    try:
        quorum = int(data.get("quorum", 0))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid quorum: {data.get('quorum')!r}") from exc
    if quorum < 0 or quorum > len(members):
        raise InvalidCharter(quorum, len(members))
    return Charter(identity=str(identity), members=members, quorum=quorum)


def load_charter(path: Optional[Path] = None) -> Charter:
    charter_path = path or config.DEFAULT_CHARTER_FILE
    data = load_yaml(charter_path)
    if not data:
        raise ValueError(f"Charter file is empty or missing: {charter_path}")
    return parse_charter(data)
