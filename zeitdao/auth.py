from typing import Sequence

from .errors import OnlyMemberAllowed, OnlySelfAllowed


def is_member(members: Sequence[str], identity: str) -> bool:
    return identity in members


def is_self(engine_identity: str, caller: str) -> bool:
    return caller == engine_identity


def ensure_member(members: Sequence[str], caller: str) -> None:
    if not is_member(members, caller):
        raise OnlyMemberAllowed(caller)


def ensure_self(engine_identity: str, caller: str) -> None:
    if not is_self(engine_identity, caller):
        raise OnlySelfAllowed(caller)
