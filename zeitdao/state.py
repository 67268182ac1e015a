from enum import Enum
from typing import Dict, List


class ProposalState(str, Enum):
    OPEN = "open"
    APPROVED = "approved"
    EXECUTED = "executed"


# Approval is recomputed from live ballots, so it can fall back to OPEN
ALLOWED_TRANSITIONS: Dict[ProposalState, List[ProposalState]] = {
    ProposalState.OPEN: [ProposalState.APPROVED],
    ProposalState.APPROVED: [ProposalState.OPEN, ProposalState.EXECUTED],
    ProposalState.EXECUTED: [],
}


def can_transition(current: ProposalState, target: ProposalState) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, [])


def transition(current: ProposalState, target: ProposalState) -> ProposalState:
    if not can_transition(current, target):
        raise ValueError(f"Illegal transition: {current.value} -> {target.value}")
    return target


def derive_state(executed: bool, approved: bool) -> ProposalState:
    if executed:
        return ProposalState.EXECUTED
    return ProposalState.APPROVED if approved else ProposalState.OPEN
