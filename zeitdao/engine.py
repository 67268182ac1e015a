"""The governance engine: members propose actions, vote on them, and any caller
may execute a proposal once its aye count reaches quorum.

Each public operation takes a ``CallContext`` naming the caller and the action
executor to use. The executor is any object with
``submit(origin: str, requests: List[EffectRequest]) -> None`` that either
applies every request or raises without applying any.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .actions import (
    MEMBER_ADD,
    Action,
    ActionPlan,
    EffectRequest,
    action_from_dict,
    action_to_dict,
    describe,
    plan_action,
)
from .auth import ensure_member, ensure_self, is_member
from .errors import (
    AlreadyExecuted,
    CallRuntimeFailed,
    InvalidCharter,
    NotEnoughVotesApproved,
    ProposalDoesNotExist,
    UnexpectedError,
)
from .observability import bind_engine
from .state import ProposalState, derive_state, transition
from .tally import Ballots, TallyResult, tally_votes


@dataclass
class CallContext:
    caller: str
    executor: Any = None
    block_number: int = 0


@dataclass
class Proposal:
    index: int
    action: Action
    proposer: str
    created_block: int = 0
    execution: Dict[str, Any] = field(default_factory=dict)

    @property
    def executed(self) -> bool:
        return bool(self.execution)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "action": action_to_dict(self.action),
            "proposer": self.proposer,
            "created_block": self.created_block,
            "execution": self.execution,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Proposal":
        return cls(
            index=int(data["index"]),
            action=action_from_dict(data["action"]),
            proposer=data.get("proposer", ""),
            created_block=int(data.get("created_block", 0)),
            execution=data.get("execution") or {},
        )


@dataclass
class GovernanceEvent:
    event: str
    index: int
    actor: str
    block_number: int
    data: Dict[str, Any] = field(default_factory=dict)


class GovernanceEngine:
    def __init__(self, identity: str, members: List[str], quorum: int) -> None:
        if quorum < 0 or quorum > len(members):
            raise InvalidCharter(quorum, len(members))
        self.identity = identity
        self.quorum = quorum
        self._members: List[str] = list(members)
        self._proposals: List[Proposal] = []
        self._ballots: Ballots = {}
        self.events: List[GovernanceEvent] = []
        self._log = bind_engine(identity)

    # Queries

    def members(self) -> List[str]:
        return list(self._members)

    def is_member(self, ctx: CallContext) -> bool:
        return is_member(self._members, ctx.caller)

    def proposal(self, index: int) -> Optional[Action]:
        if 0 <= index < len(self._proposals):
            return self._proposals[index].action
        return None

    def proposal_count(self) -> int:
        return len(self._proposals)

    def proposals(self) -> List[Proposal]:
        return list(self._proposals)

    def get_proposal(self, index: int) -> Proposal:
        if not 0 <= index < len(self._proposals):
            raise ProposalDoesNotExist(index)
        return self._proposals[index]

    def ballot(self, member: str, index: int) -> Optional[bool]:
        return self._ballots.get((member, index))

    def tally(self, index: int) -> TallyResult:
        self.get_proposal(index)
        return tally_votes(self._members, self._ballots, index, self.quorum)

    def proposal_state(self, index: int) -> ProposalState:
        proposal = self.get_proposal(index)
        return derive_state(proposal.executed, self.tally(index).approved)

    # Mutations

    def propose(self, ctx: CallContext, action: Action) -> int:
        ensure_member(self._members, ctx.caller)
        payload = action_to_dict(action)
        index = len(self._proposals)
        self._proposals.append(
            Proposal(index=index, action=action, proposer=ctx.caller, created_block=ctx.block_number)
        )
        self._emit("proposal_created", index, ctx, {"action": payload})
        return index

    def vote(self, ctx: CallContext, index: int, aye: bool) -> None:
        ensure_member(self._members, ctx.caller)
        self.get_proposal(index)
        self._ballots[(ctx.caller, index)] = bool(aye)
        self._emit("vote_cast", index, ctx, {"aye": bool(aye)})

    def execute(self, ctx: CallContext, index: int) -> None:
        """Run an approved proposal's action on behalf of ``ctx.caller``.

        Any caller may execute; the quorum of aye ballots among the current
        members is the authorization. Executor requests are submitted as one
        unit, and membership changes and the execution record are committed
        only after the executor accepts them, so a failure leaves the proposal
        unexecuted and the membership unchanged.
        """
        proposal = self.get_proposal(index)
        if proposal.executed:
            raise AlreadyExecuted(index)
        result = self.tally(index)
        if not result.approved:
            raise NotEnoughVotesApproved(index, result.ayes, self.quorum)
        transition(self.proposal_state(index), ProposalState.EXECUTED)

        plan = plan_action(proposal.action, self._members)
        self._submit(ctx, plan.requests)

        own = CallContext(caller=self.identity, executor=ctx.executor, block_number=ctx.block_number)
        self._apply_membership(own, plan)
        proposal.execution = {
            "by": ctx.caller,
            "block": ctx.block_number,
            "ayes": result.ayes,
            "transfers": len(plan.requests),
        }
        self._emit(
            "proposal_executed",
            index,
            ctx,
            {"executor": ctx.caller, "action": action_to_dict(proposal.action)},
        )
        self._log.info("proposal_executed", index=index, action=describe(proposal.action), by=ctx.caller)

    # Self-only configuration, reachable through execute

    def add_member(self, ctx: CallContext, identity: str) -> None:
        ensure_self(self.identity, ctx.caller)
        self._members.append(identity)

    def remove_member(self, ctx: CallContext, identity: str) -> None:
        ensure_self(self.identity, ctx.caller)
        self._members = [m for m in self._members if m != identity]

    def _apply_membership(self, ctx: CallContext, plan: ActionPlan) -> None:
        before = list(self._members)
        for op, identity in plan.membership_ops:
            if op == MEMBER_ADD:
                self.add_member(ctx, identity)
            else:
                self.remove_member(ctx, identity)
        if self._members != before:
            self._log.info("membership_changed", before=before, after=self._members)

    def _submit(self, ctx: CallContext, requests: List[EffectRequest]) -> None:
        if not requests:
            return
        if ctx.executor is None:
            raise CallRuntimeFailed("No action executor available")
        try:
            ctx.executor.submit(self.identity, requests)
        except CallRuntimeFailed as exc:
            self._log.warning("executor_rejected", error=str(exc), requests=len(requests))
            raise
        except Exception as exc:
            self._log.error("executor_failed", error=repr(exc), requests=len(requests))
            raise UnexpectedError(f"Executor failed: {exc}") from exc

    def _emit(self, event: str, index: int, ctx: CallContext, data: Dict[str, Any]) -> None:
        self.events.append(
            GovernanceEvent(event=event, index=index, actor=ctx.caller, block_number=ctx.block_number, data=data)
        )
        self._log.debug(event, index=index, actor=ctx.caller, **data)

    def drain_events(self) -> List[GovernanceEvent]:
        events, self.events = self.events, []
        return events

    # Snapshots

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "members": list(self._members),
            "quorum": self.quorum,
            "proposals": [p.to_dict() for p in self._proposals],
            "ballots": [
                {"member": member, "index": index, "aye": aye}
                for (member, index), aye in self._ballots.items()
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceEngine":
        # Quorum is only checked against the founding members; membership may
        # since have shrunk below it.
        engine = cls(identity=data["identity"], members=[], quorum=0)
        engine._members = list(data.get("members", []))
        engine.quorum = int(data.get("quorum", 0))
        engine._proposals = [Proposal.from_dict(p) for p in data.get("proposals", [])]
        for entry in data.get("ballots", []):
            engine._ballots[(entry["member"], int(entry["index"]))] = bool(entry["aye"])
        return engine
