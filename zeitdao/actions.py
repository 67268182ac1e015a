"""Actions a proposal can carry, and how each one is turned into effects.

Planning is pure: ``plan_action`` walks an action against a membership list and
returns the requests to hand to the executor together with the membership that
results once they succeed. Nothing is applied here.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple, Type

from .errors import UnsupportedAction


class Action:
    kind = ""


@dataclass(frozen=True)
class DistributeBalance(Action):
    amount: int
    kind = "distribute_balance"

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError(f"Amount must be an integer: {self.amount!r}")
        if self.amount < 0:
            raise ValueError(f"Amount must not be negative: {self.amount}")


@dataclass(frozen=True)
class AddMember(Action):
    identity: str
    kind = "add_member"


@dataclass(frozen=True)
class RemoveMember(Action):
    identity: str
    kind = "remove_member"


@dataclass(frozen=True)
class Batch(Action):
    actions: Tuple[Action, ...] = ()
    kind = "batch"


MEMBER_ADD = "add"
MEMBER_REMOVE = "remove"


class EffectRequest:
    kind = ""


@dataclass(frozen=True)
class Transfer(EffectRequest):
    dest: str
    amount: int
    kind = "transfer"


@dataclass
class ActionPlan:
    requests: List[EffectRequest] = field(default_factory=list)
    members: List[str] = field(default_factory=list)
    # (MEMBER_ADD | MEMBER_REMOVE, identity) in the order they must be applied
    membership_ops: List[Tuple[str, str]] = field(default_factory=list)


def _plan_distribute(action: DistributeBalance, plan: ActionPlan) -> None:
    if not plan.members:
        return
    share = action.amount // len(plan.members)
    if share <= 0:
        return
    for member in plan.members:
        plan.requests.append(Transfer(dest=member, amount=share))


def _plan_add(action: AddMember, plan: ActionPlan) -> None:
    plan.members.append(action.identity)
    plan.membership_ops.append((MEMBER_ADD, action.identity))


def _plan_remove(action: RemoveMember, plan: ActionPlan) -> None:
    plan.members = [m for m in plan.members if m != action.identity]
    plan.membership_ops.append((MEMBER_REMOVE, action.identity))


def _plan_batch(action: Batch, plan: ActionPlan) -> None:
    for inner in action.actions:
        _plan_into(inner, plan)


_PLANNERS: Dict[Type[Action], Callable[[Any, ActionPlan], None]] = {
    DistributeBalance: _plan_distribute,
    AddMember: _plan_add,
    RemoveMember: _plan_remove,
    Batch: _plan_batch,
}


def _plan_into(action: Action, plan: ActionPlan) -> None:
    planner = _PLANNERS.get(type(action))
    if planner is None:
        raise UnsupportedAction(getattr(action, "kind", None) or type(action).__name__)
    planner(action, plan)


def plan_action(action: Action, members: List[str]) -> ActionPlan:
    plan = ActionPlan(members=list(members))
    _plan_into(action, plan)
    return plan


def describe(action: Action) -> str:
    if isinstance(action, DistributeBalance):
        return f"distribute {action.amount}"
    if isinstance(action, AddMember):
        return f"add member {action.identity}"
    if isinstance(action, RemoveMember):
        return f"remove member {action.identity}"
    if isinstance(action, Batch):
        return "batch[" + "; ".join(describe(a) for a in action.actions) + "]"
    return type(action).__name__


def action_to_dict(action: Action) -> Dict[str, Any]:
    if isinstance(action, DistributeBalance):
        return {"kind": action.kind, "amount": action.amount}
    if isinstance(action, (AddMember, RemoveMember)):
        return {"kind": action.kind, "identity": action.identity}
    if isinstance(action, Batch):
        return {"kind": action.kind, "actions": [action_to_dict(a) for a in action.actions]}
    raise UnsupportedAction(type(action).__name__)


def _parse_amount(raw: Any) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"Invalid amount: {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid amount: {raw!r}") from exc


def action_from_dict(data: Dict[str, Any]) -> Action:
    if not isinstance(data, dict):
        raise ValueError(f"Action must be a mapping, got {type(data).__name__}")
    kind = data.get("kind")
    try:
        if kind == DistributeBalance.kind:
            return DistributeBalance(amount=_parse_amount(data["amount"]))
        if kind == AddMember.kind:
            return AddMember(identity=str(data["identity"]))
        if kind == RemoveMember.kind:
            return RemoveMember(identity=str(data["identity"]))
        if kind == Batch.kind:
            actions = data.get("actions", [])
            if not isinstance(actions, list):
                raise ValueError(f"Batch actions must be a list, got {type(actions).__name__}")
            return Batch(actions=tuple(action_from_dict(a) for a in actions))
    except KeyError as exc:
        raise ValueError(f"Action '{kind}' is missing field {exc}") from exc
    raise UnsupportedAction(kind)
