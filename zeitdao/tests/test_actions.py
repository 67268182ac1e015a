from dataclasses import dataclass

import pytest

from zeitdao.actions import (
    Action,
    AddMember,
    Batch,
    DistributeBalance,
    RemoveMember,
    Transfer,
    action_from_dict,
    action_to_dict,
    plan_action,
)
from zeitdao.errors import UnsupportedAction


@dataclass(frozen=True)
class SetQuorum(Action):
    quorum: int
    kind = "set_quorum"


def test_distribute_pays_each_member_an_even_share():
    plan = plan_action(DistributeBalance(amount=10), ["a", "b", "c"])
    assert plan.requests == [Transfer("a", 3), Transfer("b", 3), Transfer("c", 3)]
    assert plan.members == ["a", "b", "c"]


def test_distribute_with_no_members_or_tiny_amount_is_a_noop():
    assert plan_action(DistributeBalance(amount=10), []).requests == []
    assert plan_action(DistributeBalance(amount=2), ["a", "b", "c"]).requests == []


def test_remove_member_drops_every_matching_entry():
    plan = plan_action(RemoveMember("a"), ["a", "b", "a"])
    assert plan.members == ["b"]


def test_add_member_keeps_duplicates():
    plan = plan_action(AddMember("a"), ["a"])
    assert plan.members == ["a", "a"]


def test_batch_applies_in_order_against_changing_membership():
    batch = Batch((AddMember("d"), DistributeBalance(amount=8), RemoveMember("a")))
    plan = plan_action(batch, ["a", "b", "c"])
    assert plan.requests == [Transfer("a", 2), Transfer("b", 2), Transfer("c", 2), Transfer("d", 2)]
    assert plan.members == ["b", "c", "d"]


def test_planning_does_not_touch_input_members():
    members = ["a", "b"]
    plan_action(Batch((AddMember("c"), RemoveMember("a"))), members)
    assert members == ["a", "b"]


def test_unregistered_action_is_unsupported():
    with pytest.raises(UnsupportedAction) as exc:
        plan_action(SetQuorum(1), ["a"])
    assert exc.value.kind == "set_quorum"

    with pytest.raises(UnsupportedAction):
        plan_action(Batch((AddMember("b"), SetQuorum(1))), ["a"])


def test_action_dict_round_trip_for_nested_batch():
    action = Batch((DistributeBalance(5), Batch((AddMember("x"),)), RemoveMember("y")))
    assert action_from_dict(action_to_dict(action)) == action


def test_action_from_dict_rejects_bad_input():
    with pytest.raises(UnsupportedAction):
        action_from_dict({"kind": "set_quorum", "quorum": 2})
    with pytest.raises(ValueError):
        action_from_dict({"kind": "add_member"})
    with pytest.raises(ValueError):
        action_from_dict({"kind": "distribute_balance", "amount": -1})


def test_plan_records_membership_ops_in_order():
    plan = plan_action(Batch((AddMember("d"), RemoveMember("a"), AddMember("a"))), ["a", "b"])
    assert plan.membership_ops == [("add", "d"), ("remove", "a"), ("add", "a")]
    assert plan.members == ["b", "d", "a"]


def test_distribute_balance_validates_amount():
    with pytest.raises(ValueError):
        DistributeBalance(amount=-5)
    with pytest.raises(ValueError):
        DistributeBalance(amount="10")
    with pytest.raises(ValueError):
        DistributeBalance(amount=True)


@pytest.mark.parametrize(
    "data",
    [
        [1],
        "add_member",
        {"kind": "batch", "actions": [1]},
        {"kind": "batch", "actions": "ab"},
        {"kind": "distribute_balance", "amount": None},
        {"kind": "distribute_balance", "amount": "lots"},
    ],
)
def test_action_from_dict_rejects_malformed_payloads(data):
    with pytest.raises(ValueError):
        action_from_dict(data)
