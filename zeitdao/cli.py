import argparse
from pathlib import Path
from typing import List, Optional

from . import config
from .actions import Action, AddMember, DistributeBalance, RemoveMember, action_from_dict, describe
from .adapters.ledger_adapter import load_ledger, save_ledger
from .audit import record_engine_events, record_event
from .charter import Charter, load_charter, parse_charter
from .engine import CallContext
from .errors import GovernanceError
from .observability import configure_logging
from .storage import EngineNotInitialized, create_engine, engine_exists, load_engine, transaction
from .utils import file_lock, load_yaml


def _action_from_args(args: argparse.Namespace) -> Action:
    if args.distribute is not None:
        if args.distribute < 0:
            raise SystemExit("Distribution amount must not be negative")
        return DistributeBalance(amount=args.distribute)
    if args.add_member:
        return AddMember(identity=args.add_member)
    if args.remove_member:
        return RemoveMember(identity=args.remove_member)
    data = load_yaml(Path(args.action_file))
    if not data:
        raise SystemExit(f"Action file is empty or missing: {args.action_file}")
    # A bare list of actions is shorthand for a batch
    if isinstance(data, list):
        data = {"kind": "batch", "actions": data}
    if not isinstance(data, dict):
        raise SystemExit(f"Invalid action file {args.action_file}: expected a mapping or a list of actions")
    try:
        return action_from_dict(data)
    except (ValueError, GovernanceError) as exc:
        raise SystemExit(f"Invalid action file {args.action_file}: {exc}")


def _load_engine_or_exit():
    try:
        return load_engine()
    except EngineNotInitialized as exc:
        raise SystemExit(str(exc))


def handle_init(args: argparse.Namespace) -> None:
    if engine_exists() and not args.force:
        raise SystemExit(f"Engine already initialized at {config.ENGINE_FILE} (use --force to replace)")

    charter_path: Optional[Path] = None
    try:
        if args.member or args.identity:
            charter = parse_charter(
                {"identity": args.identity or "zeitdao", "members": args.member or [], "quorum": args.quorum}
            )
        else:
            charter_path = Path(args.charter) if args.charter else config.DEFAULT_CHARTER_FILE
            charter = load_charter(charter_path)
    except ValueError as exc:
        raise SystemExit(f"Invalid charter: {exc}")

    with file_lock(config.LOCK_DIR / "engine.lock"):
        engine = create_engine(charter)

    record_event(
        "init",
        None,
        charter.identity,
        {
            "members": charter.members,
            "quorum": charter.quorum,
            "charter": str(charter_path) if charter_path else None,
        },
    )
    _print_charter(Charter(engine.identity, engine.members(), engine.quorum))


def _print_charter(charter: Charter) -> None:
    print(f"Engine {charter.identity}")
    print(f"  members: {', '.join(charter.members) or '(none)'}")
    print(f"  quorum:  {charter.quorum}")


def handle_propose(args: argparse.Namespace) -> None:
    action = _action_from_args(args)
    try:
        with transaction() as (engine, ledger):
            ctx = CallContext(caller=args.caller, executor=ledger, block_number=ledger.height)
            index = engine.propose(ctx, action)
    except EngineNotInitialized as exc:
        raise SystemExit(str(exc))
    except GovernanceError as exc:
        raise SystemExit(f"{exc.code}: {exc}")
    record_engine_events(engine.drain_events())
    print(f"Created proposal {index}: {describe(action)}")


def handle_vote(args: argparse.Namespace) -> None:
    aye = bool(args.aye)
    try:
        with transaction() as (engine, ledger):
            ctx = CallContext(caller=args.caller, executor=ledger, block_number=ledger.height)
            engine.vote(ctx, args.proposal_index, aye)
            result = engine.tally(args.proposal_index)
    except EngineNotInitialized as exc:
        raise SystemExit(str(exc))
    except GovernanceError as exc:
        raise SystemExit(f"{exc.code}: {exc}")
    record_engine_events(engine.drain_events())
    print(f"{args.caller} voted {'AYE' if aye else 'NAY'} on proposal {args.proposal_index}")
    print(f"Tally: {result.ayes}/{result.quorum} ayes ({'APPROVED' if result.approved else 'OPEN'})")


def handle_execute(args: argparse.Namespace) -> None:
    try:
        with transaction() as (engine, ledger):
            ctx = CallContext(caller=args.caller, executor=ledger, block_number=ledger.height)
            engine.execute(ctx, args.proposal_index)
            action = engine.get_proposal(args.proposal_index).action
    except EngineNotInitialized as exc:
        raise SystemExit(str(exc))
    except GovernanceError as exc:
        raise SystemExit(f"{exc.code}: {exc}")
    record_engine_events(engine.drain_events())
    print(f"Executed proposal {args.proposal_index} by {args.caller}: {describe(action)}")


def handle_members(_: argparse.Namespace) -> None:
    engine = _load_engine_or_exit()
    members = engine.members()
    if not members:
        print("No members.")
        return
    for member in members:
        print(member)


def handle_is_member(args: argparse.Namespace) -> None:
    engine = _load_engine_or_exit()
    print("yes" if engine.is_member(CallContext(caller=args.caller)) else "no")


def handle_list(_: argparse.Namespace) -> None:
    engine = _load_engine_or_exit()
    proposals = engine.proposals()
    if not proposals:
        print("No proposals recorded.")
        return
    for p in proposals:
        result = engine.tally(p.index)
        state = engine.proposal_state(p.index)
        print(f"{p.index} [{state.value}] ayes={result.ayes}/{result.quorum} proposer={p.proposer} {describe(p.action)}")


def handle_show(args: argparse.Namespace) -> None:
    engine = _load_engine_or_exit()
    try:
        proposal = engine.get_proposal(args.proposal_index)
    except GovernanceError as exc:
        raise SystemExit(f"{exc.code}: {exc}")
    result = engine.tally(proposal.index)
    print(f"index: {proposal.index}")
    print(f"action: {describe(proposal.action)}")
    print(f"proposer: {proposal.proposer}")
    print(f"created_block: {proposal.created_block}")
    print(f"state: {engine.proposal_state(proposal.index).value}")
    print(f"tally: ayes={result.ayes} nays={result.nays} absent={result.absent} quorum={result.quorum}")
    for member in engine.members():
        ballot = engine.ballot(member, proposal.index)
        print(f"  {member}: {'-' if ballot is None else ('aye' if ballot else 'nay')}")
    if proposal.execution:
        print(f"execution: {proposal.execution}")


def handle_fund(args: argparse.Namespace) -> None:
    with file_lock(config.LOCK_DIR / "engine.lock"):
        ledger = load_ledger()
        try:
            ledger.fund(args.account, args.amount)
        except ValueError as exc:
            raise SystemExit(str(exc))
        save_ledger(ledger)
    record_event("fund", None, "system", {"account": args.account, "amount": args.amount})
    print(f"{args.account}: {ledger.balance(args.account)}")


def handle_balances(_: argparse.Namespace) -> None:
    ledger = load_ledger()
    print(f"height: {ledger.height}")
    if not ledger.balances:
        print("No balances.")
        return
    for account, amount in sorted(ledger.balances.items()):
        print(f"{account}: {amount}")


def handle_audit(args: argparse.Namespace) -> None:
    from .db import list_events

    events = list_events(limit=args.limit)
    if not events:
        print("No audit events.")
        return
    for ev in events:
        print(f"{ev['timestamp']} {ev['event']} proposal={ev['proposal_index']} actor={ev['actor']} data={ev['data']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ZeitDao governance engine CLI")
    sub = parser.add_subparsers(dest="command")

    init = sub.add_parser("init", help="Create the engine from a charter")
    init.add_argument("--charter", help="Path to charter file (YAML)")
    init.add_argument("--identity", help="Engine identity (overrides the charter file)")
    init.add_argument("--member", action="append", help="Founding member (repeatable)")
    init.add_argument("--quorum", type=int, default=0, help="Aye ballots needed to execute")
    init.add_argument("--force", action="store_true", help="Replace existing engine state")
    init.set_defaults(func=handle_init)

    propose = sub.add_parser("propose", help="Propose an action")
    propose.add_argument("--as", dest="caller", required=True, help="Calling identity")
    group = propose.add_mutually_exclusive_group(required=True)
    group.add_argument("--distribute", type=int, help="Split this amount among members")
    group.add_argument("--add-member", help="Identity to add")
    group.add_argument("--remove-member", help="Identity to remove")
    group.add_argument("--action-file", help="YAML action (e.g. a batch)")
    propose.set_defaults(func=handle_propose)

    vote = sub.add_parser("vote", help="Cast or replace a ballot")
    vote.add_argument("proposal_index", type=int)
    vote.add_argument("--as", dest="caller", required=True, help="Calling identity")
    ballot = vote.add_mutually_exclusive_group(required=True)
    ballot.add_argument("--aye", action="store_true", help="Vote in favour")
    ballot.add_argument("--nay", action="store_true", help="Vote against")
    vote.set_defaults(func=handle_vote)

    execute = sub.add_parser("execute", help="Execute an approved proposal")
    execute.add_argument("proposal_index", type=int)
    execute.add_argument("--as", dest="caller", required=True, help="Calling identity")
    execute.set_defaults(func=handle_execute)

    members = sub.add_parser("members", help="List members")
    members.set_defaults(func=handle_members)

    is_member = sub.add_parser("is-member", help="Check whether an identity is a member")
    is_member.add_argument("--as", dest="caller", required=True, help="Calling identity")
    is_member.set_defaults(func=handle_is_member)

    list_cmd = sub.add_parser("list", help="List proposals")
    list_cmd.set_defaults(func=handle_list)

    show_cmd = sub.add_parser("show", help="Show proposal details")
    show_cmd.add_argument("proposal_index", type=int)
    show_cmd.set_defaults(func=handle_show)

    fund = sub.add_parser("fund", help="Credit an account on the host ledger")
    fund.add_argument("account")
    fund.add_argument("amount", type=int)
    fund.set_defaults(func=handle_fund)

    balances = sub.add_parser("balances", help="Show host ledger balances")
    balances.set_defaults(func=handle_balances)

    audit_cmd = sub.add_parser("audit", help="Show recent audit events")
    audit_cmd.add_argument("--limit", type=int, default=50, help="Number of events to show")
    audit_cmd.set_defaults(func=handle_audit)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    configure_logging()
    args.func(args)


if __name__ == "__main__":
    main()
