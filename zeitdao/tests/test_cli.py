import json

import pytest

from zeitdao import config
from zeitdao.actions import AddMember, Batch, DistributeBalance
from zeitdao.cli import main
from zeitdao.storage import load_engine
from zeitdao.adapters.ledger_adapter import load_ledger


def run(*argv):
    main(list(argv))


@pytest.fixture
def council(state_dir):
    run("init", "--identity", "dao", "--member", "a", "--member", "b", "--member", "c", "--quorum", "2")
    return state_dir


def test_init_rejects_unreachable_quorum(state_dir):
    with pytest.raises(SystemExit) as exc:
        run("init", "--identity", "dao", "--member", "a", "--quorum", "2")
    assert "Quorum 2" in str(exc.value)
    assert not config.ENGINE_FILE.exists()


def test_init_from_default_charter(state_dir, capsys):
    run("init")
    assert load_engine().members() == ["alice", "bob", "carol"]
    with pytest.raises(SystemExit):
        run("init")
    run("init", "--force", "--identity", "dao", "--member", "x")
    assert load_engine().members() == ["x"]


def test_member_queries(council, capsys):
    run("members")
    assert capsys.readouterr().out.split() == ["a", "b", "c"]
    run("is-member", "--as", "b")
    assert capsys.readouterr().out.strip() == "yes"
    run("is-member", "--as", "z")
    assert capsys.readouterr().out.strip() == "no"


def test_propose_vote_execute_distribution(council, capsys):
    run("fund", "dao", "90")
    run("propose", "--as", "a", "--distribute", "60")
    run("vote", "0", "--as", "a", "--aye")
    with pytest.raises(SystemExit) as exc:
        run("execute", "0", "--as", "z")
    assert "NotEnoughVotesApproved" in str(exc.value)

    run("vote", "0", "--as", "b", "--aye")
    run("execute", "0", "--as", "z")
    ledger = load_ledger()
    assert ledger.balance("dao") == 30
    assert ledger.balance("a") == 20

    with pytest.raises(SystemExit) as exc:
        run("execute", "0", "--as", "z")
    assert "AlreadyExecuted" in str(exc.value)

    capsys.readouterr()
    run("list")
    assert "0 [executed]" in capsys.readouterr().out


def test_failed_execution_is_not_persisted(council):
    run("propose", "--as", "a", "--add-member", "d")
    run("propose", "--as", "a", "--distribute", "30")
    for index in ("0", "1"):
        run("vote", index, "--as", "a", "--aye")
        run("vote", index, "--as", "b", "--aye")
    with pytest.raises(SystemExit) as exc:
        run("execute", "1", "--as", "a")
    assert "CallRuntimeFailed" in str(exc.value)
    assert not load_engine().get_proposal(1).executed

    run("execute", "0", "--as", "a")
    assert load_engine().members() == ["a", "b", "c", "d"]


def test_non_member_cannot_propose_or_vote(council):
    with pytest.raises(SystemExit) as exc:
        run("propose", "--as", "z", "--add-member", "z")
    assert "OnlyMemberAllowed" in str(exc.value)
    with pytest.raises(SystemExit) as exc:
        run("vote", "3", "--as", "a", "--nay")
    assert "ProposalDoesNotExist" in str(exc.value)


def test_batch_from_action_file(council, tmp_path, capsys):
    action_file = tmp_path / "batch.yaml"
    action_file.write_text(
        "kind: batch\n"
        "actions:\n"
        "  - kind: add_member\n"
        "    identity: d\n"
        "  - kind: remove_member\n"
        "    identity: a\n"
    )
    run("propose", "--as", "c", "--action-file", str(action_file))
    run("vote", "0", "--as", "b", "--aye")
    run("vote", "0", "--as", "c", "--aye")
    run("execute", "0", "--as", "c")
    assert load_engine().members() == ["b", "c", "d"]

    capsys.readouterr()
    run("show", "0")
    out = capsys.readouterr().out
    assert "state: executed" in out
    assert "batch[add member d; remove member a]" in out


def test_audit_log_records_engine_events(council):
    run("propose", "--as", "a", "--add-member", "d")
    run("vote", "0", "--as", "a", "--aye")
    lines = config.AUDIT_LOG_FILE.read_text().splitlines()
    events = [json.loads(line)["event"] for line in lines]
    assert events == ["init", "proposal_created", "vote_cast"]


def test_action_file_with_bare_list_is_a_batch(council, tmp_path):
    action_file = tmp_path / "batch.yaml"
    action_file.write_text("- kind: add_member\n  identity: d\n- kind: distribute_balance\n  amount: 0\n")
    run("propose", "--as", "a", "--action-file", str(action_file))
    assert load_engine().proposal(0) == Batch((AddMember("d"), DistributeBalance(0)))


@pytest.mark.parametrize("content", ["just a string\n", "- 1\n", "kind: distribute_balance\namount: -5\n"])
def test_malformed_action_file_exits(council, tmp_path, content):
    action_file = tmp_path / "action.yaml"
    action_file.write_text(content)
    with pytest.raises(SystemExit) as excinfo:
        run("propose", "--as", "a", "--action-file", str(action_file))
    assert "Invalid action file" in str(excinfo.value)
    assert load_engine().proposal_count() == 0


def test_init_audit_records_charter_source(state_dir):
    run("init")
    entry = json.loads(config.AUDIT_LOG_FILE.read_text().splitlines()[0])
    assert entry["event"] == "init"
    assert entry["data"]["charter"] == str(config.DEFAULT_CHARTER_FILE)
    assert entry["data"]["quorum"] == load_engine().quorum
