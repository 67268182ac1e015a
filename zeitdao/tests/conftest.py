import pytest

from zeitdao import config


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    state = tmp_path / "state"
    monkeypatch.setattr(config, "STATE_DIR", state)
    monkeypatch.setattr(config, "ENGINE_FILE", state / "engine.yaml")
    monkeypatch.setattr(config, "LEDGER_FILE", state / "ledger.yaml")
    monkeypatch.setattr(config, "LOCK_DIR", state / "locks")
    monkeypatch.setattr(config, "DB_FILE", state / "zeitdao.db")
    monkeypatch.setattr(config, "AUDIT_LOG_FILE", state / "audit.log")
    monkeypatch.setattr(config, "API_TOKEN_FILE", tmp_path / "api_tokens.txt")
    return state
