"""FastAPI wrapper around the governance engine for members and executors via HTTP."""

import os
from typing import Any, Dict, List, Optional

try:
    from fastapi import Depends, FastAPI, Header, HTTPException
    from pydantic import BaseModel
except ImportError as exc:  # pragma: no cover
    raise SystemExit(
        "FastAPI not installed. Install with: pip install fastapi uvicorn\n"
        "You can still use the CLI via `python -m zeitdao.cli`."
    ) from exc

from . import config
from .actions import action_from_dict, action_to_dict
from .audit import record_engine_events
from .engine import CallContext, GovernanceEngine
from .errors import (
    AlreadyExecuted,
    CallRuntimeFailed,
    GovernanceError,
    NotEnoughVotesApproved,
    OnlyMemberAllowed,
    OnlySelfAllowed,
    ProposalDoesNotExist,
    UnsupportedAction,
)
from .storage import EngineNotInitialized, load_engine, transaction

ERROR_STATUS = {
    OnlyMemberAllowed: 403,
    OnlySelfAllowed: 403,
    ProposalDoesNotExist: 404,
    NotEnoughVotesApproved: 409,
    AlreadyExecuted: 409,
    UnsupportedAction: 422,
    CallRuntimeFailed: 502,
}


def _load_api_tokens() -> set[str]:
    tokens = set()
    env_token = os.environ.get(config.API_TOKEN_ENV)
    if env_token:
        tokens.add(env_token.strip())
    path = config.API_TOKEN_FILE
    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                tokens.add(line)
    return tokens


def require_token(x_api_token: Optional[str] = Header(None)) -> str:
    tokens = _load_api_tokens()
    if not tokens:
        raise HTTPException(status_code=500, detail="API token not configured")
    if not x_api_token or x_api_token not in tokens:
        raise HTTPException(status_code=401, detail="Invalid or missing API token")
    return x_api_token


def require_caller(x_caller: Optional[str] = Header(None)) -> str:
    if not x_caller:
        raise HTTPException(status_code=400, detail="X-Caller header required")
    return x_caller


def _http_error(exc: GovernanceError) -> HTTPException:
    status = ERROR_STATUS.get(type(exc), 500)
    return HTTPException(status_code=status, detail={"code": exc.code, "message": str(exc)})


def _engine() -> GovernanceEngine:
    try:
        return load_engine()
    except EngineNotInitialized as exc:
        raise HTTPException(status_code=503, detail=str(exc))


def _proposal_view(engine: GovernanceEngine, index: int) -> Dict[str, Any]:
    proposal = engine.get_proposal(index)
    result = engine.tally(index)
    return {
        "index": proposal.index,
        "action": action_to_dict(proposal.action),
        "proposer": proposal.proposer,
        "created_block": proposal.created_block,
        "state": engine.proposal_state(index).value,
        "ayes": result.ayes,
        "quorum": result.quorum,
        "execution": proposal.execution,
    }


class ProposalIn(BaseModel):
    action: Dict[str, Any]


class VoteIn(BaseModel):
    aye: bool


app = FastAPI(title="ZeitDao API", version="0.1.0")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/members")
def get_members(_: str = Depends(require_token)) -> List[str]:
    return _engine().members()


@app.get("/members/me")
def get_is_member(caller: str = Depends(require_caller), _: str = Depends(require_token)):
    return {"caller": caller, "is_member": _engine().is_member(CallContext(caller=caller))}


@app.get("/proposals")
def get_proposals(_: str = Depends(require_token)):
    engine = _engine()
    return [_proposal_view(engine, p.index) for p in engine.proposals()]


@app.get("/proposals/{index}")
def get_proposal(index: int, _: str = Depends(require_token)):
    engine = _engine()
    if engine.proposal(index) is None:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return _proposal_view(engine, index)


@app.post("/proposals")
def create_proposal(body: ProposalIn, caller: str = Depends(require_caller), _: str = Depends(require_token)):
    try:
        action = action_from_dict(body.action)
    except UnsupportedAction as exc:
        raise _http_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    try:
        with transaction() as (engine, ledger):
            ctx = CallContext(caller=caller, executor=ledger, block_number=ledger.height)
            index = engine.propose(ctx, action)
    except EngineNotInitialized as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except GovernanceError as exc:
        raise _http_error(exc)
    record_engine_events(engine.drain_events())
    return _proposal_view(engine, index)


@app.post("/proposals/{index}/votes")
def vote_proposal(index: int, body: VoteIn, caller: str = Depends(require_caller), _: str = Depends(require_token)):
    try:
        with transaction() as (engine, ledger):
            ctx = CallContext(caller=caller, executor=ledger, block_number=ledger.height)
            engine.vote(ctx, index, body.aye)
    except EngineNotInitialized as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except GovernanceError as exc:
        raise _http_error(exc)
    record_engine_events(engine.drain_events())
    return _proposal_view(engine, index)


@app.post("/proposals/{index}/execute")
def execute_proposal(index: int, caller: str = Depends(require_caller), _: str = Depends(require_token)):
    try:
        with transaction() as (engine, ledger):
            ctx = CallContext(caller=caller, executor=ledger, block_number=ledger.height)
            engine.execute(ctx, index)
    except EngineNotInitialized as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except GovernanceError as exc:
        raise _http_error(exc)
    record_engine_events(engine.drain_events())
    return _proposal_view(engine, index)
