from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .. import config
from ..actions import EffectRequest, Transfer
from ..errors import CallRuntimeFailed
from ..utils import dump_yaml, load_yaml


class LedgerExecutor:
    """Host balance ledger that carries out transfers for the engine.

    ``submit`` stages every request against a copy of the balances and only
    replaces the live balances when all of them succeed.
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None, height: int = 0) -> None:
        self.balances: Dict[str, int] = dict(balances or {})
        self.height = height
        self.history: List[Dict[str, Any]] = []

    def balance(self, account: str) -> int:
        return self.balances.get(account, 0)

    def fund(self, account: str, amount: int) -> None:
        if amount <= 0:
            raise ValueError(f"Funding amount must be positive: {amount}")
        self.balances[account] = self.balance(account) + amount

    def advance(self) -> int:
        self.height += 1
        return self.height

    def submit(self, origin: str, requests: Sequence[EffectRequest]) -> None:
        staged = dict(self.balances)
        applied: List[Dict[str, Any]] = []
        for request in requests:
            if not isinstance(request, Transfer):
                raise CallRuntimeFailed(f"Unsupported request: {getattr(request, 'kind', request)!r}")
            if request.amount <= 0:
                raise CallRuntimeFailed(f"Transfer amount must be positive: {request.amount}")
            available = staged.get(origin, 0)
            if available < request.amount:
                raise CallRuntimeFailed(
                    f"Insufficient balance in {origin}: {available} < {request.amount}"
                )
            staged[origin] = available - request.amount
            staged[request.dest] = staged.get(request.dest, 0) + request.amount
            applied.append(
                {
                    "asset": config.NATIVE_ASSET,
                    "from": origin,
                    "to": request.dest,
                    "amount": request.amount,
                    "block": self.height,
                }
            )
        self.balances = staged
        self.history.extend(applied)

    def to_dict(self) -> Dict[str, Any]:
        return {"height": self.height, "balances": self.balances, "history": self.history}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LedgerExecutor":
        ledger = cls(
            balances={k: int(v) for k, v in (data.get("balances") or {}).items()},
            height=int(data.get("height", 0)),
        )
        ledger.history = list(data.get("history") or [])
        return ledger


def load_ledger(path: Optional[Path] = None) -> LedgerExecutor:
    return LedgerExecutor.from_dict(load_yaml(path or config.LEDGER_FILE))


def save_ledger(ledger: LedgerExecutor, path: Optional[Path] = None) -> None:
    dump_yaml(ledger.to_dict(), path or config.LEDGER_FILE)
