"""Adapters connecting the engine to its host environment (balances, block height)."""

from .ledger_adapter import (  # noqa: F401
    LedgerExecutor,
    load_ledger,
    save_ledger,
)
