"""
ZeitDao governance engine.

A fixed council of members proposes actions (distributing funds, changing
membership, batches of both), votes on them, and executes any proposal whose
aye ballots among the current members reach quorum.
"""

__all__ = ["config"]
