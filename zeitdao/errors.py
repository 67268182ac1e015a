"""Error taxonomy for the governance engine.

Every recoverable failure of ``propose``, ``vote`` and ``execute`` is raised
as a ``GovernanceError`` subclass whose ``code`` is stable and safe to expose
to callers. A charter whose quorum cannot be met raises ``InvalidCharter``
instead, which is never caught by the engine.
"""

from typing import Optional


class GovernanceError(Exception):
    code = "GovernanceError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)


class CallRuntimeFailed(GovernanceError):
    """The action executor rejected a request."""

    code = "CallRuntimeFailed"


class OnlyMemberAllowed(GovernanceError):
    code = "OnlyMemberAllowed"

    def __init__(self, caller: str) -> None:
        super().__init__(f"{caller} is not a member")
        self.caller = caller


class OnlySelfAllowed(GovernanceError):
    code = "OnlySelfAllowed"

    def __init__(self, caller: str) -> None:
        super().__init__(f"{caller} may not invoke a self-only operation")
        self.caller = caller


class ProposalDoesNotExist(GovernanceError):
    code = "ProposalDoesNotExist"

    def __init__(self, index: int) -> None:
        super().__init__(f"Proposal {index} does not exist")
        self.index = index


class NotEnoughVotesApproved(GovernanceError):
    code = "NotEnoughVotesApproved"

    def __init__(self, index: int, ayes: int, quorum: int) -> None:
        super().__init__(f"Proposal {index} has {ayes} aye(s), quorum is {quorum}")
        self.index = index
        self.ayes = ayes
        self.quorum = quorum


class AlreadyExecuted(GovernanceError):
    code = "AlreadyExecuted"

    def __init__(self, index: int) -> None:
        super().__init__(f"Proposal {index} was already executed")
        self.index = index


class UnsupportedAction(GovernanceError):
    code = "UnsupportedAction"

    def __init__(self, kind: Optional[str]) -> None:
        super().__init__(f"Unsupported action: {kind}")
        self.kind = kind


class UnexpectedError(GovernanceError):
    """An executor failure outside the taxonomy, wrapped instead of escaping."""

    code = "UnexpectedError"


class InvalidCharter(ValueError):
    def __init__(self, quorum: int, member_count: int) -> None:
        super().__init__(
            f"Quorum {quorum} must be between 0 and the member count ({member_count})"
        )
        self.quorum = quorum
        self.member_count = member_count
