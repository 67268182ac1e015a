from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

Ballots = Dict[Tuple[str, int], bool]


@dataclass
class TallyResult:
    index: int
    ayes: int
    nays: int
    absent: int
    quorum: int

    @property
    def approved(self) -> bool:
        return self.ayes >= self.quorum


def tally_votes(members: Sequence[str], ballots: Ballots, index: int, quorum: int) -> TallyResult:
    """Count ayes for ``index`` across the current membership.

    Ballots from identities no longer in ``members`` are ignored, and a
    member without a ballot counts as a nay. Duplicate member entries are
    counted once per entry.
    """
    ayes = nays = absent = 0
    for member in members:
        vote = ballots.get((member, index))
        if vote is None:
            absent += 1
        elif vote:
            ayes += 1
        else:
            nays += 1
    return TallyResult(index=index, ayes=ayes, nays=nays, absent=absent, quorum=quorum)
