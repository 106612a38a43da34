"""
Election results tabulation.

tabulate() is a pure function over already-loaded candidates and vote counts;
election_results() loads them from MongoDB and calls it.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .. import crud
from ..errors import NotFound

NO_CANDIDATES_MESSAGE = "No candidates found for this election"


@dataclass(frozen=True)
class ResultEntry:
    candidate: Dict[str, Any]
    vote_count: int
    percentage: float

    def to_dict(self):
        return {
            "candidate": self.candidate,
            "vote_count": self.vote_count,
            "percentage": self.percentage,
        }


@dataclass
class ResultsTable:
    entries: List[ResultEntry] = field(default_factory=list)
    total_votes: int = 0
    message: Optional[str] = None

    @property
    def winners(self) -> List[ResultEntry]:
        """Every entry sharing the top vote count. With no votes cast every candidate ties at 0."""
        if not self.entries:
            return []
        top = self.entries[0].vote_count
        return [e for e in self.entries if e.vote_count == top]

    @property
    def has_votes(self) -> bool:
        return self.total_votes > 0

    @property
    def is_tie(self) -> bool:
        return len(self.winners) > 1


def tabulate(candidates: Sequence[Mapping[str, Any]], vote_counts: Mapping[str, int]) -> ResultsTable:
    """
    Rank candidates by votes.
    - candidates: dicts with at least an "id"; input order breaks ties
    - vote_counts: candidate id -> count, missing ids count as 0
    """
    if not candidates:
        return ResultsTable(message=NO_CANDIDATES_MESSAGE)

    counted = [(dict(c), int(vote_counts.get(c["id"], 0))) for c in candidates]
    # sorted() is stable, so equal counts keep their input order
    counted = sorted(counted, key=lambda pair: pair[1], reverse=True)
    total = sum(count for _, count in counted)

    entries = [
        ResultEntry(
            candidate=cand,
            vote_count=count,
            percentage=round(count / total * 100, 2) if total > 0 else 0.0,
        )
        for cand, count in counted
    ]
    return ResultsTable(entries=entries, total_votes=total)


def election_results(db, election_id: str):
    """Load an election with its candidates and votes and tabulate them. Returns (election, table)."""
    election = crud.get_election(db, election_id)
    if not election:
        raise NotFound("Election not found")

    candidates = [
        {
            "id": str(c["_id"]),
            "name": c.get("name"),
            "party": c.get("party"),
            "position": c.get("position"),
        }
        for c in crud.list_candidates(db, election_id)
    ]
    counts = crud.count_votes_by_candidate(db, election_id)
    return election, tabulate(candidates, counts)
