"""
Diagnostic observers for the counting engine.

The election never logs directly. It reports what happens during a count
to an observer; the default observer writes those events to the standard
logging module, and tests can substitute their own.
"""

import logging
from typing import Dict, List, Sequence

logger = logging.getLogger(__name__)


class CountObserver:
    """No-op observer. Subclass and override the events you need."""

    def spoiled_ballot(self, ballot: Sequence[str], unknown_candidate: str):
        pass

    def spoiled_ballots_purged(self, count: int):
        pass

    def round_started(self, round_number: int, vote_totals: Dict[str, int]):
        pass

    def candidate_elected(self, candidate: str, votes: int):
        pass

    def candidate_eliminated(self, candidate: str, votes: int):
        pass

    def tie_broken(self, tied: List[str], loser: str):
        pass

    def votes_transferred(
        self,
        from_candidate: str,
        transfers: Dict[str, int],
        exhausted: int,
        surplus: bool,
    ):
        pass


class LoggingObserver(CountObserver):
    """Writes count events to the ``counting.observers`` logger."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def spoiled_ballot(self, ballot, unknown_candidate):
        self.log.debug(f"Candidate voted for but not running: {unknown_candidate}")

    def spoiled_ballots_purged(self, count):
        self.log.info(f"{count} spoiled ballots purged")

    def round_started(self, round_number, vote_totals):
        self.log.info(f"=== Round {round_number} ===")
        for candidate, votes in vote_totals.items():
            self.log.debug(f"  {candidate}: {votes} votes")

    def candidate_elected(self, candidate, votes):
        self.log.info(f"Candidate {candidate} elected with {votes} votes")

    def candidate_eliminated(self, candidate, votes):
        self.log.info(f"Eliminating candidate {candidate} with {votes} votes")

    def tie_broken(self, tied, loser):
        self.log.info(f"Tie for fewest votes between {tied}; eliminating {loser}")

    def votes_transferred(self, from_candidate, transfers, exhausted, surplus):
        moved = sum(transfers.values())
        source = "winner surplus" if surplus else "loser"
        self.log.debug(
            f"{moved + exhausted} redistributed from {source} {from_candidate}"
        )
        for to_candidate, count in transfers.items():
            self.log.debug(f"  -> {count} votes to candidate {to_candidate}")
        if exhausted:
            self.log.debug(f"  -> {exhausted} votes exhausted")
