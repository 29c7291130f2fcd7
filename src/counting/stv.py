import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO, Tuple, Union

import numpy as np

from .observers import CountObserver, LoggingObserver
from .tiebreak import ListOrderTiebreak, TiebreakPolicy

try:
    from ..data.ballot_loader import load_ballots
except ImportError:
    from data.ballot_loader import load_ballots

logger = logging.getLogger(__name__)

Ballot = Tuple[str, ...]
CandidateBallots = Dict[str, List[Ballot]]


class NotEnoughVotesError(RuntimeError):
    """Raised when seats remain but no candidate is left to eliminate."""

    def __init__(self, message: str = "There were not enough votes to fill every seat."):
        super().__init__(message)


@dataclass
class STVRound:
    """Represents one round of STV counting."""

    round_number: int
    continuing_candidates: List[str]
    vote_totals: Dict[str, int]  # credited ballots at the start of the round
    quota: int
    winners_this_round: List[str]
    eliminated_this_round: List[str]
    transfers: Dict[str, Dict[str, int]]  # from_candidate -> {to_candidate: ballots}
    exhausted_votes: int  # exhausted before this round
    exhausted_this_round: int
    retained_votes: int  # held by already-decided candidates at the start of the round


@dataclass(frozen=True)
class ElectionResults:
    """
    Final outcome of an election.

    ``elected`` and ``eliminated`` map each decided candidate to the number of
    ballots they held when they were decided, in the order decisions were made.
    """

    elected: Dict[str, int] = field(default_factory=dict)
    eliminated: Dict[str, int] = field(default_factory=dict)
    quota: int = 0
    spoiled_ballots: int = 0
    rounds: Tuple[STVRound, ...] = ()


class Election:
    """
    Single Transferable Vote count using the Droop quota.

    An ``Election`` is built from a candidate list, ballots and a seat count,
    and is consumed by ``results()``; it cannot be counted twice.
    """

    def __init__(
        self,
        candidates: Sequence[str],
        ballots: Sequence[Sequence[str]],
        seats: int,
        rng: Optional[np.random.Generator] = None,
        tiebreak: Optional[TiebreakPolicy] = None,
        observer: Optional[CountObserver] = None,
    ):
        """
        Initialize the election and purge spoiled ballots.

        Args:
            candidates: Names of every contesting candidate, in ballot-paper order
            ballots: Ranked ballots, most preferred candidate first
            seats: Number of seats to fill
            rng: Random source for surplus sampling and random tie-breaks
            tiebreak: Rule for choosing between candidates tied on fewest ballots
            observer: Receives diagnostic events; logs them by default
        """
        self.candidates: List[str] = list(candidates)
        self.seats = seats
        self.rng = rng if rng is not None else np.random.default_rng()
        self.tiebreak = tiebreak if tiebreak is not None else ListOrderTiebreak()
        self.observer = observer if observer is not None else LoggingObserver()

        self.ballots: List[Ballot] = [tuple(ballot) for ballot in ballots]
        self.elected: CandidateBallots = {}
        self.eliminated: CandidateBallots = {}
        self.rounds: List[STVRound] = []
        self.num_exhausted_ballots = 0
        self._counted = False

        self.num_spoiled_ballots = self._purge_spoiled_ballots()
        self.observer.spoiled_ballots_purged(self.num_spoiled_ballots)

    @classmethod
    def from_csv(
        cls, source: Union[str, Path, TextIO], seats: int, **kwargs
    ) -> "Election":
        """Construct an election from a CSV ballot file or stream."""
        candidates, ballots = load_ballots(source)
        return cls(candidates, ballots, seats, **kwargs)

    def total_ballots(self) -> int:
        """Number of ballots counted, after spoiled ballots are removed."""
        return len(self.ballots)

    def quota(self) -> int:
        """
        Droop quota: floor(total_ballots / (seats + 1)) + 1

        Fixed from the initial ballot total; it is not recomputed as ballots
        exhaust in later rounds.
        """
        return (self.total_ballots() // (self.seats + 1)) + 1

    def results(self) -> ElectionResults:
        """
        Run the count to completion.

        Returns:
            ElectionResults for every elected and eliminated candidate

        Raises:
            NotEnoughVotesError: if the candidates run out before every seat is filled
            RuntimeError: if this election has already been counted
        """
        if self._counted:
            raise RuntimeError("Election results have already been counted")
        self._counted = True

        quota = self.quota()
        logger.debug(
            f"Counting {self.total_ballots()} ballots for {self.seats} seats, quota {quota}"
        )

        # First-choice votes
        candidate_votes: CandidateBallots = {c: [] for c in self.candidates}
        for ballot in self.ballots:
            if ballot:
                candidate_votes[ballot[0]].append(ballot)
            else:
                self.num_exhausted_ballots += 1

        while len(self.elected) < self.seats:
            self._check_invariants(candidate_votes)

            round_record = STVRound(
                round_number=len(self.rounds) + 1,
                continuing_candidates=list(candidate_votes),
                vote_totals={c: len(v) for c, v in candidate_votes.items()},
                quota=quota,
                winners_this_round=[],
                eliminated_this_round=[],
                transfers={},
                exhausted_votes=self.num_exhausted_ballots,
                exhausted_this_round=0,
                retained_votes=self._retained_votes(),
            )
            self.rounds.append(round_record)
            self.observer.round_started(
                round_record.round_number, round_record.vote_totals
            )

            winners = self._get_round_winners(candidate_votes)
            if winners:
                # Every winner is recorded before any surplus moves so that
                # simultaneous winners never receive each other's ballots.
                for candidate in winners:
                    self.elected[candidate] = candidate_votes.pop(candidate)
                    round_record.winners_this_round.append(candidate)
                    self.observer.candidate_elected(
                        candidate, len(self.elected[candidate])
                    )
                for candidate in winners:
                    transfers, exhausted = self._distribute_winner_surplus(
                        candidate, candidate_votes
                    )
                    round_record.transfers[candidate] = transfers
                    round_record.exhausted_this_round += exhausted
            else:
                loser = self._get_round_loser(candidate_votes)
                self.eliminated[loser] = candidate_votes.pop(loser)
                round_record.eliminated_this_round.append(loser)
                self.observer.candidate_eliminated(loser, len(self.eliminated[loser]))

                transfers, exhausted = self._distribute_loser_votes(
                    loser, candidate_votes
                )
                round_record.transfers[loser] = transfers
                round_record.exhausted_this_round += exhausted

        logger.debug(
            f"Count complete after {len(self.rounds)} rounds: elected {list(self.elected)}"
        )

        return ElectionResults(
            elected={c: len(v) for c, v in self.elected.items()},
            eliminated={c: len(v) for c, v in self.eliminated.items()},
            quota=quota,
            spoiled_ballots=self.num_spoiled_ballots,
            rounds=tuple(self.rounds),
        )

    # A spoiled ballot is one naming a candidate who isn't running.
    def _purge_spoiled_ballots(self) -> int:
        running = set(self.candidates)
        before_length = len(self.ballots)
        kept = []
        for ballot in self.ballots:
            unknown = next((c for c in ballot if c not in running), None)
            if unknown is None:
                kept.append(ballot)
            else:
                self.observer.spoiled_ballot(ballot, unknown)
        self.ballots = kept
        return before_length - len(self.ballots)

    def _get_round_winners(self, candidate_votes: CandidateBallots) -> List[str]:
        quota = self.quota()
        return [c for c, votes in candidate_votes.items() if len(votes) >= quota]

    def _get_round_loser(self, candidate_votes: CandidateBallots) -> str:
        if not candidate_votes:
            raise NotEnoughVotesError()

        fewest = min(len(votes) for votes in candidate_votes.values())
        tied = [c for c, votes in candidate_votes.items() if len(votes) == fewest]
        if len(tied) == 1:
            return tied[0]

        loser = self.tiebreak.choose_loser(tied, self.rng)
        self.observer.tie_broken(tied, loser)
        return loser

    def _distribute_winner_surplus(
        self, candidate: str, candidate_votes: CandidateBallots
    ) -> Tuple[Dict[str, int], int]:
        ballots = self.elected[candidate]
        num_surplus = len(ballots) - self.quota()
        if num_surplus <= 0:
            self.observer.votes_transferred(candidate, {}, 0, surplus=True)
            return {}, 0

        chosen = self.rng.choice(len(ballots), size=num_surplus, replace=False)
        surplus_ballots = [ballots[i] for i in sorted(chosen)]

        transfers, exhausted = self._transfer(surplus_ballots, candidate_votes)
        self.observer.votes_transferred(candidate, transfers, exhausted, surplus=True)
        return transfers, exhausted

    def _distribute_loser_votes(
        self, candidate: str, candidate_votes: CandidateBallots
    ) -> Tuple[Dict[str, int], int]:
        transfers, exhausted = self._transfer(
            self.eliminated[candidate], candidate_votes
        )
        self.observer.votes_transferred(candidate, transfers, exhausted, surplus=False)
        return transfers, exhausted

    def _transfer(
        self, ballots: List[Ballot], candidate_votes: CandidateBallots
    ) -> Tuple[Dict[str, int], int]:
        transfers: Dict[str, int] = {}
        exhausted = 0
        for ballot in ballots:
            remaining = self._next_preference(ballot)
            if not remaining:
                exhausted += 1
                continue
            candidate_votes[remaining[0]].append(remaining)
            transfers[remaining[0]] = transfers.get(remaining[0], 0) + 1
        self.num_exhausted_ballots += exhausted
        return transfers, exhausted

    def _is_decided(self, candidate: str) -> bool:
        return candidate in self.elected or candidate in self.eliminated

    def _next_preference(self, ballot: Ballot) -> Ballot:
        """Drop the credited preference and any decided candidates after it."""
        remaining = ballot[1:]
        while remaining and self._is_decided(remaining[0]):
            remaining = remaining[1:]
        return remaining

    def _retained_votes(self) -> int:
        # Winners keep quota ballots once their surplus has moved on; losers keep none.
        quota = self.quota()
        return sum(min(len(v), quota) for v in self.elected.values())

    def _check_invariants(self, candidate_votes: CandidateBallots):
        decided_twice = set(self.elected) & set(self.eliminated)
        if decided_twice:
            raise RuntimeError(
                f"Candidates both elected and eliminated: {sorted(decided_twice)}"
            )

        accounted = (
            sum(len(v) for v in candidate_votes.values())
            + self._retained_votes()
            + self.num_exhausted_ballots
        )
        if accounted != self.total_ballots():
            raise RuntimeError(
                f"Ballot count drifted: {accounted} accounted for, "
                f"{self.total_ballots()} cast"
            )
