"""
Tie-break policies for choosing which candidate to eliminate.

When several continuing candidates share the lowest ballot count, the
election hands the tied names (in candidate-list order) to one of these
policies and eliminates whichever name it returns.
"""

import logging
from typing import Dict, List, Type

import numpy as np

logger = logging.getLogger(__name__)


class TiebreakPolicy:
    """Base class for elimination tie-break rules."""

    name = "base"

    def choose_loser(self, tied: List[str], rng: np.random.Generator) -> str:
        """
        Pick the candidate to eliminate.

        Args:
            tied: Candidates tied on the fewest ballots, in candidate-list order
            rng: The election's random source

        Returns:
            One element of ``tied``
        """
        raise NotImplementedError


class ListOrderTiebreak(TiebreakPolicy):
    """Eliminate the tied candidate listed last; earlier listing survives."""

    name = "list-order"

    def choose_loser(self, tied: List[str], rng: np.random.Generator) -> str:
        return tied[-1]


class RandomTiebreak(TiebreakPolicy):
    """Draw the loser uniformly from the tied candidates."""

    name = "random"

    def choose_loser(self, tied: List[str], rng: np.random.Generator) -> str:
        return tied[int(rng.integers(len(tied)))]


TIEBREAK_POLICIES: Dict[str, Type[TiebreakPolicy]] = {
    ListOrderTiebreak.name: ListOrderTiebreak,
    RandomTiebreak.name: RandomTiebreak,
}


def get_tiebreak(name: str) -> TiebreakPolicy:
    """Look up a tie-break policy by its command-line / API name."""
    try:
        policy = TIEBREAK_POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown tie-break policy '{name}'. "
            f"Choose one of: {', '.join(sorted(TIEBREAK_POLICIES))}"
        ) from None
    logger.debug(f"Using tie-break policy: {name}")
    return policy()
