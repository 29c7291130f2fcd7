"""
Counting module for Single Transferable Vote elections.

- Election: Droop-quota STV count with random surplus transfer
- ElectionResults / STVRound: final outcome and round-by-round history
- Tie-break policies and observers that the count can be configured with
"""

from .observers import CountObserver, LoggingObserver
from .report import final_results, format_results, results_to_dict, round_summary
from .stv import Election, ElectionResults, NotEnoughVotesError, STVRound
from .tiebreak import ListOrderTiebreak, RandomTiebreak, TiebreakPolicy, get_tiebreak

__all__ = [
    "Election",
    "ElectionResults",
    "NotEnoughVotesError",
    "STVRound",
    "CountObserver",
    "LoggingObserver",
    "TiebreakPolicy",
    "ListOrderTiebreak",
    "RandomTiebreak",
    "get_tiebreak",
    "format_results",
    "results_to_dict",
    "round_summary",
    "final_results",
]
